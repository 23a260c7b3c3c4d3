"""Services for checking, debouncing, notifying, and host-side sampling."""
from .checker import ReachabilityChecker
from .transitions import TransitionEngine
from .watchdog import LivenessWatchdog
from .scheduler import SchedulerService
from .notifier import TelegramDispatcher
from .carrier_prober import CarrierProber, RouteProbeWindow
from .loss_aggregator import LossAggregator
from .agent_client import AgentClientService

__all__ = [
    "ReachabilityChecker",
    "TransitionEngine",
    "LivenessWatchdog",
    "SchedulerService",
    "TelegramDispatcher",
    "CarrierProber",
    "RouteProbeWindow",
    "LossAggregator",
    "AgentClientService",
]
