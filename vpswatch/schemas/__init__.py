"""Pydantic schemas for API request/response models."""
from .metrics import (
    CpuMetrics,
    UsageMetrics,
    NetworkMetrics,
    MetricsReport,
)
from .status import (
    ServerInfo,
    ServerList,
    ServerStatus,
    SiteStatus,
    SiteStatusList,
    HistoryEntry,
    SiteHistory,
)
from .settings import (
    ReportInterval,
    TelegramSettings,
    TelegramTestResult,
)
from .registry import (
    SiteCreate,
    SiteResponse,
    ServerCreate,
    ServerCreated,
)

__all__ = [
    "CpuMetrics",
    "UsageMetrics",
    "NetworkMetrics",
    "MetricsReport",
    "ServerInfo",
    "ServerList",
    "ServerStatus",
    "SiteStatus",
    "SiteStatusList",
    "HistoryEntry",
    "SiteHistory",
    "ReportInterval",
    "TelegramSettings",
    "TelegramTestResult",
    "SiteCreate",
    "SiteResponse",
    "ServerCreate",
    "ServerCreated",
]
