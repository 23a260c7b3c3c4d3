"""Database models."""
from .settings import Setting
from .site import MonitoredSite
from .site_status import SiteStatusEvent
from .server import Server
from .metrics import Metrics
from .notification_channel import NotificationChannel

__all__ = ["Setting", "MonitoredSite", "SiteStatusEvent", "Server", "Metrics", "NotificationChannel"]
