"""Settings model - key-value store for global configuration."""
from sqlalchemy import Column, String, DateTime

from ..database import Base
from ..utils.timeutil import utcnow


class Setting(Base):
    """Global settings stored as key-value pairs."""

    __tablename__ = "settings"

    key = Column(String, primary_key=True)
    value = Column(String, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


REPORT_INTERVAL_KEY = "vps_report_interval_seconds"

# Default settings
DEFAULT_SETTINGS = {
    # Seconds between host metric reports
    REPORT_INTERVAL_KEY: "60",
}
