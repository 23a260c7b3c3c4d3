"""SiteStatusEvent model - append-only check history for sites."""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from ..database import Base


class SiteStatusEvent(Base):
    """One row per completed check. Never updated."""

    __tablename__ = "site_status_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    site_id = Column(String, ForeignKey("monitored_sites.id", ondelete="CASCADE"), nullable=False)
    timestamp = Column(DateTime, nullable=False)
    status = Column(String, nullable=False)
    status_code = Column(Integer, nullable=True)
    response_time_ms = Column(Integer, nullable=True)

    site = relationship("MonitoredSite", back_populates="history")

    __table_args__ = (
        Index("idx_site_status_history_site_id_timestamp", "site_id", "timestamp"),
    )
