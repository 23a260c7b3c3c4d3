"""MonitoredSite model - endpoints probed by the scheduler."""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship

from ..database import Base
from ..utils.timeutil import utcnow


class MonitoredSite(Base):
    """An externally reachable URL checked on every scheduler cycle.

    ``status_version`` is bumped by every ORM update of the row, not only
    status writes. Any other edit made while a check is in flight makes
    that check lose its compare-and-swap, and its result is dropped.
    """

    __tablename__ = "monitored_sites"

    id = Column(String, primary_key=True)
    url = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=True)
    added_at = Column(DateTime, nullable=False, default=utcnow)
    sort_order = Column(Integer, nullable=True)

    # Written only by the transition engine
    last_checked = Column(DateTime, nullable=True)
    last_status = Column(String, nullable=False, default="PENDING")  # PENDING, UP, DOWN, TIMEOUT, ERROR
    last_status_code = Column(Integer, nullable=True)
    last_response_time_ms = Column(Integer, nullable=True)
    last_notified_down_at = Column(DateTime, nullable=True)

    # Compare-and-swap counter for status writes
    status_version = Column(Integer, nullable=False, default=0)

    history = relationship(
        "SiteStatusEvent",
        back_populates="site",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __mapper_args__ = {"version_id_col": status_version}

    @property
    def display_name(self) -> str:
        return self.name or self.url
