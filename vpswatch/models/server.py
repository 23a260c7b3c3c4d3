"""Server model - hosts that push their own metrics."""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship

from ..database import Base
from ..utils.timeutil import utcnow


class Server(Base):
    """A monitored host. Liveness is derived from its last report.

    As with sites, any ORM update bumps ``status_version``, so an edit
    racing a liveness pass makes that pass skip the server until the next
    cycle.
    """

    __tablename__ = "servers"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    api_key = Column(String, nullable=False, unique=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    sort_order = Column(Integer, nullable=True)

    # Written only by the liveness watchdog
    last_notified_down_at = Column(DateTime, nullable=True)
    status_version = Column(Integer, nullable=False, default=0)

    metrics = relationship(
        "Metrics",
        back_populates="server",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __mapper_args__ = {"version_id_col": status_version}

    @property
    def display_name(self) -> str:
        return self.name or self.id
