"""Metrics model - latest report of a server, overwritten on every report."""
import json

from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship

from ..database import Base


class Metrics(Base):
    """Latest metrics snapshot. One row per server at most."""

    __tablename__ = "metrics"

    server_id = Column(String, ForeignKey("servers.id", ondelete="CASCADE"), primary_key=True)
    timestamp = Column(Integer, nullable=False)  # Epoch seconds reported by the host
    cpu = Column(String, nullable=True)  # JSON
    memory = Column(String, nullable=True)  # JSON
    disk = Column(String, nullable=True)  # JSON
    network = Column(String, nullable=True)  # JSON
    ping = Column(String, nullable=True)  # JSON: route key -> loss percent
    uptime = Column(Integer, nullable=True)

    server = relationship("Server", back_populates="metrics")

    def as_dict(self) -> dict:
        """Decode the JSON columns for API responses."""
        return {
            "timestamp": self.timestamp,
            "cpu": json.loads(self.cpu or "{}"),
            "memory": json.loads(self.memory or "{}"),
            "disk": json.loads(self.disk or "{}"),
            "network": json.loads(self.network or "{}"),
            "ping": json.loads(self.ping or "{}"),
            "uptime": self.uptime,
        }
