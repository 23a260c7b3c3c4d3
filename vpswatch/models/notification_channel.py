"""NotificationChannel model - singleton Telegram configuration."""
from sqlalchemy import Column, Integer, String, DateTime, CheckConstraint

from ..database import Base
from ..utils.timeutil import utcnow


class NotificationChannel(Base):
    """Telegram bot credentials. Only the row with id=1 exists."""

    __tablename__ = "telegram_config"

    id = Column(Integer, primary_key=True)
    bot_token = Column(String, nullable=True)
    chat_id = Column(String, nullable=True)
    enabled = Column(Integer, default=0)  # 0 or 1
    updated_at = Column(DateTime, nullable=True, default=utcnow, onupdate=utcnow)

    __table_args__ = (CheckConstraint("id = 1", name="telegram_config_singleton"),)
