"""Settings schemas for API."""
from typing import Optional
from pydantic import BaseModel, Field


class ReportInterval(BaseModel):
    """Global host report interval in seconds."""
    interval: int = Field(..., gt=0, strict=True)


class TelegramSettings(BaseModel):
    """Telegram channel configuration."""
    bot_token: Optional[str] = None
    chat_id: Optional[str] = None
    enable_notifications: bool = False


class TelegramTestResult(BaseModel):
    sent: bool
