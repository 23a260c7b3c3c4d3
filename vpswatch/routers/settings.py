"""Settings API endpoints."""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import NotificationChannel, Setting
from ..models.settings import DEFAULT_SETTINGS, REPORT_INTERVAL_KEY
from ..schemas.settings import ReportInterval, TelegramSettings, TelegramTestResult
from ..services.notifier import dispatcher, load_channel
from ..utils.db_utils import retry_on_lock

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("/report-interval", response_model=ReportInterval)
async def get_report_interval(db: AsyncSession = Depends(get_db)):
    """Report interval read by host agents."""
    setting = await db.get(Setting, REPORT_INTERVAL_KEY)
    raw = setting.value if setting else DEFAULT_SETTINGS[REPORT_INTERVAL_KEY]
    try:
        interval = int(raw)
    except ValueError:
        interval = int(DEFAULT_SETTINGS[REPORT_INTERVAL_KEY])
    return ReportInterval(interval=interval)


@router.put("/report-interval", response_model=ReportInterval)
async def update_report_interval(data: ReportInterval, db: AsyncSession = Depends(get_db)):
    """Change the report interval for all hosts."""
    async def store():
        setting = await db.get(Setting, REPORT_INTERVAL_KEY)
        if setting:
            setting.value = str(data.interval)
        else:
            db.add(Setting(key=REPORT_INTERVAL_KEY, value=str(data.interval)))
        await db.commit()

    await retry_on_lock(store, session=db)
    logger.info(f"Report interval set to {data.interval}s")
    return data


@router.get("/telegram", response_model=TelegramSettings)
async def get_telegram_settings(db: AsyncSession = Depends(get_db)):
    channel = await db.get(NotificationChannel, 1)
    if channel is None:
        return TelegramSettings()
    return TelegramSettings(
        bot_token=channel.bot_token,
        chat_id=channel.chat_id,
        enable_notifications=bool(channel.enabled),
    )


@router.put("/telegram", response_model=TelegramSettings)
async def update_telegram_settings(data: TelegramSettings, db: AsyncSession = Depends(get_db)):
    async def store():
        channel = await db.get(NotificationChannel, 1)
        if channel is None:
            channel = NotificationChannel(id=1)
            db.add(channel)
        channel.bot_token = data.bot_token or None
        channel.chat_id = data.chat_id or None
        channel.enabled = 1 if data.enable_notifications else 0
        await db.commit()

    await retry_on_lock(store, session=db)
    logger.info(f"Telegram notifications {'enabled' if data.enable_notifications else 'disabled'}")
    return data


@router.post("/telegram/test", response_model=TelegramTestResult)
async def send_test_message(db: AsyncSession = Depends(get_db)):
    """Send a test message and wait for the result."""
    channel = await load_channel(db)
    sent = await dispatcher.send(channel, "✅ vpswatch test notification")
    return TelegramTestResult(sent=sent)
