"""Metrics ingestion API - called by host agents."""
import json
import logging
import secrets

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import Server, Metrics
from ..schemas.metrics import MetricsReport
from ..utils.db_utils import retry_on_lock

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/report", tags=["report"])


@router.post("/{server_id}")
async def report_metrics(
    server_id: str,
    data: MetricsReport,
    x_api_key: str | None = Header(None),
    db: AsyncSession = Depends(get_db),
):
    """Store the latest metrics of a server, replacing the previous report."""
    if not x_api_key:
        raise HTTPException(status_code=401, detail="API key required")

    server = await db.get(Server, server_id)
    if not server:
        raise HTTPException(status_code=404, detail="Server not found")

    if not secrets.compare_digest(server.api_key, x_api_key):
        logger.warning(f"Rejected report for server {server_id}: invalid API key")
        raise HTTPException(status_code=401, detail="Invalid API key")

    async def store():
        # merge() on the primary key overwrites the single row per server
        await db.merge(Metrics(
            server_id=server_id,
            timestamp=data.timestamp,
            cpu=json.dumps(data.cpu.model_dump()),
            memory=json.dumps(data.memory.model_dump()),
            disk=json.dumps(data.disk.model_dump()),
            network=json.dumps(data.network.model_dump()),
            ping=json.dumps(data.ping_or_empty()),
            uptime=data.uptime,
        ))
        await db.commit()

    await retry_on_lock(store, session=db)

    logger.debug(f"Metrics stored for server {server_id}")
    return {"success": True}
