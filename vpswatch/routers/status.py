"""Read-only status and history API."""
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, nulls_last
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import MonitoredSite, Server, Metrics, SiteStatusEvent
from ..schemas.status import (
    HistoryEntry,
    ServerInfo,
    ServerList,
    ServerStatus,
    SiteHistory,
    SiteStatus,
    SiteStatusList,
)
from ..utils.timeutil import utcnow

router = APIRouter(prefix="/api", tags=["status"])

HISTORY_WINDOW = timedelta(hours=24)


@router.get("/servers", response_model=ServerList)
async def list_servers(db: AsyncSession = Depends(get_db)):
    """List servers in display order."""
    result = await db.execute(
        select(Server).order_by(nulls_last(Server.sort_order.asc()), Server.name.asc())
    )
    return ServerList(servers=[ServerInfo.model_validate(s) for s in result.scalars().all()])


@router.get("/status/{server_id}", response_model=ServerStatus)
async def get_server_status(server_id: str, db: AsyncSession = Depends(get_db)):
    """Latest metrics snapshot of a server."""
    server = await db.get(Server, server_id)
    if not server:
        raise HTTPException(status_code=404, detail="Server not found")

    metrics = await db.get(Metrics, server_id)
    return ServerStatus(
        server=ServerInfo.model_validate(server),
        metrics=metrics.as_dict() if metrics else None,
    )


@router.get("/sites/status", response_model=SiteStatusList)
async def list_site_statuses(db: AsyncSession = Depends(get_db)):
    """Latest persisted status of every site. URLs are not exposed."""
    result = await db.execute(
        select(MonitoredSite).order_by(
            nulls_last(MonitoredSite.sort_order.asc()),
            MonitoredSite.name.asc(),
            MonitoredSite.id.asc(),
        )
    )
    return SiteStatusList(sites=[SiteStatus.model_validate(s) for s in result.scalars().all()])


@router.get("/sites/{site_id}/history", response_model=SiteHistory)
async def get_site_history(site_id: str, db: AsyncSession = Depends(get_db)):
    """Check results of the last 24 hours, most recent first."""
    site = await db.get(MonitoredSite, site_id)
    if not site:
        raise HTTPException(status_code=404, detail="Site not found")

    cutoff = utcnow() - HISTORY_WINDOW
    result = await db.execute(
        select(SiteStatusEvent)
        .where(
            SiteStatusEvent.site_id == site_id,
            SiteStatusEvent.timestamp >= cutoff,
        )
        .order_by(SiteStatusEvent.timestamp.desc(), SiteStatusEvent.id.desc())
    )
    return SiteHistory(history=[HistoryEntry.model_validate(e) for e in result.scalars().all()])
