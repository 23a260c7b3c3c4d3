"""Provisioning API - create sites and servers."""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import MonitoredSite, Server
from ..schemas.registry import ServerCreate, ServerCreated, SiteCreate, SiteResponse
from ..utils.ids import insert_with_unique_ids, new_api_key, new_entity_id

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["registry"])


@router.post("/sites", response_model=SiteResponse, status_code=201)
async def create_site(data: SiteCreate, db: AsyncSession = Depends(get_db)):
    existing = await db.execute(select(MonitoredSite.id).where(MonitoredSite.url == data.url))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="Site already monitored")

    site = await insert_with_unique_ids(
        db,
        lambda: MonitoredSite(id=new_entity_id(), url=data.url, name=data.name, last_status="PENDING"),
    )
    logger.info(f"Site added: {site.display_name} ({site.id})")
    return site


@router.post("/servers", response_model=ServerCreated, status_code=201)
async def create_server(data: ServerCreate, db: AsyncSession = Depends(get_db)):
    server = await insert_with_unique_ids(
        db,
        lambda: Server(
            id=new_entity_id(),
            name=data.name,
            description=data.description,
            api_key=new_api_key(),
        ),
    )
    logger.info(f"Server added: {server.name} ({server.id})")
    return server
