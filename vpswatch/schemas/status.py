"""Status and history schemas."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel


class ServerInfo(BaseModel):
    """Public server fields."""
    id: str
    name: str
    description: Optional[str] = None

    class Config:
        from_attributes = True


class ServerList(BaseModel):
    servers: List[ServerInfo]


class ServerStatus(BaseModel):
    """Latest metrics of a server. ``metrics`` is None until the first report."""
    server: ServerInfo
    metrics: Optional[dict] = None


class SiteStatus(BaseModel):
    """Latest persisted status of a site."""
    id: str
    name: Optional[str] = None
    last_checked: Optional[datetime] = None
    last_status: str
    last_status_code: Optional[int] = None
    last_response_time_ms: Optional[int] = None

    class Config:
        from_attributes = True


class SiteStatusList(BaseModel):
    sites: List[SiteStatus]


class HistoryEntry(BaseModel):
    """One stored check result."""
    timestamp: datetime
    status: str
    status_code: Optional[int] = None
    response_time_ms: Optional[int] = None

    class Config:
        from_attributes = True


class SiteHistory(BaseModel):
    history: List[HistoryEntry]
