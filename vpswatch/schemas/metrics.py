"""Metrics report schemas for the ingestion API."""
from typing import Annotated, Dict, List, Optional
from pydantic import BaseModel, Field


LossPercent = Annotated[int, Field(ge=0, le=100)]


class CpuMetrics(BaseModel):
    usage_percent: float
    load_avg: List[float] = Field(..., min_length=3, max_length=3)


class UsageMetrics(BaseModel):
    """Memory or disk usage."""
    total: float
    used: float
    free: float
    usage_percent: float


class NetworkMetrics(BaseModel):
    upload_speed: float
    download_speed: float
    total_upload: float
    total_download: float


class MetricsReport(BaseModel):
    """Body posted by a host agent on every report cycle."""
    timestamp: int = Field(..., gt=0)  # Epoch seconds
    cpu: CpuMetrics
    memory: UsageMetrics
    disk: UsageMetrics
    network: NetworkMetrics
    uptime: int = Field(..., ge=0)  # Seconds
    ping: Optional[Dict[str, LossPercent]] = None  # Route key -> loss percent

    def ping_or_empty(self) -> Dict[str, int]:
        return dict(self.ping or {})
