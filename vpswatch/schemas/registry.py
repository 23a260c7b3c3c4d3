"""Schemas for provisioning sites and servers."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class SiteCreate(BaseModel):
    url: str = Field(..., min_length=1)
    name: Optional[str] = Field(None, max_length=255)

    @field_validator("url")
    @classmethod
    def check_http_url(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return value


class SiteResponse(BaseModel):
    id: str
    url: str
    name: Optional[str] = None
    added_at: datetime
    last_status: str

    class Config:
        from_attributes = True


class ServerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=500)


class ServerCreated(BaseModel):
    """Returned once at creation; the only response that carries the api key."""
    id: str
    name: str
    description: Optional[str] = None
    api_key: str
    created_at: datetime

    class Config:
        from_attributes = True
