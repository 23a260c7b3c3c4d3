"""API routers."""
from .report import router as report_router
from .status import router as status_router
from .settings import router as settings_router
from .registry import router as registry_router

__all__ = ["report_router", "status_router", "settings_router", "registry_router"]
