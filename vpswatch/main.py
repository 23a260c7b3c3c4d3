"""Main FastAPI application with server/agent mode switching."""
import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .database import StorageNotInitializedError, init_db, close_db
from .routers import report_router, status_router, settings_router, registry_router
from .services.notifier import dispatcher
from .services.scheduler import scheduler_service
from .services.agent_client import agent_client

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    logger.info(f"Starting vpswatch in {settings.mode.upper()} mode")

    if settings.mode == "server":
        await init_db()
        logger.info("Database initialized")

        # Server mode: start scheduler for periodic checks
        scheduler_service.start()
        logger.info("Scheduler started")

    elif settings.mode == "agent":
        # Agent mode: start probers and reporting loop in background
        asyncio.create_task(agent_client.run())
        logger.info("Agent client started")

    yield

    # Shutdown
    if settings.mode == "server":
        scheduler_service.stop()
        await dispatcher.drain()
        await close_db()
    elif settings.mode == "agent":
        agent_client.stop()

    logger.info("Shutdown complete")


async def storage_not_initialized_handler(request: Request, exc: StorageNotInitializedError):
    """Create the schema and ask the caller to retry."""
    logger.warning(f"{request.method} {request.url.path} hit uninitialized storage, creating schema")
    try:
        await init_db()
    except Exception as e:
        logger.error(f"Schema creation failed: {e}")
        return JSONResponse(status_code=500, content={"error": "Database error", "message": str(e)})
    return JSONResponse(
        status_code=503,
        content={"error": "Database initialized, please retry"},
        headers={"Retry-After": "1"},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="vpswatch",
        description="Site availability checks and VPS liveness monitoring with Telegram alerts",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StorageNotInitializedError, storage_not_initialized_handler)

    app.include_router(report_router)
    app.include_router(status_router)
    app.include_router(settings_router)
    app.include_router(registry_router)

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "mode": settings.mode,
        }

    return app


# Create the application instance
app = create_app()


def run():
    """Console entry point."""
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.web_port)


if __name__ == "__main__":
    run()
