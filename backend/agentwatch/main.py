"""Main FastAPI application: monitor API plus the tier check engine."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .database import init_db, close_db
from .routers import monitors_router, tiers_router
from .services.agent_directory import AgentDirectory
from .services.dispatcher import Dispatcher
from .services.probe_client import ProbeClient
from .services.scheduler import SchedulerService
from .services.selector import RoundRobinSelector
from .services.store import SqlMonitorStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def build_scheduler_service(store=None) -> SchedulerService:
    """Wire the check engine from settings.

    Raises ConfigurationFailure when no agents are configured.
    """
    directory = AgentDirectory.from_settings(settings)
    store = store or SqlMonitorStore()
    dispatcher = Dispatcher(
        selector=RoundRobinSelector(directory),
        probe_client=ProbeClient(settings.agent_token, timeout=settings.probe_timeout_seconds),
        store=store,
    )
    return SchedulerService(
        store,
        dispatcher,
        max_concurrent_checks=settings.max_concurrent_checks,
        max_overlapping_ticks=settings.max_overlapping_ticks,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    logger.info("Starting AgentWatch")

    # Refuse to start without agents
    scheduler_service = build_scheduler_service()
    app.state.scheduler_service = scheduler_service

    await init_db()
    logger.info("Database initialized")

    if settings.run_scheduler:
        scheduler_service.start()
    else:
        logger.info("Tier schedulers disabled (RUN_SCHEDULER=false)")

    yield

    scheduler_service.stop()
    await close_db()
    logger.info("Shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="AgentWatch",
        description="Host availability checks through distributed check agents",
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

    app.include_router(monitors_router)
    app.include_router(tiers_router)

    @app.get("/health")
    async def health_check():
        service = getattr(app.state, "scheduler_service", None)
        return {
            "status": "healthy",
            "scheduler": bool(service and service.is_running),
        }

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.web_port)
