"""FastAPI application setup"""
import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.api.routes import router
from src.api.metrics_routes import router as metrics_router
from src.api.middleware import setup_cors, setup_rate_limiting
from src.api.models import HealthCheckResponse
from src.config import LOG_LEVEL, STORAGE_BACKEND, validate_config
from src.db.connection import db
from src.db.store import PostgresStore
from src.exceptions import HabitQuestError
from src.gamification.config import load_gamification_config
from src.observability.metrics import init_metrics
from src.observability.metrics_middleware import setup_metrics_middleware
from src.services.container import ServiceContainer, build_store, get_container, init_container

API_VERSION = "1.0.0"

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL)
)

logger = logging.getLogger(__name__)


def _lifespan(container: Optional[ServiceContainer]):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifecycle manager for FastAPI application"""
        # Startup
        logger.info("Starting API server...")
        active = container
        if active is None:
            validate_config()
            active = init_container(build_store(STORAGE_BACKEND), load_gamification_config())

        uses_pool = isinstance(active.store, PostgresStore)
        if uses_pool:
            await db.init_pool()
            logger.info("Database pool initialized")

        init_metrics(API_VERSION, type(active.store).__name__)

        yield

        # Shutdown
        logger.info("Shutting down API server...")
        if uses_pool:
            await db.close_pool()
            logger.info("Database pool closed")

    return lifespan


def create_api_application(container: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Create and configure FastAPI application

    Args:
        container: Pre-built service container; when omitted one is built
            from STORAGE_BACKEND at startup
    """
    if container is not None:
        init_container(container.store, container.config)

    app = FastAPI(
        title="Habit Quest API",
        description="Habit tracking with streaks, XP, HP and levels",
        version=API_VERSION,
        lifespan=_lifespan(container)
    )

    # Setup middleware
    setup_cors(app)
    setup_rate_limiting(app)
    setup_metrics_middleware(app)

    # Include routes
    app.include_router(router)
    app.include_router(metrics_router)

    @app.get("/health", response_model=HealthCheckResponse)
    async def health():
        """Liveness check; 'degraded' when storage is unreachable"""
        store = get_container().store
        return HealthCheckResponse(
            status="ok" if await store.ping() else "degraded",
            storage=type(store).__name__,
            version=API_VERSION
        )

    @app.exception_handler(HabitQuestError)
    async def habit_quest_error_handler(request: Request, exc: HabitQuestError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"}
        )

    logger.info("FastAPI application created")

    return app
