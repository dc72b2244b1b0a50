from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from alembic import command
from alembic.config import Config
from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import settings
from .cache import get_redis
from .errors import install_error_handlers
from .middleware import SecurityHeadersMiddleware
from .routers import (
    admin,
    auth,
    blogs,
    bookmarks,
    categories,
    comments,
    events,
    notifications,
    system,
)
from .seed import ensure_seed_data
from .websocket_manager import connection_manager

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

_STARTUP_COMPLETE = False


def _alembic_config() -> Config:
    base_dir = Path(__file__).resolve().parent.parent
    cfg = Config(str(base_dir / "alembic.ini"))
    cfg.set_main_option("script_location", str(base_dir / "alembic"))
    return cfg


def run_migrations() -> None:
    logger.info("Running Alembic migrations...")
    try:
        command.upgrade(_alembic_config(), "head")
        logger.info("run_migrations: Completed successfully.")
    except Exception as e:
        logger.error(f"run_migrations: Error occurred: {e}", exc_info=True)
        raise


def run_startup_tasks() -> None:
    global _STARTUP_COMPLETE
    if _STARTUP_COMPLETE:
        logger.info("run_startup_tasks: Already completed, skipping.")
        return
    try:
        if settings.RUN_MIGRATIONS:
            run_migrations()
        else:
            logger.info("run_startup_tasks: RUN_MIGRATIONS disabled, skipping migrations.")
        ensure_seed_data()
        _STARTUP_COMPLETE = True
        logger.info("Startup tasks completed.")
    except Exception as e:
        logger.error(f"Startup tasks failed: {e}", exc_info=True)
        raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application...")
    # Server won't start until these complete
    run_startup_tasks()
    if get_redis():
        await connection_manager.start_redis_listener()
    logger.info("NCIT Hub API server ready")
    yield
    logger.info("Shutting down application...")
    await connection_manager.stop_redis_listener()


app = FastAPI(
    title="NCIT Hub API",
    version="1.0.0",
    description="College community portal: blogs, events, comments and notifications",
    lifespan=lifespan,
)

# In production, set CORS_ORIGINS to a comma-separated list of allowed origins
if settings.CORS_ORIGINS == "*":
    logger.warning(
        "CORS is configured to allow all origins. "
        "This is insecure for production. Set CORS_ORIGINS to specific domains."
    )
cors_origins = [origin.strip() for origin in settings.CORS_ORIGINS.split(",")]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "Origin", "X-Requested-With"],
    max_age=600,  # Cache preflight requests for 10 minutes
)
app.add_middleware(SecurityHeadersMiddleware)

install_error_handlers(app)

app.include_router(system.router)
app.include_router(auth.router)
app.include_router(categories.router)
app.include_router(blogs.router)
app.include_router(comments.router)
app.include_router(bookmarks.router)
app.include_router(events.router)
app.include_router(notifications.router)
app.include_router(admin.router)
