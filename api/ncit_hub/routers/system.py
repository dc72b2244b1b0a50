"""System endpoints."""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import schemas, settings
from ..cache import get_redis
from ..deps import get_db

router = APIRouter(prefix="", tags=["System"])
logger = logging.getLogger(__name__)

# Global startup time for uptime calculation
_STARTUP_TIME = time.time()


@router.get("/health", response_model=schemas.HealthResponse)
def get_health() -> schemas.HealthResponse:
    """Liveness check."""
    uptime_s = time.time() - _STARTUP_TIME
    return schemas.HealthResponse(status="ok", uptime_s=uptime_s)


@router.get("/health/ready", response_model=schemas.ReadinessResponse)
def get_readiness(db: Session = Depends(get_db)) -> schemas.ReadinessResponse:
    """
    Readiness check.

    503 when the database cannot be reached. Redis is optional, so its
    state is only reported.
    """
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Readiness check failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database unavailable",
        )

    if not settings.REDIS_URL:
        redis_state = "disabled"
    elif get_redis() is None:
        redis_state = "unavailable"
    else:
        redis_state = "ok"

    return schemas.ReadinessResponse(database="ok", redis=redis_state)
