from __future__ import annotations

from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from . import settings
from .db import get_session
from .errors import FeatureDisabledError
from .services.feature_toggles import EVENT_MANAGEMENT, is_enabled


def get_db() -> Generator[Session, None, None]:
    yield from get_session()


def require_event_management(db: Session = Depends(get_db)) -> None:
    """Reject event routes with 503 while event management is switched off."""
    if not is_enabled(db, EVENT_MANAGEMENT, default=settings.EVENT_MANAGEMENT_DEFAULT):
        raise FeatureDisabledError("Event management is currently disabled")
