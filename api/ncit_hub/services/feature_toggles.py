"""Site-wide feature toggles."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from .. import models
from ..errors import NotFoundError

logger = logging.getLogger(__name__)

EVENT_MANAGEMENT = "event_management"


def get_toggle(db: Session, feature: str) -> models.FeatureToggle:
    toggle = db.query(models.FeatureToggle).filter(
        models.FeatureToggle.feature == feature
    ).first()
    if not toggle:
        raise NotFoundError(f"Feature toggle '{feature}' not found")
    return toggle


def is_enabled(db: Session, feature: str, default: bool = True) -> bool:
    """Whether a feature is on. A missing toggle row means `default`."""
    toggle = db.query(models.FeatureToggle).filter(
        models.FeatureToggle.feature == feature
    ).first()
    if toggle is None:
        return default
    return bool(toggle.is_enabled)


def set_toggle(
    db: Session,
    feature: str,
    enabled: bool,
    updated_by: int | None = None,
    description: str | None = None,
) -> models.FeatureToggle:
    """Create or update a toggle."""
    toggle = db.query(models.FeatureToggle).filter(
        models.FeatureToggle.feature == feature
    ).first()

    if toggle is None:
        toggle = models.FeatureToggle(feature=feature, description=description)
        db.add(toggle)
    elif description is not None:
        toggle.description = description

    toggle.is_enabled = enabled
    toggle.updated_by = updated_by
    db.commit()
    db.refresh(toggle)

    logger.info(f"Feature '{feature}' {'enabled' if enabled else 'disabled'} by user {updated_by}")
    return toggle
