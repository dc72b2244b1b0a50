"""Admin endpoints: user management, dashboard stats and feature toggles."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import models, schemas, settings
from ..auth import require_admin
from ..deps import get_db
from ..services import events as event_service
from ..services import feature_toggles
from ..services import users as user_service
from ..utils.audit import log_moderation_action

router = APIRouter(prefix="/admin", tags=["Admin"])
logger = logging.getLogger(__name__)


@router.get("/users", response_model=list[schemas.Profile])
def list_users(
    db: Session = Depends(get_db),
    _admin: models.User = Depends(require_admin),
) -> list[schemas.Profile]:
    """All profiles, newest first."""
    return [schemas.Profile.model_validate(u) for u in user_service.list_users(db)]


@router.patch("/users/{user_id}/role", response_model=schemas.Profile)
def update_user_role(
    user_id: int,
    payload: schemas.RoleUpdate,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> schemas.Profile:
    user = user_service.update_role(db, admin, user_id, payload.role)
    return schemas.Profile.model_validate(user)


@router.patch("/users/{user_id}/disabled", response_model=schemas.Profile)
def update_user_disabled(
    user_id: int,
    payload: schemas.DisabledUpdate,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> schemas.Profile:
    user = user_service.set_disabled(db, admin, user_id, payload.disabled)
    return schemas.Profile.model_validate(user)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> None:
    """Delete a profile along with its blogs, events, comments and registrations."""
    user_service.delete_user(db, admin, user_id)


@router.get("/stats", response_model=schemas.DashboardStats)
def get_stats(
    db: Session = Depends(get_db),
    _admin: models.User = Depends(require_admin),
) -> schemas.DashboardStats:
    return schemas.DashboardStats(**user_service.dashboard_stats(db))


@router.get("/feature-toggles/{feature}", response_model=schemas.FeatureToggle)
def get_feature_toggle(
    feature: str,
    db: Session = Depends(get_db),
    _admin: models.User = Depends(require_admin),
) -> schemas.FeatureToggle:
    return schemas.FeatureToggle.model_validate(feature_toggles.get_toggle(db, feature))


@router.put("/feature-toggles/{feature}", response_model=schemas.FeatureToggle)
def set_feature_toggle(
    feature: str,
    payload: schemas.FeatureToggleUpdate,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> schemas.FeatureToggle:
    toggle = feature_toggles.set_toggle(
        db,
        feature,
        payload.is_enabled,
        updated_by=admin.id,
        description=payload.description,
    )
    log_moderation_action(
        db,
        actor_id=admin.id,
        action="enable_feature" if payload.is_enabled else "disable_feature",
        target_type="feature",
        target_id=feature,
    )
    return schemas.FeatureToggle.model_validate(toggle)


@router.post("/events/send-reminders", response_model=schemas.RemindersSent)
def send_event_reminders(
    within_hours: int = settings.EVENT_REMINDER_WINDOW_HOURS,
    db: Session = Depends(get_db),
    _admin: models.User = Depends(require_admin),
) -> schemas.RemindersSent:
    """Run the reminder sweep now instead of waiting for the scheduled task."""
    sent = event_service.send_event_reminders(db, within_hours=within_hours)
    return schemas.RemindersSent(sent=sent)
