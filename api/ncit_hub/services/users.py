"""Profiles: sign-up, self-service edits and admin user management."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import models
from ..errors import (
    ConflictError,
    InvalidRequestError,
    NotFoundError,
    OperationFailedError,
    PermissionDeniedError,
)
from ..utils.audit import log_moderation_action
from .auth_identities import create_password_identity

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("full_name", "avatar_url", "department", "year", "bio")


def get_user(db: Session, user_id: int) -> models.User:
    user = db.query(models.User).filter(models.User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def get_user_by_email(db: Session, email: str) -> models.User | None:
    return db.query(models.User).filter(
        func.lower(models.User.email) == email.strip().lower()
    ).first()


def register_user(
    db: Session,
    email: str,
    password: str,
    full_name: str | None = None,
    role: str = "user",
) -> models.User:
    """Create a profile with a password identity."""
    email = email.strip().lower()
    if get_user_by_email(db, email):
        raise ConflictError("Email already registered")

    user = models.User(email=email, full_name=full_name, role=role)
    db.add(user)
    db.commit()
    db.refresh(user)

    create_password_identity(db, user.id, email, password)

    logger.info(f"Registered user {user.id} with role {role}")
    return user


def update_profile(db: Session, user: models.User, updates: dict[str, Any]) -> models.User:
    for field in PROFILE_FIELDS:
        if field in updates:
            setattr(user, field, updates[field])
    db.commit()
    db.refresh(user)
    return user


# ============================================================================
# Admin user management
# ============================================================================


def list_users(db: Session) -> list[models.User]:
    """All profiles, newest first."""
    return db.query(models.User).order_by(
        models.User.created_at.desc(), models.User.id.desc()
    ).all()


def update_role(db: Session, admin: models.User, user_id: int, role: str) -> models.User:
    if role not in models.USER_ROLES:
        raise InvalidRequestError(f"Invalid role: {role}")

    user = get_user(db, user_id)
    if user.id == admin.id and role != "admin":
        raise PermissionDeniedError("You cannot remove your own admin role")

    previous = user.role
    user.role = role
    db.commit()
    db.refresh(user)

    log_moderation_action(
        db,
        actor_id=admin.id,
        action="change_role",
        target_type="user",
        target_id=user.id,
        note=f"{previous} -> {role}",
    )
    return user


def set_disabled(db: Session, admin: models.User, user_id: int, disabled: bool) -> models.User:
    """Enable or disable a profile. Disabling also revokes its refresh tokens."""
    user = get_user(db, user_id)
    if user.id == admin.id and disabled:
        raise PermissionDeniedError("You cannot disable your own account")

    user.disabled = disabled
    if disabled:
        db.query(models.RefreshToken).filter(
            models.RefreshToken.user_id == user.id,
            models.RefreshToken.revoked == False,
        ).update({"revoked": True}, synchronize_session=False)
    db.commit()
    db.refresh(user)

    log_moderation_action(
        db,
        actor_id=admin.id,
        action="disable_user" if disabled else "enable_user",
        target_type="user",
        target_id=user.id,
    )
    return user


def delete_user(db: Session, admin: models.User, user_id: int) -> None:
    """Delete a profile and everything it owns, then verify the row is gone."""
    user = get_user(db, user_id)
    if user.id == admin.id:
        raise PermissionDeniedError("You cannot delete your own account")

    email = user.email
    db.delete(user)
    db.commit()

    if db.query(models.User.id).filter(models.User.id == user_id).first() is not None:
        logger.error(f"User {user_id} still present after delete")
        raise OperationFailedError("Failed to delete user profile")

    log_moderation_action(
        db,
        actor_id=admin.id,
        action="delete_user",
        target_type="user",
        target_id=user_id,
        note=email,
    )


def dashboard_stats(db: Session) -> dict[str, Any]:
    """Counts for the admin dashboard."""
    blog_rows = db.query(models.Blog.status, func.count(models.Blog.id)).group_by(
        models.Blog.status
    ).all()
    blogs_by_status = {status_value: 0 for status_value in models.BLOG_STATUSES}
    blogs_by_status.update({status_value: count for status_value, count in blog_rows})

    return {
        "total_users": db.query(func.count(models.User.id)).scalar() or 0,
        "total_admins": db.query(func.count(models.User.id)).filter(
            models.User.role == "admin"
        ).scalar() or 0,
        "total_blogs": sum(blogs_by_status.values()),
        "blogs_by_status": blogs_by_status,
        "pending_reviews": blogs_by_status["pending"],
        "total_events": db.query(func.count(models.Event.id)).scalar() or 0,
        "upcoming_events": db.query(func.count(models.Event.id)).filter(
            models.Event.status == "upcoming"
        ).scalar() or 0,
        "total_registrations": db.query(func.count(models.EventRegistration.id)).scalar() or 0,
        "total_comments": db.query(func.count(models.Comment.id)).scalar() or 0,
    }
