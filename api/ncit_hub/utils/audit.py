"""Audit logging utility for admin actions."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from .. import models

logger = logging.getLogger(__name__)


def log_moderation_action(
    db: Session,
    actor_id: int | None,
    action: str,
    target_type: str | None = None,
    target_id: int | str | None = None,
    note: str | None = None,
) -> models.AuditLog:
    """
    Log an admin action to the audit log.

    Args:
        db: Database session
        actor_id: ID of the admin performing the action (None for scheduled jobs)
        action: Action name (e.g., "approve_blog", "reject_blog", "change_role")
        target_type: Type of target (e.g., "blog", "user", "feature")
        target_id: ID of the target entity
        note: Additional context, such as a rejection reason

    Returns:
        The created AuditLog entry
    """
    audit_entry = models.AuditLog(
        actor_id=actor_id,
        action=action,
        target_type=target_type,
        target_id=str(target_id) if target_id is not None else None,
        note=note,
    )
    db.add(audit_entry)
    db.commit()
    db.refresh(audit_entry)
    logger.info(f"Audit: actor={actor_id} action={action} target={target_type}:{target_id}")
    return audit_entry
