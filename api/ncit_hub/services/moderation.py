"""Admin review of submitted blogs."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from .. import models
from ..errors import InvalidRequestError, PermissionDeniedError
from ..utils.audit import log_moderation_action
from .notifications import notify_blog_approved, notify_blog_rejected

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _require_admin(actor: models.User) -> None:
    if not actor.is_admin:
        raise PermissionDeniedError("Unauthorized - Admin access required")


def approve_blog(db: Session, blog: models.Blog, admin: models.User) -> models.Blog:
    """Publish a blog and let its author know."""
    _require_admin(admin)

    if blog.status != "published":
        blog.published_at = _now()
    blog.status = "published"
    blog.rejection_reason = None
    blog.updated_at = _now()
    db.commit()
    db.refresh(blog)

    log_moderation_action(
        db, actor_id=admin.id, action="approve_blog", target_type="blog", target_id=blog.id
    )
    notify_blog_approved(db, blog.author_id, blog.title, blog.id)

    logger.info(f"Admin {admin.id} approved blog {blog.id}")
    return blog


def reject_blog(
    db: Session, blog: models.Blog, admin: models.User, reason: str | None
) -> models.Blog:
    """Archive a blog with feedback for its author. A reason is required."""
    _require_admin(admin)

    reason = (reason or "").strip()
    if not reason:
        raise InvalidRequestError("A rejection reason is required")

    blog.status = "archived"
    blog.rejection_reason = reason
    blog.updated_at = _now()
    db.commit()
    db.refresh(blog)

    log_moderation_action(
        db,
        actor_id=admin.id,
        action="reject_blog",
        target_type="blog",
        target_id=blog.id,
        note=reason,
    )
    notify_blog_rejected(db, blog.author_id, blog.title, blog.id, reason)

    logger.info(f"Admin {admin.id} rejected blog {blog.id}")
    return blog
