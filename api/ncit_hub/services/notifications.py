"""Service for managing notifications."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import models, settings
from ..cache import cache_delete, cache_get, cache_set
from ..errors import InvalidRequestError, NotFoundError
from ..websocket_manager import connection_manager, user_channel

logger = logging.getLogger(__name__)

NOTIFICATION_TYPES = (
    "blog_comment",
    "blog_like",
    "event_reminder",
    "registration_confirmation",
    "blog_published",
    "blog_approved",
    "blog_rejected",
    "blog_submitted",
)

UNREAD_COUNT_TTL = 7 * 24 * 60 * 60


def _unread_key(user_id: int) -> str:
    return f"user:{user_id}:unread_count"


def serialize_notification(notification: models.Notification) -> dict:
    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "link": notification.link,
        "is_read": notification.is_read,
        "created_at": notification.created_at.isoformat() if notification.created_at else None,
    }


class NotificationService:
    """Service for creating and managing notifications."""

    @staticmethod
    def create_notification(
        db: Session,
        user_id: int,
        notification_type: str,
        title: str,
        message: str,
        link: str | None = None,
    ) -> models.Notification:
        """Store an unread notification and push it to the user's channel."""
        if not user_id:
            raise InvalidRequestError("user_id is required")
        if notification_type not in NOTIFICATION_TYPES:
            raise InvalidRequestError(f"Unknown notification type: {notification_type}")
        if not title or not title.strip():
            raise InvalidRequestError("title is required")
        if not message or not message.strip():
            raise InvalidRequestError("message is required")

        notification = models.Notification(
            user_id=user_id,
            type=notification_type,
            title=title.strip(),
            message=message.strip(),
            link=link or None,
            is_read=False,
        )
        db.add(notification)
        db.commit()
        db.refresh(notification)

        cache_delete(_unread_key(user_id))
        connection_manager.publish(
            user_channel(user_id), "INSERT", serialize_notification(notification)
        )

        logger.info(f"Created {notification_type} notification {notification.id} for user {user_id}")
        return notification

    @staticmethod
    def list_for_user(
        db: Session,
        user_id: int,
        limit: int | None = None,
        unread_only: bool = False,
    ) -> list[models.Notification]:
        """Newest first, capped at limit."""
        query = db.query(models.Notification).filter(
            models.Notification.user_id == user_id
        )
        if unread_only:
            query = query.filter(models.Notification.is_read == False)

        return (
            query.order_by(
                models.Notification.created_at.desc(), models.Notification.id.desc()
            )
            .limit(limit or settings.NOTIFICATION_LIST_LIMIT)
            .all()
        )

    @staticmethod
    def get_unread_count(db: Session, user_id: int) -> int:
        """Get unread notification count for a user."""
        cached = cache_get(_unread_key(user_id))
        if cached is not None:
            return int(cached)

        count = db.query(func.count(models.Notification.id)).filter(
            models.Notification.user_id == user_id,
            models.Notification.is_read == False,
        ).scalar() or 0

        cache_set(_unread_key(user_id), count, ttl=UNREAD_COUNT_TTL)
        return count

    @staticmethod
    def _get_owned(db: Session, notification_id: int, user_id: int) -> models.Notification:
        notification = db.query(models.Notification).filter(
            models.Notification.id == notification_id,
            models.Notification.user_id == user_id,
        ).first()
        if not notification:
            raise NotFoundError("Notification not found")
        return notification

    @staticmethod
    def mark_as_read(db: Session, notification_id: int, user_id: int) -> models.Notification:
        notification = NotificationService._get_owned(db, notification_id, user_id)
        notification.is_read = True
        db.commit()
        db.refresh(notification)
        cache_delete(_unread_key(user_id))
        return notification

    @staticmethod
    def mark_all_as_read(db: Session, user_id: int) -> int:
        updated = db.query(models.Notification).filter(
            models.Notification.user_id == user_id,
            models.Notification.is_read == False,
        ).update({"is_read": True}, synchronize_session=False)
        db.commit()
        cache_delete(_unread_key(user_id))
        return updated

    @staticmethod
    def delete(db: Session, notification_id: int, user_id: int) -> None:
        notification = NotificationService._get_owned(db, notification_id, user_id)
        db.delete(notification)
        db.commit()
        cache_delete(_unread_key(user_id))

    @staticmethod
    def delete_all(db: Session, user_id: int) -> int:
        deleted = db.query(models.Notification).filter(
            models.Notification.user_id == user_id
        ).delete(synchronize_session=False)
        db.commit()
        cache_delete(_unread_key(user_id))
        return deleted


# ============================================================================
# Helpers for the portal's notification kinds
# ============================================================================


def notify_blog_approved(db: Session, user_id: int, blog_title: str, blog_id: int) -> models.Notification:
    return NotificationService.create_notification(
        db,
        user_id=user_id,
        notification_type="blog_approved",
        title="Blog Approved!",
        message=f'Your blog "{blog_title}" has been approved and is now published.',
        link=f"/blogs/{blog_id}",
    )


def notify_admin_blog_submitted(
    db: Session, blog_title: str, author_name: str
) -> list[models.Notification]:
    """One blog_submitted notification per admin."""
    admins = db.query(models.User).filter(models.User.role == "admin").all()
    if not admins:
        raise NotFoundError("No admin users found")

    return [
        NotificationService.create_notification(
            db,
            user_id=admin.id,
            notification_type="blog_submitted",
            title="New Blog Submitted",
            message=f'{author_name} submitted a new blog "{blog_title}" for review.',
            link="/admin/review",
        )
        for admin in admins
    ]


def notify_blog_rejected(
    db: Session, user_id: int, blog_title: str, blog_id: int, reason: str | None = None
) -> models.Notification:
    if reason:
        message = f'Your blog "{blog_title}" was not approved. Reason: {reason}'
    else:
        message = f'Your blog "{blog_title}" was not approved. Please review and resubmit.'

    return NotificationService.create_notification(
        db,
        user_id=user_id,
        notification_type="blog_rejected",
        title="Blog Needs Revision",
        message=message,
        link=f"/edit-blog/{blog_id}",
    )


def notify_event_registration(
    db: Session, user_id: int, event_title: str, event_id: int, event_date: datetime
) -> models.Notification:
    date_text = f"{event_date:%A}, {event_date:%B} {event_date.day}, {event_date.year}"
    return NotificationService.create_notification(
        db,
        user_id=user_id,
        notification_type="registration_confirmation",
        title="Event Registration Confirmed",
        message=f'You\'re registered for "{event_title}" on {date_text}',
        link=f"/events/{event_id}",
    )


def reminder_time_text(hours_until: int) -> str:
    """
    >>> reminder_time_text(5)
    'in 5 hours'
    >>> reminder_time_text(49)
    'in 2 days'
    """
    if hours_until < 24:
        return f"in {hours_until} hours"
    return f"in {hours_until // 24} days"


def notify_event_reminder(
    db: Session, user_id: int, event_title: str, event_id: int, hours_until: int
) -> models.Notification:
    return NotificationService.create_notification(
        db,
        user_id=user_id,
        notification_type="event_reminder",
        title="Event Reminder",
        message=f'"{event_title}" is coming up {reminder_time_text(hours_until)}!',
        link=f"/events/{event_id}",
    )


def notify_blog_comment(
    db: Session, user_id: int, commenter_name: str, blog_title: str, blog_id: int
) -> models.Notification:
    return NotificationService.create_notification(
        db,
        user_id=user_id,
        notification_type="blog_comment",
        title="New Comment",
        message=f'{commenter_name} commented on your blog "{blog_title}".',
        link=f"/blogs/{blog_id}",
    )


def notify_blog_like(
    db: Session, user_id: int, liker_name: str, blog_title: str, blog_id: int
) -> models.Notification:
    return NotificationService.create_notification(
        db,
        user_id=user_id,
        notification_type="blog_like",
        title="New Like",
        message=f'{liker_name} liked your blog "{blog_title}".',
        link=f"/blogs/{blog_id}",
    )
