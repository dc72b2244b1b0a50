"""Events, registrations and reminders."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from .. import models
from ..errors import (
    ConflictError,
    CounterUpdateError,
    InvalidRequestError,
    NotFoundError,
    PermissionDeniedError,
)
from ..utils.text import generate_slug
from . import counters
from .notifications import notify_event_registration, notify_event_reminder

logger = logging.getLogger(__name__)

CLOSED_STATUSES = ("cancelled", "completed")

UPDATABLE_FIELDS = (
    "title",
    "description",
    "category_id",
    "event_date",
    "end_date",
    "location",
    "max_participants",
    "registration_deadline",
    "images",
    "featured_image",
    "status",
)

DATE_FIELDS = ("event_date", "end_date", "registration_deadline")

# Columns that cannot be cleared; an explicit null leaves them unchanged
REQUIRED_FIELDS = ("title", "description", "event_date", "location", "status")


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime | None) -> datetime | None:
    """Normalize to naive UTC, which is how timestamps are stored and compared."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _event_query(db: Session):
    return db.query(models.Event).options(
        joinedload(models.Event.organizer), joinedload(models.Event.category)
    )


def _by_date(query):
    return query.order_by(models.Event.event_date.asc(), models.Event.id.asc())


def _require_manager(event: models.Event, actor: models.User) -> None:
    if event.organizer_id != actor.id and not actor.is_admin:
        raise PermissionDeniedError("Only the organizer or an admin can manage this event")


def unique_slug(db: Session, title: str, exclude_id: int | None = None) -> str:
    """Slug from the title, suffixed -1, -2, ... until it is unused."""
    base = generate_slug(title) or "event"
    candidate = base
    suffix = 0
    while True:
        query = db.query(models.Event.id).filter(models.Event.slug == candidate)
        if exclude_id is not None:
            query = query.filter(models.Event.id != exclude_id)
        if query.first() is None:
            return candidate
        suffix += 1
        candidate = f"{base}-{suffix}"


def _validate(data: dict[str, Any]) -> None:
    status_value = data.get("status")
    if status_value is not None and status_value not in models.EVENT_STATUSES:
        raise InvalidRequestError(f"Invalid event status: {status_value}")

    max_participants = data.get("max_participants")
    if max_participants is not None and max_participants < 1:
        raise InvalidRequestError("max_participants must be at least 1")

    event_date = data.get("event_date")
    end_date = data.get("end_date")
    if event_date and end_date and end_date < event_date:
        raise InvalidRequestError("end_date must not be before event_date")


# ============================================================================
# Event CRUD
# ============================================================================


def create_event(db: Session, organizer: models.User, data: dict[str, Any]) -> models.Event:
    if not organizer.is_admin:
        raise PermissionDeniedError("Only admins can create events")

    data = {
        key: as_naive_utc(value) if key in DATE_FIELDS else value
        for key, value in data.items()
    }
    _validate(data)

    event = models.Event(
        title=data["title"].strip(),
        slug=unique_slug(db, data["title"]),
        description=data["description"],
        organizer_id=organizer.id,
        category_id=data.get("category_id"),
        event_date=data["event_date"],
        end_date=data.get("end_date"),
        location=data["location"],
        max_participants=data.get("max_participants"),
        current_participants=0,
        registration_deadline=data.get("registration_deadline"),
        images=data.get("images") or [],
        featured_image=data.get("featured_image"),
        status=data.get("status") or "upcoming",
    )
    db.add(event)
    db.commit()
    db.refresh(event)

    logger.info(f"Admin {organizer.id} created event {event.id} ({event.slug})")
    return event


def update_event(
    db: Session, event: models.Event, updates: dict[str, Any], actor: models.User
) -> models.Event:
    """Partial update. The slug stays fixed once created."""
    _require_manager(event, actor)

    updates = {
        key: as_naive_utc(value) if key in DATE_FIELDS else value
        for key, value in updates.items()
        if value is not None or key not in REQUIRED_FIELDS
    }
    merged = {
        "event_date": updates.get("event_date", as_naive_utc(event.event_date)),
        "end_date": updates.get("end_date", as_naive_utc(event.end_date)),
        "status": updates.get("status"),
        "max_participants": updates.get("max_participants"),
    }
    _validate(merged)

    for field in UPDATABLE_FIELDS:
        if field in updates:
            value = updates[field]
            if field == "images" and value is None:
                value = []
            setattr(event, field, value)

    event.updated_at = _now()
    db.commit()
    db.refresh(event)
    return event


def delete_event(db: Session, event: models.Event, actor: models.User) -> None:
    _require_manager(event, actor)

    event_id = event.id
    db.delete(event)
    db.commit()
    logger.info(f"User {actor.id} deleted event {event_id}")


def get_event(db: Session, event_id: int) -> models.Event:
    event = _event_query(db).filter(models.Event.id == event_id).first()
    if not event:
        raise NotFoundError("Event not found")
    return event


def get_event_by_slug(db: Session, slug: str) -> models.Event:
    event = _event_query(db).filter(models.Event.slug == slug).first()
    if not event:
        raise NotFoundError("Event not found")
    return event


def list_events(db: Session, limit: int = 100, offset: int = 0) -> list[models.Event]:
    return _by_date(_event_query(db)).offset(offset).limit(limit).all()


def list_upcoming(db: Session, limit: int = 100) -> list[models.Event]:
    query = _event_query(db).filter(
        models.Event.event_date >= _now(),
        models.Event.status == "upcoming",
    )
    return _by_date(query).limit(limit).all()


def list_by_organizer(db: Session, organizer_id: int) -> list[models.Event]:
    return _by_date(
        _event_query(db).filter(models.Event.organizer_id == organizer_id)
    ).all()


def list_by_category(db: Session, category_id: int) -> list[models.Event]:
    return _by_date(
        _event_query(db).filter(models.Event.category_id == category_id)
    ).all()


def search_events(db: Session, query_text: str) -> list[models.Event]:
    query_text = query_text.strip()
    if not query_text:
        return []

    pattern = f"%{query_text}%"
    query = _event_query(db).filter(
        or_(
            models.Event.title.ilike(pattern),
            models.Event.description.ilike(pattern),
            models.Event.location.ilike(pattern),
        )
    )
    return _by_date(query).all()


# ============================================================================
# Registrations
# ============================================================================


def get_registration(
    db: Session, event_id: int, user_id: int
) -> models.EventRegistration | None:
    return db.query(models.EventRegistration).filter(
        models.EventRegistration.event_id == event_id,
        models.EventRegistration.user_id == user_id,
    ).first()


def is_registered(db: Session, event_id: int, user_id: int) -> bool:
    return get_registration(db, event_id, user_id) is not None


def register(db: Session, event_id: int, user: models.User) -> models.EventRegistration:
    """
    Register a user for an event.

    The capacity check and the participant increment are separate statements
    with no lock between them. If the increment fails the registration row
    just inserted is deleted again.
    """
    event = db.query(models.Event).filter(models.Event.id == event_id).first()
    if not event:
        raise NotFoundError("Event not found")

    if event.status in CLOSED_STATUSES:
        raise InvalidRequestError(f"Registration is closed for {event.status} events")

    deadline = as_naive_utc(event.registration_deadline)
    if deadline is not None and deadline < _now():
        raise InvalidRequestError("Registration deadline has passed")

    if get_registration(db, event.id, user.id):
        raise ConflictError("Already registered for this event")

    if (
        event.max_participants is not None
        and event.current_participants >= event.max_participants
    ):
        raise ConflictError("Event is full")

    registration = models.EventRegistration(
        event_id=event.id, user_id=user.id, status="registered"
    )
    db.add(registration)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Already registered for this event")
    db.refresh(registration)

    try:
        updated = counters.increment_event_participants(db, event.id)
        if not updated:
            raise RuntimeError(f"event {event.id} no longer exists")
    except Exception as e:
        logger.error(
            f"Participant count update failed for event {event.id}, "
            f"removing registration {registration.id}: {e}",
            exc_info=True,
        )
        db.rollback()
        db.query(models.EventRegistration).filter(
            models.EventRegistration.id == registration.id
        ).delete(synchronize_session=False)
        db.commit()
        raise CounterUpdateError("Failed to update participant count")

    db.refresh(event)
    notify_event_registration(db, user.id, event.title, event.id, as_naive_utc(event.event_date))

    logger.info(f"User {user.id} registered for event {event.id}")
    return registration


def cancel_registration(db: Session, event_id: int, user: models.User) -> None:
    registration = get_registration(db, event_id, user.id)
    if not registration:
        raise NotFoundError("Registration not found")

    db.delete(registration)
    db.commit()
    counters.decrement_event_participants(db, event_id)

    logger.info(f"User {user.id} cancelled registration for event {event_id}")


def user_registrations(db: Session, user_id: int) -> list[models.EventRegistration]:
    """A user's registrations with their events, newest registration first."""
    return (
        db.query(models.EventRegistration)
        .options(
            joinedload(models.EventRegistration.event).joinedload(models.Event.organizer),
            joinedload(models.EventRegistration.event).joinedload(models.Event.category),
        )
        .filter(models.EventRegistration.user_id == user_id)
        .order_by(
            models.EventRegistration.registration_date.desc(),
            models.EventRegistration.id.desc(),
        )
        .all()
    )


def list_participants(
    db: Session, event: models.Event, actor: models.User
) -> list[models.EventRegistration]:
    _require_manager(event, actor)
    return (
        db.query(models.EventRegistration)
        .options(joinedload(models.EventRegistration.user))
        .filter(models.EventRegistration.event_id == event.id)
        .order_by(
            models.EventRegistration.registration_date.asc(),
            models.EventRegistration.id.asc(),
        )
        .all()
    )


# ============================================================================
# Reminders
# ============================================================================


def send_event_reminders(db: Session, within_hours: int = 24) -> int:
    """
    Remind registrants of upcoming events starting within the window.

    Each registration is reminded once; reminded_at marks it done.
    Returns the number of reminders sent.
    """
    now = _now()
    window_end = now + timedelta(hours=within_hours)

    registrations = (
        db.query(models.EventRegistration)
        .join(models.Event, models.Event.id == models.EventRegistration.event_id)
        .options(joinedload(models.EventRegistration.event))
        .filter(
            models.Event.status == "upcoming",
            models.Event.event_date >= now,
            models.Event.event_date <= window_end,
            models.EventRegistration.status == "registered",
            models.EventRegistration.reminded_at.is_(None),
        )
        .all()
    )

    sent = 0
    for registration in registrations:
        event = registration.event
        seconds_until = (as_naive_utc(event.event_date) - now).total_seconds()
        hours_until = max(int(round(seconds_until / 3600)), 1)

        notify_event_reminder(db, registration.user_id, event.title, event.id, hours_until)
        registration.reminded_at = now
        db.commit()
        sent += 1

    if sent:
        logger.info(f"Sent {sent} event reminder(s)")
    return sent
