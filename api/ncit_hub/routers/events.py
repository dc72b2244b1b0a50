"""Event endpoints. All of them sit behind the event_management toggle."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user, require_admin
from ..deps import get_db, require_event_management
from ..services import events as event_service

router = APIRouter(
    prefix="/events",
    tags=["Events"],
    dependencies=[Depends(require_event_management)],
)


def _event_list(events: list[models.Event]) -> list[schemas.Event]:
    return [schemas.Event.model_validate(e) for e in events]


@router.get("", response_model=list[schemas.Event])
def list_events(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
) -> list[schemas.Event]:
    """All events by date, soonest first."""
    return _event_list(event_service.list_events(db, limit=limit, offset=offset))


@router.post("", response_model=schemas.Event, status_code=status.HTTP_201_CREATED)
def create_event(
    payload: schemas.EventCreate,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> schemas.Event:
    event = event_service.create_event(db, admin, payload.model_dump())
    return schemas.Event.model_validate(event)


@router.get("/upcoming", response_model=list[schemas.Event])
def list_upcoming_events(
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
) -> list[schemas.Event]:
    return _event_list(event_service.list_upcoming(db, limit=limit))


@router.get("/search", response_model=list[schemas.Event])
def search_events(
    q: str = Query(..., min_length=1, max_length=200),
    db: Session = Depends(get_db),
) -> list[schemas.Event]:
    return _event_list(event_service.search_events(db, q))


@router.get("/mine", response_model=list[schemas.Event])
def list_my_events(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> list[schemas.Event]:
    """Events organized by the caller."""
    return _event_list(event_service.list_by_organizer(db, current_user.id))


@router.get("/registrations", response_model=list[schemas.RegistrationWithEvent])
def list_my_registrations(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> list[schemas.RegistrationWithEvent]:
    """The caller's registrations, newest first."""
    registrations = event_service.user_registrations(db, current_user.id)
    return [schemas.RegistrationWithEvent.model_validate(r) for r in registrations]


@router.get("/organizer/{organizer_id}", response_model=list[schemas.Event])
def list_organizer_events(organizer_id: int, db: Session = Depends(get_db)) -> list[schemas.Event]:
    return _event_list(event_service.list_by_organizer(db, organizer_id))


@router.get("/category/{category_id}", response_model=list[schemas.Event])
def list_category_events(category_id: int, db: Session = Depends(get_db)) -> list[schemas.Event]:
    return _event_list(event_service.list_by_category(db, category_id))


@router.get("/slug/{slug}", response_model=schemas.Event)
def get_event_by_slug(slug: str, db: Session = Depends(get_db)) -> schemas.Event:
    return schemas.Event.model_validate(event_service.get_event_by_slug(db, slug))


@router.get("/{event_id}", response_model=schemas.Event)
def get_event(event_id: int, db: Session = Depends(get_db)) -> schemas.Event:
    return schemas.Event.model_validate(event_service.get_event(db, event_id))


@router.patch("/{event_id}", response_model=schemas.Event)
def update_event(
    event_id: int,
    payload: schemas.EventUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Event:
    event = event_service.get_event(db, event_id)
    event = event_service.update_event(
        db, event, payload.model_dump(exclude_unset=True), current_user
    )
    return schemas.Event.model_validate(event)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_event(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> None:
    event = event_service.get_event(db, event_id)
    event_service.delete_event(db, event, current_user)


@router.post(
    "/{event_id}/register",
    response_model=schemas.Registration,
    status_code=status.HTTP_201_CREATED,
)
def register_for_event(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Registration:
    registration = event_service.register(db, event_id, current_user)
    return schemas.Registration.model_validate(registration)


@router.delete("/{event_id}/register", status_code=status.HTTP_204_NO_CONTENT)
def cancel_registration(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> None:
    event_service.cancel_registration(db, event_id, current_user)


@router.get("/{event_id}/registration", response_model=schemas.RegistrationStatus)
def get_registration_status(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.RegistrationStatus:
    return schemas.RegistrationStatus(
        event_id=event_id,
        registered=event_service.is_registered(db, event_id, current_user.id),
    )


@router.get("/{event_id}/participants", response_model=list[schemas.Participant])
def list_participants(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> list[schemas.Participant]:
    """Registrations with profiles. Organizer or admin only."""
    event = event_service.get_event(db, event_id)
    registrations = event_service.list_participants(db, event, current_user)
    return [schemas.Participant.model_validate(r) for r in registrations]
