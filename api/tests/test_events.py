"""Tests for events, registrations, the event toggle and reminders."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from ncit_hub.models import Event, EventRegistration, Notification
from ncit_hub.services import counters
from ncit_hub.services import events as event_service
from ncit_hub.services.feature_toggles import EVENT_MANAGEMENT, set_toggle


def _in(hours: float) -> str:
    return (datetime.now(timezone.utc) + timedelta(hours=hours)).replace(tzinfo=None).isoformat()


def _create_event(client, headers, admin, **overrides) -> dict:
    payload = {
        "title": "Tech Fest 2025",
        "description": "Annual technology festival",
        "event_date": _in(72),
        "location": "Main Auditorium",
    }
    payload.update(overrides)
    response = client.post("/events", headers=headers(admin), json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def _participants(db: Session, event_id: int) -> int:
    db.expire_all()
    return db.query(Event.current_participants).filter(Event.id == event_id).scalar()


def test_only_admins_create_events(client, user, headers):
    response = client.post(
        "/events",
        headers=headers(user),
        json={
            "title": "Unofficial meetup",
            "description": "x",
            "event_date": _in(10),
            "location": "Canteen",
        },
    )
    assert response.status_code == 403


def test_create_event_generates_unique_slugs(client, admin, headers):
    first = _create_event(client, headers, admin)
    second = _create_event(client, headers, admin)
    third = _create_event(client, headers, admin)

    assert first["slug"] == "tech-fest-2025"
    assert second["slug"] == "tech-fest-2025-1"
    assert third["slug"] == "tech-fest-2025-2"
    assert first["status"] == "upcoming"
    assert first["current_participants"] == 0

    response = client.get("/events/slug/tech-fest-2025-1")
    assert response.status_code == 200
    assert response.json()["id"] == second["id"]


def test_event_validation(client, admin, headers):
    response = client.post(
        "/events",
        headers=headers(admin),
        json={
            "title": "Backwards",
            "description": "x",
            "event_date": _in(48),
            "end_date": _in(24),
            "location": "Lab 3",
        },
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "end_date must not be before event_date"


def test_update_keeps_slug(client, admin, user, headers):
    event = _create_event(client, headers, admin)

    response = client.patch(
        f"/events/{event['id']}", headers=headers(admin), json={"title": "Renamed Fest"}
    )
    assert response.status_code == 200
    assert response.json()["title"] == "Renamed Fest"
    assert response.json()["slug"] == "tech-fest-2025"

    response = client.patch(
        f"/events/{event['id']}", headers=headers(user), json={"title": "Hijacked"}
    )
    assert response.status_code == 403


def test_update_ignores_null_for_required_fields(client, admin, headers):
    event = _create_event(client, headers, admin)

    response = client.patch(
        f"/events/{event['id']}",
        headers=headers(admin),
        json={
            "title": None,
            "description": None,
            "event_date": None,
            "location": None,
            "status": None,
            "end_date": None,
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Tech Fest 2025"
    assert body["description"] == "Annual technology festival"
    assert body["location"] == "Main Auditorium"
    assert body["event_date"] == event["event_date"]
    assert body["status"] == "upcoming"
    assert body["end_date"] is None


def test_register_increments_and_notifies(client, admin, user, headers, db: Session):
    event = _create_event(client, headers, admin)

    response = client.post(f"/events/{event['id']}/register", headers=headers(user))
    assert response.status_code == 201
    assert response.json()["status"] == "registered"
    assert _participants(db, event["id"]) == 1

    notification = db.query(Notification).filter(Notification.user_id == user.id).one()
    assert notification.type == "registration_confirmation"
    assert notification.link == f"/events/{event['id']}"
    assert "Tech Fest 2025" in notification.message

    status_response = client.get(f"/events/{event['id']}/registration", headers=headers(user))
    assert status_response.json() == {"event_id": event["id"], "registered": True}

    mine = client.get("/events/registrations", headers=headers(user)).json()
    assert [r["event"]["id"] for r in mine] == [event["id"]]


def test_double_registration_conflicts(client, admin, user, headers, db: Session):
    event = _create_event(client, headers, admin)
    client.post(f"/events/{event['id']}/register", headers=headers(user))

    response = client.post(f"/events/{event['id']}/register", headers=headers(user))
    assert response.status_code == 409
    assert response.json()["detail"] == "Already registered for this event"
    assert _participants(db, event["id"]) == 1


def test_full_event(client, admin, user, other_user, headers, db: Session):
    event = _create_event(client, headers, admin, max_participants=1)
    assert client.post(f"/events/{event['id']}/register", headers=headers(user)).status_code == 201

    response = client.post(f"/events/{event['id']}/register", headers=headers(other_user))
    assert response.status_code == 409
    assert response.json()["detail"] == "Event is full"


def test_registration_deadline(client, admin, user, headers):
    event = _create_event(client, headers, admin, registration_deadline=_in(-1))

    response = client.post(f"/events/{event['id']}/register", headers=headers(user))
    assert response.status_code == 400
    assert response.json()["detail"] == "Registration deadline has passed"


def test_cancelled_event_closed_for_registration(client, admin, user, headers):
    event = _create_event(client, headers, admin, status="cancelled")

    response = client.post(f"/events/{event['id']}/register", headers=headers(user))
    assert response.status_code == 400


def test_register_missing_event(client, user, headers):
    response = client.post("/events/9999/register", headers=headers(user))
    assert response.status_code == 404
    assert response.json()["detail"] == "Event not found"


def test_counter_failure_removes_registration(
    client, admin, user, headers, db: Session, monkeypatch
):
    event = _create_event(client, headers, admin)

    def boom(db, event_id):
        raise RuntimeError("database went away")

    monkeypatch.setattr(counters, "increment_event_participants", boom)

    response = client.post(f"/events/{event['id']}/register", headers=headers(user))
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to update participant count"

    assert db.query(EventRegistration).filter(EventRegistration.event_id == event["id"]).count() == 0
    assert _participants(db, event["id"]) == 0


def test_cancel_registration(client, admin, user, headers, db: Session):
    event = _create_event(client, headers, admin)

    response = client.delete(f"/events/{event['id']}/register", headers=headers(user))
    assert response.status_code == 404
    assert response.json()["detail"] == "Registration not found"

    client.post(f"/events/{event['id']}/register", headers=headers(user))
    assert _participants(db, event["id"]) == 1

    response = client.delete(f"/events/{event['id']}/register", headers=headers(user))
    assert response.status_code == 204
    assert _participants(db, event["id"]) == 0


def test_participants_visible_to_managers_only(client, admin, user, headers):
    event = _create_event(client, headers, admin)
    client.post(f"/events/{event['id']}/register", headers=headers(user))

    response = client.get(f"/events/{event['id']}/participants", headers=headers(admin))
    assert response.status_code == 200
    assert [p["user"]["full_name"] for p in response.json()] == ["Sita Sharma"]

    response = client.get(f"/events/{event['id']}/participants", headers=headers(user))
    assert response.status_code == 403


def test_listing_and_search(client, admin, headers):
    later = _create_event(client, headers, admin, title="Football Final", event_date=_in(200))
    sooner = _create_event(client, headers, admin, title="Coding Contest", event_date=_in(20))
    _create_event(client, headers, admin, title="Old Seminar", event_date=_in(-48), status="completed")

    upcoming = client.get("/events/upcoming").json()
    assert [e["id"] for e in upcoming] == [sooner["id"], later["id"]]

    found = client.get("/events/search", params={"q": "coding"}).json()
    assert [e["id"] for e in found] == [sooner["id"]]

    mine = client.get("/events/mine", headers=headers(admin)).json()
    assert len(mine) == 3


def test_disabled_toggle_blocks_events(client, admin, db: Session):
    set_toggle(db, EVENT_MANAGEMENT, False, updated_by=admin.id)

    response = client.get("/events")
    assert response.status_code == 503
    assert response.json()["detail"] == "Event management is currently disabled"

    set_toggle(db, EVENT_MANAGEMENT, True, updated_by=admin.id)
    assert client.get("/events").status_code == 200


def test_reminders_sent_once(client, admin, user, other_user, headers, db: Session):
    soon = _create_event(client, headers, admin, title="Blood Drive", event_date=_in(5))
    far = _create_event(client, headers, admin, title="Convocation", event_date=_in(24 * 10))
    client.post(f"/events/{soon['id']}/register", headers=headers(user))
    client.post(f"/events/{far['id']}/register", headers=headers(other_user))

    assert event_service.send_event_reminders(db, within_hours=24) == 1
    assert event_service.send_event_reminders(db, within_hours=24) == 0

    reminder = db.query(Notification).filter(
        Notification.user_id == user.id, Notification.type == "event_reminder"
    ).one()
    assert reminder.message == '"Blood Drive" is coming up in 5 hours!'

    assert db.query(Notification).filter(
        Notification.user_id == other_user.id, Notification.type == "event_reminder"
    ).count() == 0


def test_admin_reminder_endpoint(client, admin, user, headers):
    event = _create_event(client, headers, admin, event_date=_in(3))
    client.post(f"/events/{event['id']}/register", headers=headers(user))

    response = client.post("/admin/events/send-reminders", headers=headers(admin))
    assert response.status_code == 200
    assert response.json() == {"sent": 1}

    response = client.post("/admin/events/send-reminders", headers=headers(user))
    assert response.status_code == 403
