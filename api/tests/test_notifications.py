"""Tests for notifications and realtime delivery."""

from __future__ import annotations

import asyncio

import pytest
from sqlalchemy.orm import Session
from starlette.websockets import WebSocketDisconnect

from ncit_hub.auth import create_access_token
from ncit_hub.errors import InvalidRequestError, NotFoundError
from ncit_hub.services.notifications import (
    NotificationService,
    notify_admin_blog_submitted,
    notify_blog_approved,
    reminder_time_text,
)
from ncit_hub.websocket_manager import ConnectionManager, blog_channel, user_channel


def test_list_and_unread_count(client, user, other_user, headers, db: Session):
    notify_blog_approved(db, user.id, "First", 1)
    notify_blog_approved(db, user.id, "Second", 2)
    notify_blog_approved(db, other_user.id, "Not yours", 3)

    response = client.get("/notifications", headers=headers(user))
    assert response.status_code == 200
    notifications = response.json()
    assert [n["link"] for n in notifications] == ["/blogs/2", "/blogs/1"]
    assert all(n["is_read"] is False for n in notifications)

    response = client.get("/notifications/unread-count", headers=headers(user))
    assert response.json() == {"unread_count": 2}


def test_mark_read(client, user, other_user, headers, db: Session):
    first = notify_blog_approved(db, user.id, "First", 1)
    notify_blog_approved(db, user.id, "Second", 2)

    response = client.post(f"/notifications/{first.id}/read", headers=headers(other_user))
    assert response.status_code == 404
    assert response.json()["detail"] == "Notification not found"

    response = client.post(f"/notifications/{first.id}/read", headers=headers(user))
    assert response.status_code == 200
    assert response.json()["is_read"] is True
    assert client.get("/notifications/unread-count", headers=headers(user)).json() == {
        "unread_count": 1
    }

    unread = client.get("/notifications", params={"unread_only": True}, headers=headers(user))
    assert len(unread.json()) == 1

    response = client.post("/notifications/mark-all-read", headers=headers(user))
    assert response.status_code == 204
    assert client.get("/notifications/unread-count", headers=headers(user)).json() == {
        "unread_count": 0
    }


def test_delete_notifications(client, user, headers, db: Session):
    first = notify_blog_approved(db, user.id, "First", 1)
    notify_blog_approved(db, user.id, "Second", 2)
    notify_blog_approved(db, user.id, "Third", 3)

    response = client.delete(f"/notifications/{first.id}", headers=headers(user))
    assert response.status_code == 204
    assert len(client.get("/notifications", headers=headers(user)).json()) == 2

    response = client.delete("/notifications", headers=headers(user))
    assert response.status_code == 204
    assert client.get("/notifications", headers=headers(user)).json() == []


def test_list_limit(client, user, headers, db: Session):
    for i in range(5):
        notify_blog_approved(db, user.id, f"Blog {i}", i)

    response = client.get("/notifications", params={"limit": 3}, headers=headers(user))
    assert len(response.json()) == 3


def test_admin_creates_notification(client, admin, user, headers):
    payload = {
        "user_id": user.id,
        "type": "blog_published",
        "title": "Featured",
        "message": "Your blog is on the front page",
        "link": "/blogs/1",
    }

    response = client.post("/notifications", headers=headers(user), json=payload)
    assert response.status_code == 403

    response = client.post("/notifications", headers=headers(admin), json=payload)
    assert response.status_code == 201
    assert response.json()["user_id"] == user.id
    assert response.json()["type"] == "blog_published"

    response = client.post(
        "/notifications", headers=headers(admin), json={**payload, "user_id": 9999}
    )
    assert response.status_code == 404

    response = client.post(
        "/notifications", headers=headers(admin), json={**payload, "type": "party_invite"}
    )
    assert response.status_code == 422


def test_create_notification_validates(db: Session, user):
    with pytest.raises(InvalidRequestError):
        NotificationService.create_notification(db, user.id, "blog_like", "  ", "message")
    with pytest.raises(InvalidRequestError):
        NotificationService.create_notification(db, user.id, "unknown", "title", "message")


def test_admin_submission_notice_requires_admins(db: Session, user):
    with pytest.raises(NotFoundError):
        notify_admin_blog_submitted(db, "Lonely Post", "Sita Sharma")


def test_admin_submission_notice_reaches_every_admin(db: Session, make_user):
    admins = [make_user(role="admin"), make_user(role="admin")]

    notifications = notify_admin_blog_submitted(db, "Club Fair", "Sita Sharma")

    assert sorted(n.user_id for n in notifications) == sorted(a.id for a in admins)
    assert notifications[0].message == 'Sita Sharma submitted a new blog "Club Fair" for review.'


def test_websocket_rejects_bad_token(client):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/notifications/ws?token=garbage") as websocket:
            websocket.receive_text()
    assert exc_info.value.code == 1008


def test_websocket_receives_notifications(client, user, admin, headers):
    token = create_access_token(user.id)
    with client.websocket_connect(f"/notifications/ws?token={token}") as websocket:
        websocket.send_text("ping")
        assert websocket.receive_text() == "pong"

        response = client.post(
            "/notifications",
            headers=headers(admin),
            json={
                "user_id": user.id,
                "type": "event_reminder",
                "title": "Heads up",
                "message": "Starts soon",
            },
        )
        assert response.status_code == 201

        message = websocket.receive_json()
        assert message["channel"] == user_channel(user.id)
        assert message["event"] == "INSERT"
        assert message["payload"]["title"] == "Heads up"


class FakeWebSocket:
    def __init__(self, fail: bool = False):
        self.accepted = False
        self.sent: list[dict] = []
        self.fail = fail

    async def accept(self):
        self.accepted = True

    async def send_json(self, message):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(message)


def test_connection_manager_channels():
    manager = ConnectionManager()
    ws = FakeWebSocket()
    broken = FakeWebSocket(fail=True)
    channel = blog_channel("comments", 7)

    async def scenario():
        assert await manager.connect(ws, [channel, user_channel(1)])
        assert await manager.connect(broken, [channel])
        assert manager.get_connection_count() == 2

        await manager.broadcast(channel, {"event": "INSERT"})
        assert ws.sent == [{"event": "INSERT"}]
        # Failed sockets are dropped from the channel
        assert manager.active_connections[channel] == {ws}

        manager.publish(channel, "DELETE", {"id": 3})
        await asyncio.sleep(0.05)
        assert ws.sent[-1] == {"channel": channel, "event": "DELETE", "payload": {"id": 3}}

        await manager.disconnect(ws, [channel, user_channel(1)])
        assert manager.get_connection_count() == 0
        assert manager.active_connections == {}

    asyncio.run(scenario())

    # The loop is gone; publishing is a no-op
    manager.publish(channel, "INSERT", {"id": 4})


def test_reminder_time_text():
    assert reminder_time_text(1) == "in 1 hours"
    assert reminder_time_text(23) == "in 23 hours"
    assert reminder_time_text(24) == "in 1 days"
    assert reminder_time_text(49) == "in 2 days"
