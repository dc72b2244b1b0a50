"""Tests for admin user management, stats and feature toggles."""

from __future__ import annotations

from sqlalchemy.orm import Session

from ncit_hub.auth import create_refresh_token, verify_refresh_token
from ncit_hub.models import AuditLog, Blog, User


def test_user_list_is_admin_only(client, user, admin, headers):
    assert client.get("/admin/users", headers=headers(user)).status_code == 403

    response = client.get("/admin/users", headers=headers(admin))
    assert response.status_code == 200
    assert {u["id"] for u in response.json()} == {user.id, admin.id}


def test_change_role(client, user, admin, headers, db: Session):
    response = client.patch(
        f"/admin/users/{user.id}/role", headers=headers(admin), json={"role": "admin"}
    )
    assert response.status_code == 200
    assert response.json()["role"] == "admin"

    # The promoted user can now reach admin routes
    assert client.get("/admin/users", headers=headers(user)).status_code == 200

    audit = db.query(AuditLog).filter(AuditLog.action == "change_role").one()
    assert audit.note == "user -> admin"
    assert audit.target_id == str(user.id)


def test_admin_cannot_demote_self(client, admin, headers):
    response = client.patch(
        f"/admin/users/{admin.id}/role", headers=headers(admin), json={"role": "user"}
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "You cannot remove your own admin role"


def test_invalid_role(client, user, admin, headers):
    response = client.patch(
        f"/admin/users/{user.id}/role", headers=headers(admin), json={"role": "superuser"}
    )
    assert response.status_code == 422


def test_disable_user(client, user, admin, headers, db: Session):
    user_headers = headers(user)
    refresh = create_refresh_token(user.id, db)

    response = client.patch(
        f"/admin/users/{user.id}/disabled", headers=headers(admin), json={"disabled": True}
    )
    assert response.status_code == 200
    assert response.json()["disabled"] is True

    response = client.get("/auth/me", headers=user_headers)
    assert response.status_code == 401
    assert response.json()["detail"] == "Account disabled"
    assert verify_refresh_token(refresh, db) is None

    response = client.patch(
        f"/admin/users/{user.id}/disabled", headers=headers(admin), json={"disabled": False}
    )
    assert response.status_code == 200
    assert client.get("/auth/me", headers=user_headers).status_code == 200


def test_admin_cannot_disable_self(client, admin, headers):
    response = client.patch(
        f"/admin/users/{admin.id}/disabled", headers=headers(admin), json={"disabled": True}
    )
    assert response.status_code == 403


def test_delete_user_removes_content(client, user, admin, headers, db: Session):
    client.post("/blogs", headers=headers(user), json={"title": "Bye", "content": "So long"})
    user_id = user.id

    response = client.delete(f"/admin/users/{user_id}", headers=headers(admin))
    assert response.status_code == 204

    db.expire_all()
    assert db.query(User).filter(User.id == user_id).first() is None
    assert db.query(Blog).filter(Blog.author_id == user_id).count() == 0
    assert db.query(AuditLog).filter(AuditLog.action == "delete_user").count() == 1

    response = client.delete(f"/admin/users/{user_id}", headers=headers(admin))
    assert response.status_code == 404


def test_admin_cannot_delete_self(client, admin, headers):
    response = client.delete(f"/admin/users/{admin.id}", headers=headers(admin))
    assert response.status_code == 403


def test_dashboard_stats(client, user, admin, headers):
    client.post("/blogs", headers=headers(user), json={"title": "A", "content": "a"})
    client.post(
        "/blogs", headers=headers(user), json={"title": "B", "content": "b", "status": "pending"}
    )
    client.post(
        "/events",
        headers=headers(admin),
        json={
            "title": "Seminar",
            "description": "Talk",
            "event_date": "2099-01-01T10:00:00",
            "location": "Hall",
        },
    )

    response = client.get("/admin/stats", headers=headers(admin))
    assert response.status_code == 200
    stats = response.json()
    assert stats["total_users"] == 2
    assert stats["total_admins"] == 1
    assert stats["total_blogs"] == 2
    assert stats["blogs_by_status"] == {"draft": 1, "pending": 1, "published": 0, "archived": 0}
    assert stats["pending_reviews"] == 1
    assert stats["total_events"] == 1
    assert stats["upcoming_events"] == 1
    assert stats["total_registrations"] == 0
    assert stats["total_comments"] == 0

    assert client.get("/admin/stats", headers=headers(user)).status_code == 403


def test_feature_toggles(client, user, admin, headers, db: Session):
    response = client.get("/admin/feature-toggles/event_management", headers=headers(admin))
    assert response.status_code == 200
    assert response.json()["is_enabled"] is True

    response = client.put(
        "/admin/feature-toggles/event_management",
        headers=headers(user),
        json={"is_enabled": False},
    )
    assert response.status_code == 403

    response = client.put(
        "/admin/feature-toggles/event_management",
        headers=headers(admin),
        json={"is_enabled": False},
    )
    assert response.status_code == 200
    assert response.json()["is_enabled"] is False
    assert response.json()["updated_by"] == admin.id

    assert client.get("/events").status_code == 503
    assert db.query(AuditLog).filter(AuditLog.action == "disable_feature").count() == 1

    response = client.get("/admin/feature-toggles/unknown", headers=headers(admin))
    assert response.status_code == 404
