"""Tests for blog bookmarks."""

from __future__ import annotations

from sqlalchemy.orm import Session

from ncit_hub.models import Blog


def _published_blog(client, headers, author, db: Session, title: str) -> int:
    blog = client.post(
        "/blogs", headers=headers(author), json={"title": title, "content": "Body"}
    ).json()
    row = db.query(Blog).filter(Blog.id == blog["id"]).one()
    row.status = "published"
    db.commit()
    return blog["id"]


def test_toggle_bookmark(client, user, other_user, headers, db: Session):
    blog_id = _published_blog(client, headers, user, db, "Exam Tips")

    response = client.post(f"/blogs/{blog_id}/bookmark", headers=headers(other_user))
    assert response.status_code == 200
    assert response.json() == {"blog_id": blog_id, "bookmarked": True, "count": 1}

    status = client.get(f"/blogs/{blog_id}/bookmark", headers=headers(other_user)).json()
    assert status["bookmarked"] is True

    response = client.post(f"/blogs/{blog_id}/bookmark", headers=headers(other_user))
    assert response.json() == {"blog_id": blog_id, "bookmarked": False, "count": 0}


def test_bookmarks_newest_first(client, user, other_user, headers, db: Session):
    first = _published_blog(client, headers, user, db, "First")
    second = _published_blog(client, headers, user, db, "Second")

    client.post(f"/blogs/{first}/bookmark", headers=headers(other_user))
    client.post(f"/blogs/{second}/bookmark", headers=headers(other_user))

    assert client.get("/bookmarks/ids", headers=headers(other_user)).json() == {
        "ids": [second, first]
    }
    blogs = client.get("/bookmarks", headers=headers(other_user)).json()
    assert [b["title"] for b in blogs] == ["Second", "First"]


def test_bookmarked_blog_leaves_list_when_unpublished(client, user, other_user, headers, db: Session):
    blog_id = _published_blog(client, headers, user, db, "Temporary")
    client.post(f"/blogs/{blog_id}/bookmark", headers=headers(other_user))

    row = db.query(Blog).filter(Blog.id == blog_id).one()
    row.status = "archived"
    db.commit()

    assert client.get("/bookmarks", headers=headers(other_user)).json() == []
    assert client.get("/bookmarks/ids", headers=headers(other_user)).json() == {"ids": [blog_id]}


def test_bookmarks_require_auth(client):
    assert client.get("/bookmarks").status_code == 401


def test_cannot_bookmark_hidden_draft(client, user, other_user, headers):
    draft = client.post(
        "/blogs", headers=headers(user), json={"title": "Draft", "content": "wip"}
    ).json()
    response = client.post(f"/blogs/{draft['id']}/bookmark", headers=headers(other_user))
    assert response.status_code == 404
