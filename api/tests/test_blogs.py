"""Tests for blog authoring, visibility, views and likes."""

from __future__ import annotations

from sqlalchemy.orm import Session

from ncit_hub.models import Blog, Category, Notification, User


def _create_blog(client, headers, user: User, **overrides) -> dict:
    payload = {"title": "Campus Life", "content": "A day at **NCIT** with friends."}
    payload.update(overrides)
    response = client.post("/blogs", headers=headers(user), json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def _publish(db: Session, blog_id: int) -> None:
    blog = db.query(Blog).filter(Blog.id == blog_id).one()
    blog.status = "published"
    db.commit()


def test_create_blog_defaults_to_draft_with_excerpt(client, user, headers):
    blog = _create_blog(client, headers, user)
    assert blog["status"] == "draft"
    assert blog["excerpt"] == "A day at NCIT with friends."
    assert blog["author"]["full_name"] == "Sita Sharma"
    assert blog["views"] == 0
    assert blog["likes"] == 0


def test_non_admin_cannot_publish(client, user, headers):
    response = client.post(
        "/blogs",
        headers=headers(user),
        json={"title": "Sneaky", "content": "Skip review", "status": "published"},
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "Only admins can publish or archive blogs"


def test_admin_can_publish_directly(client, admin, headers):
    blog = _create_blog(client, headers, admin, status="published")
    assert blog["status"] == "published"
    assert blog["published_at"] is not None


def test_unknown_category_rejected(client, user, headers):
    response = client.post(
        "/blogs",
        headers=headers(user),
        json={"title": "x", "content": "y", "category_id": 9999},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Category not found"


def test_public_list_only_shows_published(client, user, headers, db: Session):
    draft = _create_blog(client, headers, user, title="Draft post")
    published = _create_blog(client, headers, user, title="Live post")
    _publish(db, published["id"])

    response = client.get("/blogs")
    assert response.status_code == 200
    ids = [b["id"] for b in response.json()]
    assert ids == [published["id"]]
    assert draft["id"] not in ids


def test_draft_visibility(client, user, other_user, admin, headers):
    blog = _create_blog(client, headers, user)

    assert client.get(f"/blogs/{blog['id']}").status_code == 404
    assert client.get(f"/blogs/{blog['id']}", headers=headers(other_user)).status_code == 404
    assert client.get(f"/blogs/{blog['id']}", headers=headers(user)).status_code == 200
    assert client.get(f"/blogs/{blog['id']}", headers=headers(admin)).status_code == 200


def test_author_list_visibility(client, user, other_user, headers, db: Session):
    _create_blog(client, headers, user, title="Draft")
    live = _create_blog(client, headers, user, title="Live")
    _publish(db, live["id"])

    own = client.get(f"/blogs/author/{user.id}", headers=headers(user)).json()
    assert len(own) == 2

    public = client.get(f"/blogs/author/{user.id}", headers=headers(other_user)).json()
    assert [b["id"] for b in public] == [live["id"]]


def test_category_listing(client, user, headers, db: Session):
    category = db.query(Category).order_by(Category.id).first()
    blog = _create_blog(client, headers, user, category_id=category.id)
    _publish(db, blog["id"])
    _create_blog(client, headers, user, title="Uncategorized")

    response = client.get(f"/blogs/category/{category.id}")
    assert [b["id"] for b in response.json()] == [blog["id"]]
    assert response.json()[0]["category"]["name"] == category.name


def test_search_matches_published_only(client, user, headers, db: Session):
    hit = _create_blog(client, headers, user, title="Robotics Club Recap")
    _publish(db, hit["id"])
    _create_blog(client, headers, user, title="Robotics draft")
    other = _create_blog(client, headers, user, title="Football", content="Goals")
    _publish(db, other["id"])

    response = client.get("/blogs/search", params={"q": "robotics"})
    assert response.status_code == 200
    assert [b["id"] for b in response.json()] == [hit["id"]]


def test_update_content_regenerates_excerpt(client, user, headers):
    blog = _create_blog(client, headers, user)
    response = client.patch(
        f"/blogs/{blog['id']}",
        headers=headers(user),
        json={"content": "## New heading\nFresh text"},
    )
    assert response.status_code == 200
    assert response.json()["excerpt"] == "New heading Fresh text"
    assert response.json()["updated_at"] is not None



def test_update_ignores_null_for_required_fields(client, user, headers):
    blog = _create_blog(client, headers, user)
    response = client.patch(
        f"/blogs/{blog['id']}",
        headers=headers(user),
        json={"title": None, "content": None, "status": None, "featured_image": None},
    )
    assert response.status_code == 200
    assert response.json()["title"] == "Campus Life"
    assert response.json()["content"] == "A day at **NCIT** with friends."
    assert response.json()["excerpt"] == "A day at NCIT with friends."
    assert response.json()["status"] == "draft"

def test_only_author_can_edit_or_delete(client, user, other_user, headers):
    blog = _create_blog(client, headers, user)

    response = client.patch(
        f"/blogs/{blog['id']}", headers=headers(other_user), json={"title": "Mine now"}
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "You can only edit your own blogs"

    response = client.delete(f"/blogs/{blog['id']}", headers=headers(other_user))
    assert response.status_code == 403
    assert response.json()["detail"] == "You can only delete your own blogs"

    response = client.delete(f"/blogs/{blog['id']}", headers=headers(user))
    assert response.status_code == 204
    assert client.get(f"/blogs/{blog['id']}", headers=headers(user)).status_code == 404


def test_submit_notifies_admins(client, user, admin, headers, db: Session):
    blog = _create_blog(client, headers, user, title="Hackathon Notes")

    response = client.post(f"/blogs/{blog['id']}/submit", headers=headers(user))
    assert response.status_code == 200
    assert response.json()["status"] == "pending"

    notifications = db.query(Notification).filter(Notification.user_id == admin.id).all()
    assert len(notifications) == 1
    assert notifications[0].type == "blog_submitted"
    assert notifications[0].link == "/admin/review"
    assert "Hackathon Notes" in notifications[0].message

    pending = client.get("/blogs/pending", headers=headers(admin))
    assert [b["id"] for b in pending.json()] == [blog["id"]]


def test_submit_without_admins_still_succeeds(client, user, headers):
    blog = _create_blog(client, headers, user, status="pending")
    assert blog["status"] == "pending"


def test_pending_queue_is_admin_only(client, user, headers):
    response = client.get("/blogs/pending", headers=headers(user))
    assert response.status_code == 403


def test_view_counter(client, user, headers, db: Session):
    blog = _create_blog(client, headers, user)

    # Drafts only count views from people who can see them
    assert client.post(f"/blogs/{blog['id']}/view").status_code == 404
    response = client.post(f"/blogs/{blog['id']}/view", headers=headers(user))
    assert response.json() == {"views": 1}

    _publish(db, blog["id"])
    assert client.post(f"/blogs/{blog['id']}/view").json() == {"views": 2}
    assert client.post("/blogs/9999/view").status_code == 404


def test_like_toggle(client, user, other_user, headers, db: Session):
    blog = _create_blog(client, headers, user, title="Tech Fest")
    _publish(db, blog["id"])

    response = client.post(f"/blogs/{blog['id']}/like", headers=headers(other_user))
    assert response.status_code == 200
    assert response.json() == {"liked": True, "likes": 1}

    notifications = db.query(Notification).filter(Notification.user_id == user.id).all()
    assert [n.type for n in notifications] == ["blog_like"]
    assert notifications[0].message == 'Ram Thapa liked your blog "Tech Fest".'

    ids = client.get("/blogs/liked/ids", headers=headers(other_user)).json()
    assert ids == {"ids": [blog["id"]]}
    liked = client.get("/blogs/liked", headers=headers(other_user)).json()
    assert [b["id"] for b in liked] == [blog["id"]]

    response = client.post(f"/blogs/{blog['id']}/like", headers=headers(other_user))
    assert response.json() == {"liked": False, "likes": 0}
    assert client.get("/blogs/liked/ids", headers=headers(other_user)).json() == {"ids": []}


def test_liking_own_blog_does_not_notify(client, user, headers, db: Session):
    blog = _create_blog(client, headers, user)
    response = client.post(f"/blogs/{blog['id']}/like", headers=headers(user))
    assert response.json()["liked"] is True
    assert db.query(Notification).filter(Notification.user_id == user.id).count() == 0


def test_cannot_like_invisible_draft(client, user, other_user, headers):
    blog = _create_blog(client, headers, user)
    response = client.post(f"/blogs/{blog['id']}/like", headers=headers(other_user))
    assert response.status_code == 404


def test_categories(client, admin, user, headers):
    names = [c["name"] for c in client.get("/categories").json()]
    assert names == sorted(names)

    response = client.post("/categories", headers=headers(user), json={"name": "Music"})
    assert response.status_code == 403

    response = client.post(
        "/categories", headers=headers(admin), json={"name": "Music", "color": "#112233"}
    )
    assert response.status_code == 201
    assert response.json()["color"] == "#112233"

    response = client.post("/categories", headers=headers(admin), json={"name": "Music"})
    assert response.status_code == 409
