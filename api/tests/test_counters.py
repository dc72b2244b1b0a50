from __future__ import annotations

from sqlalchemy.orm import Session

from ncit_hub.models import Blog
from ncit_hub.services import counters


def _blog(db: Session, author_id: int) -> Blog:
    blog = Blog(title="Counted", content="x", author_id=author_id, tags=[], images=[])
    db.add(blog)
    db.commit()
    return blog


def test_counters_never_go_negative(db: Session, user):
    blog = _blog(db, user.id)

    assert counters.decrement_blog_likes(db, blog.id) == 1
    db.refresh(blog)
    assert blog.likes == 0

    counters.increment_blog_likes(db, blog.id)
    counters.increment_blog_likes(db, blog.id)
    counters.decrement_blog_likes(db, blog.id)
    db.refresh(blog)
    assert blog.likes == 1


def test_counter_on_missing_row_updates_nothing(db: Session):
    assert counters.increment_blog_views(db, 12345) == 0
    assert counters.increment_event_participants(db, 12345) == 0
