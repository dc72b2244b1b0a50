"""Blog bookmarks."""

from __future__ import annotations

import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from .. import models
from ..errors import ConflictError
from ..websocket_manager import blog_channel, connection_manager

logger = logging.getLogger(__name__)


def is_bookmarked(db: Session, blog_id: int, user_id: int) -> bool:
    return db.query(models.Bookmark.id).filter(
        models.Bookmark.blog_id == blog_id,
        models.Bookmark.user_id == user_id,
    ).first() is not None


def bookmark_count(db: Session, blog_id: int) -> int:
    return db.query(func.count(models.Bookmark.id)).filter(
        models.Bookmark.blog_id == blog_id
    ).scalar() or 0


def toggle_bookmark(db: Session, blog: models.Blog, user: models.User) -> bool:
    """Add or remove a bookmark. Returns whether the blog is now bookmarked."""
    existing = db.query(models.Bookmark).filter(
        models.Bookmark.blog_id == blog.id,
        models.Bookmark.user_id == user.id,
    ).first()

    if existing:
        db.delete(existing)
        db.commit()
        bookmarked = False
    else:
        db.add(models.Bookmark(blog_id=blog.id, user_id=user.id))
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError("Blog already bookmarked")
        bookmarked = True

    connection_manager.publish(
        blog_channel("bookmarks", blog.id),
        "INSERT" if bookmarked else "DELETE",
        {"blog_id": blog.id, "user_id": user.id, "count": bookmark_count(db, blog.id)},
    )
    return bookmarked


def bookmarked_blog_ids(db: Session, user_id: int) -> list[int]:
    """Newest bookmark first."""
    rows = db.query(models.Bookmark.blog_id).filter(
        models.Bookmark.user_id == user_id
    ).order_by(models.Bookmark.created_at.desc(), models.Bookmark.id.desc()).all()
    return [row.blog_id for row in rows]


def bookmarked_blogs(db: Session, user_id: int) -> list[models.Blog]:
    """Published blogs the user bookmarked, newest bookmark first."""
    return (
        db.query(models.Blog)
        .options(joinedload(models.Blog.author), joinedload(models.Blog.category))
        .join(models.Bookmark, models.Bookmark.blog_id == models.Blog.id)
        .filter(models.Bookmark.user_id == user_id, models.Blog.status == "published")
        .order_by(models.Bookmark.created_at.desc(), models.Bookmark.id.desc())
        .all()
    )
