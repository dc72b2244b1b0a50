"""Blogs, categories and blog likes."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from .. import models, settings
from ..errors import ConflictError, InvalidRequestError, NotFoundError, PermissionDeniedError
from ..utils.text import generate_excerpt
from ..websocket_manager import blog_channel, connection_manager
from . import counters
from .notifications import notify_admin_blog_submitted, notify_blog_like

logger = logging.getLogger(__name__)

# Statuses an author may set on their own blog
AUTHOR_STATUSES = ("draft", "pending")

UPDATABLE_FIELDS = (
    "title",
    "content",
    "excerpt",
    "category_id",
    "tags",
    "images",
    "featured_image",
    "status",
)

# Columns that cannot be cleared; an explicit null leaves them unchanged
REQUIRED_FIELDS = ("title", "content", "status")


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def display_name(user: models.User) -> str:
    return user.full_name or user.email


def _blog_query(db: Session):
    return db.query(models.Blog).options(
        joinedload(models.Blog.author), joinedload(models.Blog.category)
    )


def _newest_first(query):
    return query.order_by(models.Blog.created_at.desc(), models.Blog.id.desc())


# ============================================================================
# Categories
# ============================================================================


def list_categories(db: Session) -> list[models.Category]:
    return db.query(models.Category).order_by(models.Category.name).all()


def create_category(
    db: Session, name: str, description: str | None = None, color: str | None = None
) -> models.Category:
    name = name.strip()
    if not name:
        raise InvalidRequestError("Category name is required")

    category = models.Category(name=name, description=description, color=color or "#3b82f6")
    db.add(category)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(f"Category '{name}' already exists")
    db.refresh(category)
    return category


def _check_category(db: Session, category_id: int | None) -> None:
    if category_id is None:
        return
    if not db.query(models.Category.id).filter(models.Category.id == category_id).first():
        raise InvalidRequestError("Category not found")


# ============================================================================
# Reading blogs
# ============================================================================


def can_view(blog: models.Blog, viewer: models.User | None) -> bool:
    """Published blogs are public; anything else only to its author and admins."""
    if blog.status == "published":
        return True
    if viewer is None:
        return False
    return viewer.id == blog.author_id or viewer.is_admin


def get_blog(db: Session, blog_id: int) -> models.Blog:
    blog = _blog_query(db).filter(models.Blog.id == blog_id).first()
    if not blog:
        raise NotFoundError("Blog not found")
    return blog


def get_visible_blog(db: Session, blog_id: int, viewer: models.User | None) -> models.Blog:
    blog = get_blog(db, blog_id)
    if not can_view(blog, viewer):
        raise NotFoundError("Blog not found")
    return blog


def list_published(db: Session, limit: int = 50, offset: int = 0) -> list[models.Blog]:
    query = _blog_query(db).filter(models.Blog.status == "published")
    return _newest_first(query).offset(offset).limit(limit).all()


def list_by_author(
    db: Session, author_id: int, viewer: models.User | None = None
) -> list[models.Blog]:
    """All of an author's blogs for the author or an admin; published ones for everyone else."""
    query = _blog_query(db).filter(models.Blog.author_id == author_id)
    if viewer is None or not (viewer.id == author_id or viewer.is_admin):
        query = query.filter(models.Blog.status == "published")
    return _newest_first(query).all()


def list_by_category(db: Session, category_id: int) -> list[models.Blog]:
    query = _blog_query(db).filter(
        models.Blog.category_id == category_id,
        models.Blog.status == "published",
    )
    return _newest_first(query).all()


def search_blogs(db: Session, query_text: str) -> list[models.Blog]:
    """Case-insensitive match on title, content and excerpt of published blogs."""
    query_text = query_text.strip()
    if not query_text:
        return []

    pattern = f"%{query_text}%"
    query = _blog_query(db).filter(
        models.Blog.status == "published",
        or_(
            models.Blog.title.ilike(pattern),
            models.Blog.content.ilike(pattern),
            models.Blog.excerpt.ilike(pattern),
        ),
    )
    return _newest_first(query).all()


def list_pending(db: Session) -> list[models.Blog]:
    """Blogs awaiting review (drafts included), for the admin review queue."""
    query = _blog_query(db).filter(models.Blog.status.in_(("draft", "pending")))
    return _newest_first(query).all()


# ============================================================================
# Writing blogs
# ============================================================================


def _check_status(status_value: str, actor: models.User) -> None:
    if status_value not in models.BLOG_STATUSES:
        raise InvalidRequestError(f"Invalid blog status: {status_value}")
    if status_value not in AUTHOR_STATUSES and not actor.is_admin:
        raise PermissionDeniedError("Only admins can publish or archive blogs")


def _notify_admins_of_submission(db: Session, blog: models.Blog) -> None:
    try:
        notify_admin_blog_submitted(db, blog.title, display_name(blog.author))
    except NotFoundError as e:
        logger.warning(f"Blog {blog.id} submitted for review but nobody was notified: {e.message}")


def create_blog(db: Session, author: models.User, data: dict[str, Any]) -> models.Blog:
    status_value = data.get("status") or "draft"
    _check_status(status_value, author)
    _check_category(db, data.get("category_id"))

    content = data["content"]
    blog = models.Blog(
        title=data["title"].strip(),
        content=content,
        excerpt=data.get("excerpt") or generate_excerpt(content, settings.EXCERPT_LENGTH),
        author_id=author.id,
        category_id=data.get("category_id"),
        tags=data.get("tags") or [],
        images=data.get("images") or [],
        featured_image=data.get("featured_image"),
        status=status_value,
        published_at=_now() if status_value == "published" else None,
    )
    db.add(blog)
    db.commit()
    db.refresh(blog)

    logger.info(f"User {author.id} created blog {blog.id} ({status_value})")

    if status_value == "pending":
        _notify_admins_of_submission(db, blog)

    return blog


def update_blog(
    db: Session, blog: models.Blog, updates: dict[str, Any], actor: models.User
) -> models.Blog:
    """Partial update by the author or an admin."""
    if blog.author_id != actor.id and not actor.is_admin:
        raise PermissionDeniedError("You can only edit your own blogs")

    updates = {
        key: value
        for key, value in updates.items()
        if value is not None or key not in REQUIRED_FIELDS
    }

    previous_status = blog.status
    new_status = updates.get("status")
    if new_status is not None:
        _check_status(new_status, actor)
    if "category_id" in updates:
        _check_category(db, updates["category_id"])

    for field in UPDATABLE_FIELDS:
        if field in updates:
            value = updates[field]
            if field in ("tags", "images") and value is None:
                value = []
            setattr(blog, field, value)

    if "content" in updates and "excerpt" not in updates:
        blog.excerpt = generate_excerpt(blog.content, settings.EXCERPT_LENGTH)

    if new_status == "published" and previous_status != "published":
        blog.published_at = _now()
    if new_status == "pending":
        blog.rejection_reason = None

    blog.updated_at = _now()
    db.commit()
    db.refresh(blog)

    if new_status == "pending" and previous_status != "pending":
        _notify_admins_of_submission(db, blog)

    return blog


def submit_blog(db: Session, blog: models.Blog, actor: models.User) -> models.Blog:
    """Send a blog to the admin review queue."""
    return update_blog(db, blog, {"status": "pending"}, actor)


def delete_blog(db: Session, blog: models.Blog, actor: models.User) -> None:
    if blog.author_id != actor.id and not actor.is_admin:
        raise PermissionDeniedError("You can only delete your own blogs")

    blog_id = blog.id
    db.delete(blog)
    db.commit()
    logger.info(f"User {actor.id} deleted blog {blog_id}")


# ============================================================================
# Views & likes
# ============================================================================


def increment_views(db: Session, blog_id: int) -> int:
    if not counters.increment_blog_views(db, blog_id):
        raise NotFoundError("Blog not found")
    return db.query(models.Blog.views).filter(models.Blog.id == blog_id).scalar()


def is_liked(db: Session, blog_id: int, user_id: int) -> bool:
    return db.query(models.BlogLike.id).filter(
        models.BlogLike.blog_id == blog_id,
        models.BlogLike.user_id == user_id,
    ).first() is not None


def toggle_like(db: Session, blog: models.Blog, user: models.User) -> bool:
    """Like the blog, or unlike it when already liked. Returns the new liked state."""
    existing = db.query(models.BlogLike).filter(
        models.BlogLike.blog_id == blog.id,
        models.BlogLike.user_id == user.id,
    ).first()

    if existing:
        db.delete(existing)
        db.commit()
        counters.decrement_blog_likes(db, blog.id)
        liked = False
    else:
        db.add(models.BlogLike(blog_id=blog.id, user_id=user.id))
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError("Blog already liked")
        counters.increment_blog_likes(db, blog.id)
        liked = True

    db.refresh(blog)
    connection_manager.publish(
        blog_channel("likes", blog.id),
        "INSERT" if liked else "DELETE",
        {"blog_id": blog.id, "user_id": user.id, "likes": blog.likes},
    )

    if liked and blog.author_id != user.id:
        notify_blog_like(db, blog.author_id, display_name(user), blog.title, blog.id)

    return liked


def liked_blog_ids(db: Session, user_id: int) -> list[int]:
    rows = db.query(models.BlogLike.blog_id).filter(
        models.BlogLike.user_id == user_id
    ).order_by(models.BlogLike.created_at.desc(), models.BlogLike.id.desc()).all()
    return [row.blog_id for row in rows]


def liked_blogs(db: Session, user_id: int) -> list[models.Blog]:
    """Published blogs the user liked, most recently liked first."""
    query = (
        _blog_query(db)
        .join(models.BlogLike, models.BlogLike.blog_id == models.Blog.id)
        .filter(models.BlogLike.user_id == user_id, models.Blog.status == "published")
        .order_by(models.BlogLike.created_at.desc(), models.BlogLike.id.desc())
    )
    return query.all()
