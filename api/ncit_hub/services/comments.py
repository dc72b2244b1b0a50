"""Threaded blog comments and comment likes."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from .. import models, schemas
from ..errors import ConflictError, InvalidRequestError, NotFoundError, PermissionDeniedError
from ..websocket_manager import blog_channel, connection_manager
from . import counters
from .blogs import display_name
from .notifications import notify_blog_comment

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 5000


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _clean_content(content: str) -> str:
    content = (content or "").strip()
    if not content:
        raise InvalidRequestError("Comment cannot be empty")
    if len(content) > MAX_COMMENT_LENGTH:
        raise InvalidRequestError(f"Comment must be at most {MAX_COMMENT_LENGTH} characters")
    return content


def _publish(comment: models.Comment, event: str) -> None:
    connection_manager.publish(
        blog_channel("comments", comment.blog_id),
        event,
        schemas.CommentRead.model_validate(comment).model_dump(mode="json"),
    )


def get_comment(db: Session, comment_id: int) -> models.Comment:
    comment = db.query(models.Comment).options(
        joinedload(models.Comment.author)
    ).filter(models.Comment.id == comment_id).first()
    if not comment:
        raise NotFoundError("Comment not found")
    return comment


def list_comments(
    db: Session, blog_id: int, viewer: models.User | None = None
) -> list[schemas.CommentThread]:
    """
    Comments on a blog, oldest first, as top-level comments with their replies.

    Replies are materialized one level deep: anything below a top-level
    comment is listed in that comment's replies.
    """
    comments = (
        db.query(models.Comment)
        .options(joinedload(models.Comment.author))
        .filter(models.Comment.blog_id == blog_id)
        .order_by(models.Comment.created_at.asc(), models.Comment.id.asc())
        .all()
    )

    liked_ids: set[int] = set()
    if viewer is not None and comments:
        rows = db.query(models.CommentLike.comment_id).filter(
            models.CommentLike.user_id == viewer.id,
            models.CommentLike.comment_id.in_([c.id for c in comments]),
        ).all()
        liked_ids = {row.comment_id for row in rows}

    by_id = {comment.id: comment for comment in comments}

    def root_of(comment: models.Comment) -> models.Comment:
        while comment.parent_id in by_id:
            comment = by_id[comment.parent_id]
        return comment

    threads: dict[int, schemas.CommentThread] = {}
    replies: list[tuple[int, models.Comment]] = []

    for comment in comments:
        root = root_of(comment)
        if root.id == comment.id:
            thread = schemas.CommentThread.model_validate(comment)
            thread.is_liked = comment.id in liked_ids
            threads[comment.id] = thread
        else:
            replies.append((root.id, comment))

    for root_id, comment in replies:
        reply = schemas.CommentThread.model_validate(comment)
        reply.is_liked = comment.id in liked_ids
        threads[root_id].replies.append(reply)

    return list(threads.values())


def comment_count(db: Session, blog_id: int) -> int:
    return db.query(func.count(models.Comment.id)).filter(
        models.Comment.blog_id == blog_id
    ).scalar() or 0


def create_comment(
    db: Session,
    blog: models.Blog,
    author: models.User,
    content: str,
    parent_id: int | None = None,
) -> models.Comment:
    content = _clean_content(content)

    if parent_id is not None:
        parent = db.query(models.Comment).filter(models.Comment.id == parent_id).first()
        if not parent or parent.blog_id != blog.id:
            raise InvalidRequestError("Parent comment not found on this blog")
        # Keep nesting one level deep
        if parent.parent_id is not None:
            parent_id = parent.parent_id

    comment = models.Comment(
        blog_id=blog.id,
        author_id=author.id,
        parent_id=parent_id,
        content=content,
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)

    _publish(comment, "INSERT")

    if blog.author_id != author.id:
        notify_blog_comment(db, blog.author_id, display_name(author), blog.title, blog.id)

    logger.info(f"User {author.id} commented {comment.id} on blog {blog.id}")
    return comment


def update_comment(
    db: Session, comment_id: int, actor: models.User, content: str
) -> models.Comment:
    comment = get_comment(db, comment_id)
    if comment.author_id != actor.id:
        raise PermissionDeniedError("You can only edit your own comments")

    comment.content = _clean_content(content)
    comment.is_edited = True
    comment.edited_at = _now()
    comment.updated_at = _now()
    db.commit()
    db.refresh(comment)

    _publish(comment, "UPDATE")
    return comment


def delete_comment(db: Session, comment_id: int, actor: models.User) -> None:
    """Delete a comment and its replies. Authors and admins only."""
    comment = get_comment(db, comment_id)
    if comment.author_id != actor.id and not actor.is_admin:
        raise PermissionDeniedError("You can only delete your own comments")

    connection_manager.publish(
        blog_channel("comments", comment.blog_id),
        "DELETE",
        {"id": comment.id, "blog_id": comment.blog_id, "parent_id": comment.parent_id},
    )

    db.delete(comment)
    db.commit()
    logger.info(f"User {actor.id} deleted comment {comment_id}")


def _publish_like(comment: models.Comment, user_id: int, event: str) -> None:
    connection_manager.publish(
        blog_channel("comment-likes", comment.blog_id),
        event,
        {"comment_id": comment.id, "user_id": user_id, "likes_count": comment.likes_count},
    )


def like_comment(db: Session, comment_id: int, user: models.User) -> models.Comment:
    comment = get_comment(db, comment_id)

    existing = db.query(models.CommentLike.id).filter(
        models.CommentLike.comment_id == comment.id,
        models.CommentLike.user_id == user.id,
    ).first()
    if existing:
        raise ConflictError("Comment already liked")

    db.add(models.CommentLike(comment_id=comment.id, user_id=user.id))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Comment already liked")

    counters.increment_comment_likes(db, comment.id)
    db.refresh(comment)

    _publish_like(comment, user.id, "INSERT")
    return comment


def unlike_comment(db: Session, comment_id: int, user: models.User) -> models.Comment:
    comment = get_comment(db, comment_id)

    like = db.query(models.CommentLike).filter(
        models.CommentLike.comment_id == comment.id,
        models.CommentLike.user_id == user.id,
    ).first()
    if not like:
        raise NotFoundError("Like not found")

    db.delete(like)
    db.commit()

    counters.decrement_comment_likes(db, comment.id)
    db.refresh(comment)

    _publish_like(comment, user.id, "DELETE")
    return comment
