"""
Counter functions for denormalized counts.

Each function is a single atomic UPDATE committed on its own, separate from
the insert/delete of the row being counted. Callers run them after that
write, so a failure in between leaves the count out of step with the rows.
"""

from __future__ import annotations

import logging

from sqlalchemy import case, update
from sqlalchemy.orm import Session

from .. import models

logger = logging.getLogger(__name__)


def _bump(db: Session, column, row_id_column, row_id: int, delta: int) -> int:
    if delta >= 0:
        new_value = column + delta
    else:
        # Never go below zero
        new_value = case((column + delta < 0, 0), else_=column + delta)

    result = db.execute(
        update(column.class_)
        .where(row_id_column == row_id)
        .values({column.key: new_value})
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount


def increment_event_participants(db: Session, event_id: int) -> int:
    return _bump(db, models.Event.current_participants, models.Event.id, event_id, 1)


def decrement_event_participants(db: Session, event_id: int) -> int:
    return _bump(db, models.Event.current_participants, models.Event.id, event_id, -1)


def increment_blog_views(db: Session, blog_id: int) -> int:
    return _bump(db, models.Blog.views, models.Blog.id, blog_id, 1)


def increment_blog_likes(db: Session, blog_id: int) -> int:
    return _bump(db, models.Blog.likes, models.Blog.id, blog_id, 1)


def decrement_blog_likes(db: Session, blog_id: int) -> int:
    return _bump(db, models.Blog.likes, models.Blog.id, blog_id, -1)


def increment_comment_likes(db: Session, comment_id: int) -> int:
    return _bump(db, models.Comment.likes_count, models.Comment.id, comment_id, 1)


def decrement_comment_likes(db: Session, comment_id: int) -> int:
    return _bump(db, models.Comment.likes_count, models.Comment.id, comment_id, -1)
