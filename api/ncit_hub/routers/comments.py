"""Comment endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user, get_current_user_optional
from ..deps import get_db
from ..services import blogs as blog_service
from ..services import comments as comment_service

router = APIRouter(tags=["Comments"])


@router.get("/blogs/{blog_id}/comments", response_model=list[schemas.CommentThread])
def list_comments(
    blog_id: int,
    db: Session = Depends(get_db),
    viewer: models.User | None = Depends(get_current_user_optional),
) -> list[schemas.CommentThread]:
    """
    Comments for a blog, oldest first.

    Top-level comments carry their replies; is_liked reflects the caller.
    """
    blog_service.get_visible_blog(db, blog_id, viewer)
    return comment_service.list_comments(db, blog_id, viewer)


@router.get("/blogs/{blog_id}/comments/count", response_model=schemas.CountResponse)
def count_comments(blog_id: int, db: Session = Depends(get_db)) -> schemas.CountResponse:
    return schemas.CountResponse(count=comment_service.comment_count(db, blog_id))


@router.post(
    "/blogs/{blog_id}/comments",
    response_model=schemas.CommentRead,
    status_code=status.HTTP_201_CREATED,
)
def create_comment(
    blog_id: int,
    payload: schemas.CommentCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.CommentRead:
    blog = blog_service.get_visible_blog(db, blog_id, current_user)
    comment = comment_service.create_comment(
        db, blog, current_user, payload.content, parent_id=payload.parent_id
    )
    return schemas.CommentRead.model_validate(comment)


@router.patch("/comments/{comment_id}", response_model=schemas.CommentRead)
def update_comment(
    comment_id: int,
    payload: schemas.CommentUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.CommentRead:
    comment = comment_service.update_comment(db, comment_id, current_user, payload.content)
    return schemas.CommentRead.model_validate(comment)


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> None:
    comment_service.delete_comment(db, comment_id, current_user)


@router.post("/comments/{comment_id}/like", response_model=schemas.CommentLikeResponse)
def like_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.CommentLikeResponse:
    comment = comment_service.like_comment(db, comment_id, current_user)
    return schemas.CommentLikeResponse(
        comment_id=comment.id, likes_count=comment.likes_count, liked=True
    )


@router.delete("/comments/{comment_id}/like", response_model=schemas.CommentLikeResponse)
def unlike_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.CommentLikeResponse:
    comment = comment_service.unlike_comment(db, comment_id, current_user)
    return schemas.CommentLikeResponse(
        comment_id=comment.id, likes_count=comment.likes_count, liked=False
    )
