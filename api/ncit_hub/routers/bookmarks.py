"""Bookmark endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user
from ..deps import get_db
from ..services import blogs as blog_service
from ..services import bookmarks as bookmark_service

router = APIRouter(tags=["Bookmarks"])


@router.get("/bookmarks", response_model=list[schemas.Blog])
def list_bookmarks(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> list[schemas.Blog]:
    """Bookmarked published blogs, newest bookmark first."""
    blogs = bookmark_service.bookmarked_blogs(db, current_user.id)
    return [schemas.Blog.model_validate(b) for b in blogs]


@router.get("/bookmarks/ids", response_model=schemas.IdList)
def list_bookmark_ids(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.IdList:
    return schemas.IdList(ids=bookmark_service.bookmarked_blog_ids(db, current_user.id))


@router.post("/blogs/{blog_id}/bookmark", response_model=schemas.BookmarkStatus)
def toggle_bookmark(
    blog_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.BookmarkStatus:
    blog = blog_service.get_visible_blog(db, blog_id, current_user)
    bookmarked = bookmark_service.toggle_bookmark(db, blog, current_user)
    return schemas.BookmarkStatus(
        blog_id=blog_id,
        bookmarked=bookmarked,
        count=bookmark_service.bookmark_count(db, blog_id),
    )


@router.get("/blogs/{blog_id}/bookmark", response_model=schemas.BookmarkStatus)
def get_bookmark_status(
    blog_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.BookmarkStatus:
    return schemas.BookmarkStatus(
        blog_id=blog_id,
        bookmarked=bookmark_service.is_bookmarked(db, blog_id, current_user.id),
        count=bookmark_service.bookmark_count(db, blog_id),
    )
