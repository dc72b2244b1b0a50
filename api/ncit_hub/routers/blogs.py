"""Blog endpoints, including likes, views and admin review."""

from __future__ import annotations

import logging

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user, get_current_user_optional, require_admin, user_from_token
from ..db import SessionLocal
from ..deps import get_db
from ..errors import NotFoundError
from ..services import blogs as blog_service
from ..services import moderation
from ..websocket_manager import BLOG_CHANNEL_KINDS, blog_channel, connection_manager

router = APIRouter(prefix="/blogs", tags=["Blogs"])
logger = logging.getLogger(__name__)


def _blog_list(blogs: list[models.Blog]) -> list[schemas.Blog]:
    return [schemas.Blog.model_validate(b) for b in blogs]


@router.get("", response_model=list[schemas.Blog])
def list_blogs(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
) -> list[schemas.Blog]:
    """Published blogs, newest first."""
    return _blog_list(blog_service.list_published(db, limit=limit, offset=offset))


@router.post("", response_model=schemas.Blog, status_code=status.HTTP_201_CREATED)
def create_blog(
    payload: schemas.BlogCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Blog:
    blog = blog_service.create_blog(db, current_user, payload.model_dump())
    return schemas.Blog.model_validate(blog)


@router.get("/search", response_model=list[schemas.Blog])
def search_blogs(
    q: str = Query(..., min_length=1, max_length=200),
    db: Session = Depends(get_db),
) -> list[schemas.Blog]:
    return _blog_list(blog_service.search_blogs(db, q))


@router.get("/liked", response_model=list[schemas.Blog])
def list_liked_blogs(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> list[schemas.Blog]:
    return _blog_list(blog_service.liked_blogs(db, current_user.id))


@router.get("/liked/ids", response_model=schemas.IdList)
def list_liked_blog_ids(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.IdList:
    return schemas.IdList(ids=blog_service.liked_blog_ids(db, current_user.id))


@router.get("/pending", response_model=list[schemas.Blog])
def list_pending_blogs(
    db: Session = Depends(get_db),
    _admin: models.User = Depends(require_admin),
) -> list[schemas.Blog]:
    """Review queue for admins."""
    return _blog_list(blog_service.list_pending(db))


@router.get("/author/{author_id}", response_model=list[schemas.Blog])
def list_author_blogs(
    author_id: int,
    db: Session = Depends(get_db),
    viewer: models.User | None = Depends(get_current_user_optional),
) -> list[schemas.Blog]:
    return _blog_list(blog_service.list_by_author(db, author_id, viewer))


@router.get("/category/{category_id}", response_model=list[schemas.Blog])
def list_category_blogs(
    category_id: int,
    db: Session = Depends(get_db),
) -> list[schemas.Blog]:
    return _blog_list(blog_service.list_by_category(db, category_id))


@router.get("/{blog_id}", response_model=schemas.Blog)
def get_blog(
    blog_id: int,
    db: Session = Depends(get_db),
    viewer: models.User | None = Depends(get_current_user_optional),
) -> schemas.Blog:
    """Published blogs are public; drafts are visible to their author and admins."""
    return schemas.Blog.model_validate(blog_service.get_visible_blog(db, blog_id, viewer))


@router.patch("/{blog_id}", response_model=schemas.Blog)
def update_blog(
    blog_id: int,
    payload: schemas.BlogUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Blog:
    blog = blog_service.get_blog(db, blog_id)
    blog = blog_service.update_blog(
        db, blog, payload.model_dump(exclude_unset=True), current_user
    )
    return schemas.Blog.model_validate(blog)


@router.delete("/{blog_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_blog(
    blog_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> None:
    blog = blog_service.get_blog(db, blog_id)
    blog_service.delete_blog(db, blog, current_user)


@router.post("/{blog_id}/view", response_model=schemas.ViewCountResponse)
def record_view(
    blog_id: int,
    db: Session = Depends(get_db),
    viewer: models.User | None = Depends(get_current_user_optional),
) -> schemas.ViewCountResponse:
    blog_service.get_visible_blog(db, blog_id, viewer)
    return schemas.ViewCountResponse(views=blog_service.increment_views(db, blog_id))


@router.post("/{blog_id}/like", response_model=schemas.LikeResponse)
def toggle_like(
    blog_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.LikeResponse:
    """Like a blog, or remove the like if it is already there."""
    blog = blog_service.get_visible_blog(db, blog_id, current_user)
    liked = blog_service.toggle_like(db, blog, current_user)
    return schemas.LikeResponse(liked=liked, likes=blog.likes)


@router.post("/{blog_id}/submit", response_model=schemas.Blog)
def submit_blog(
    blog_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Blog:
    """Send a draft (or rejected blog) to the admin review queue."""
    blog = blog_service.get_blog(db, blog_id)
    return schemas.Blog.model_validate(blog_service.submit_blog(db, blog, current_user))


@router.post("/{blog_id}/approve", response_model=schemas.Blog)
def approve_blog(
    blog_id: int,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> schemas.Blog:
    blog = blog_service.get_blog(db, blog_id)
    return schemas.Blog.model_validate(moderation.approve_blog(db, blog, admin))


@router.post("/{blog_id}/reject", response_model=schemas.Blog)
def reject_blog(
    blog_id: int,
    payload: schemas.RejectRequest,
    db: Session = Depends(get_db),
    admin: models.User = Depends(require_admin),
) -> schemas.Blog:
    blog = blog_service.get_blog(db, blog_id)
    return schemas.Blog.model_validate(moderation.reject_blog(db, blog, admin, payload.reason))


@router.websocket("/{blog_id}/ws")
async def blog_feed(websocket: WebSocket, blog_id: int, token: str | None = None):
    """
    Realtime feed for one blog: comments, likes, comment likes and bookmarks.

    Clients connect via: ws://host/blogs/<id>/ws[?token=<jwt_token>]

    Unpublished blogs are only streamed to their author and admins.
    """
    db = SessionLocal()
    try:
        viewer = user_from_token(token, db) if token else None
        blog_service.get_visible_blog(db, blog_id, viewer)
    except HTTPException as e:
        logger.info(f"Blog feed {blog_id} authentication failed: {e.detail}")
        await websocket.close(code=1008, reason="Authentication failed")
        return
    except NotFoundError:
        await websocket.close(code=1008, reason="Blog not available")
        return
    finally:
        db.close()

    channels = [blog_channel(kind, blog_id) for kind in BLOG_CHANNEL_KINDS]

    connected = await connection_manager.connect(websocket, channels)
    if not connected:
        await websocket.close(code=1008, reason="Connection limit reached")
        return

    try:
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        logger.debug(f"Blog feed {blog_id} client disconnected")
    finally:
        await connection_manager.disconnect(websocket, channels)
