"""Notifications API endpoints."""

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

from .. import models, schemas, settings
from ..auth import get_current_user, require_admin, user_from_token
from ..db import SessionLocal
from ..deps import get_db
from ..services.notifications import NotificationService
from ..websocket_manager import connection_manager, user_channel

router = APIRouter(prefix="/notifications", tags=["Notifications"])
logger = logging.getLogger(__name__)


@router.get("", response_model=list[schemas.Notification])
def list_notifications(
    limit: int = Query(settings.NOTIFICATION_LIST_LIMIT, ge=1, le=200),
    unread_only: bool = False,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> list[schemas.Notification]:
    """List notifications for the current user, newest first."""
    notifications = NotificationService.list_for_user(
        db, current_user.id, limit=limit, unread_only=unread_only
    )
    return [schemas.Notification.model_validate(n) for n in notifications]


@router.post("", response_model=schemas.Notification, status_code=status.HTTP_201_CREATED)
def create_notification(
    payload: schemas.NotificationCreate,
    db: Session = Depends(get_db),
    _admin: models.User = Depends(require_admin),
) -> schemas.Notification:
    """Send a notification to a user (admin only)."""
    if not db.query(models.User.id).filter(models.User.id == payload.user_id).first():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    notification = NotificationService.create_notification(
        db,
        user_id=payload.user_id,
        notification_type=payload.type,
        title=payload.title,
        message=payload.message,
        link=payload.link,
    )
    return schemas.Notification.model_validate(notification)


@router.get("/unread-count", response_model=schemas.UnreadCountResponse)
def get_unread_count(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.UnreadCountResponse:
    """Get unread notification count for the current user."""
    count = NotificationService.get_unread_count(db, current_user.id)
    return schemas.UnreadCountResponse(unread_count=count)


@router.post("/mark-all-read", status_code=status.HTTP_204_NO_CONTENT)
def mark_all_notifications_read(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> None:
    """Mark all notifications as read for the current user."""
    NotificationService.mark_all_as_read(db, current_user.id)


@router.post("/{notification_id}/read", response_model=schemas.Notification)
def mark_notification_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Notification:
    notification = NotificationService.mark_as_read(db, notification_id, current_user.id)
    return schemas.Notification.model_validate(notification)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> None:
    """Delete a specific notification."""
    NotificationService.delete(db, notification_id, current_user.id)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def delete_all_notifications(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> None:
    NotificationService.delete_all(db, current_user.id)


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, token: str):
    """
    WebSocket endpoint for real-time notifications.

    Clients connect via: ws://host/notifications/ws?token=<jwt_token>
    """
    db = SessionLocal()
    try:
        user_id = user_from_token(token, db).id
    except HTTPException as e:
        logger.info(f"WebSocket authentication failed: {e.detail}")
        await websocket.close(code=1008, reason="Authentication failed")
        return
    finally:
        db.close()

    channels = [user_channel(user_id)]
    connected = await connection_manager.connect(websocket, channels)
    if not connected:
        await websocket.close(code=1008, reason="Connection limit reached")
        return

    try:
        # Keep connection alive and handle incoming messages
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for user {user_id}")
    finally:
        await connection_manager.disconnect(websocket, channels)
