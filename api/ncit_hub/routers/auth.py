"""Authentication endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import (
    access_token_expiry,
    check_user_can_authenticate,
    create_access_token,
    create_refresh_token,
    get_current_user,
    revoke_refresh_token,
    verify_refresh_token,
)
from ..deps import get_db
from ..services import users as user_service
from ..services.auth_identities import find_identity_by_password, update_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def _issue_tokens(user: models.User, db: Session) -> schemas.TokenResponse:
    return schemas.TokenResponse(
        token=create_access_token(user.id),
        refresh_token=create_refresh_token(user.id, db),
        user_id=user.id,
        expires_at=access_token_expiry(),
    )


@router.post(
    "/register",
    response_model=schemas.TokenResponse,
    status_code=status.HTTP_201_CREATED,
)
def register(
    payload: schemas.RegisterRequest,
    db: Session = Depends(get_db),
) -> schemas.TokenResponse:
    """Create an account with the "user" role and sign it in."""
    user = user_service.register_user(
        db, payload.email, payload.password, full_name=payload.full_name
    )
    return _issue_tokens(user, db)


@router.post("/login", response_model=schemas.TokenResponse)
def login(
    payload: schemas.LoginRequest,
    db: Session = Depends(get_db),
) -> schemas.TokenResponse:
    """Login with email and password."""
    identity = find_identity_by_password(db, payload.email.strip(), payload.password)
    if not identity:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    user = db.query(models.User).filter(models.User.id == identity.user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    check_user_can_authenticate(user)

    logger.info(f"User {user.id} logged in")
    return _issue_tokens(user, db)


@router.post("/refresh", response_model=schemas.TokenResponse)
def refresh_token(
    payload: schemas.RefreshTokenRequest, db: Session = Depends(get_db)
) -> schemas.TokenResponse:
    """
    Exchange a refresh token for a new access token.

    The refresh token is rotated: the old one is revoked.
    """
    user = verify_refresh_token(payload.refresh_token, db)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        )
    check_user_can_authenticate(user)

    revoke_refresh_token(payload.refresh_token, db)
    return _issue_tokens(user, db)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    payload: schemas.RefreshTokenRequest,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> None:
    """Logout current user by revoking refresh token."""
    revoke_refresh_token(payload.refresh_token, db)


@router.get("/me", response_model=schemas.Profile)
def get_me(current_user: models.User = Depends(get_current_user)) -> schemas.Profile:
    return schemas.Profile.model_validate(current_user)


@router.patch("/me", response_model=schemas.Profile)
def update_me(
    payload: schemas.ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.Profile:
    user = user_service.update_profile(
        db, current_user, payload.model_dump(exclude_unset=True)
    )
    return schemas.Profile.model_validate(user)


@router.post("/change-password", response_model=schemas.MessageResponse)
def change_password(
    payload: schemas.ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> schemas.MessageResponse:
    """
    Change the current user's password.

    Requires the current password.
    """
    identity = find_identity_by_password(db, current_user.email, payload.current_password)
    if not identity:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Current password is incorrect",
        )

    if not update_password(db, current_user.id, payload.new_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Failed to change password",
        )

    return schemas.MessageResponse(message="Password changed successfully")
