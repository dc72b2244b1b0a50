"""Password identities: hashing, lookup and password changes."""

from __future__ import annotations

import logging

from passlib.context import CryptContext
from sqlalchemy.orm import Session

from ..models import AuthIdentity

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_password_identity(
    db: Session,
    user_id: int,
    email: str,
    password: str,
) -> AuthIdentity:
    """
    Create a password-based authentication identity.

    The email is stored lowercased as provider_user_id for case-insensitive
    login. Raises IntegrityError if the identity already exists.
    """
    identity = AuthIdentity(
        user_id=user_id,
        provider="password",
        provider_user_id=email.lower(),
        secret_hash=hash_password(password),
    )
    db.add(identity)
    db.commit()
    db.refresh(identity)
    return identity


def get_password_identity(db: Session, user_id: int) -> AuthIdentity | None:
    return db.query(AuthIdentity).filter(
        AuthIdentity.user_id == user_id,
        AuthIdentity.provider == "password",
    ).first()


def find_identity_by_password(
    db: Session, email: str, password: str
) -> AuthIdentity | None:
    """Return the identity whose email and password match, or None."""
    identity = db.query(AuthIdentity).filter(
        AuthIdentity.provider == "password",
        AuthIdentity.provider_user_id == email.lower(),
    ).first()

    if not identity or not identity.secret_hash:
        return None

    if not verify_password(password, identity.secret_hash):
        logger.info(f"Failed password login for {email.lower()}")
        return None

    return identity


def update_password(db: Session, user_id: int, new_password: str) -> bool:
    """Replace the stored password hash. Returns False if there is no identity."""
    identity = get_password_identity(db, user_id)
    if not identity:
        return False

    identity.secret_hash = hash_password(new_password)
    db.commit()
    return True
