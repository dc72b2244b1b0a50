from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from . import models, settings
from .db import SessionLocal
from .services.feature_toggles import EVENT_MANAGEMENT
from .services.users import get_user_by_email, register_user

logger = logging.getLogger(__name__)


def _seed_categories(db: Session) -> None:
    existing = {name for (name,) in db.query(models.Category.name).all()}
    missing = [
        models.Category(name=name, color=color)
        for name, color in settings.DEFAULT_CATEGORIES
        if name not in existing
    ]
    if missing:
        db.add_all(missing)
        db.commit()
        logger.info(f"ensure_seed_data: Created {len(missing)} categories.")


def _seed_feature_toggles(db: Session) -> None:
    toggle = db.query(models.FeatureToggle).filter(
        models.FeatureToggle.feature == EVENT_MANAGEMENT
    ).first()
    if toggle is None:
        db.add(
            models.FeatureToggle(
                feature=EVENT_MANAGEMENT,
                description="Event listing, creation and registration",
                is_enabled=settings.EVENT_MANAGEMENT_DEFAULT,
            )
        )
        db.commit()
        logger.info("ensure_seed_data: Created event_management toggle.")


def _seed_admin(db: Session) -> None:
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        return

    user = get_user_by_email(db, settings.ADMIN_EMAIL)
    if user is None:
        register_user(
            db,
            settings.ADMIN_EMAIL,
            settings.ADMIN_PASSWORD,
            full_name=settings.ADMIN_FULL_NAME,
            role="admin",
        )
        logger.info(f"ensure_seed_data: Created admin {settings.ADMIN_EMAIL}.")
    elif user.role != "admin":
        user.role = "admin"
        db.commit()
        logger.info(f"ensure_seed_data: Promoted {settings.ADMIN_EMAIL} to admin.")


def ensure_seed_data() -> None:
    """Create default categories, feature toggles and the bootstrap admin if missing."""
    db = SessionLocal()
    try:
        _seed_categories(db)
        _seed_feature_toggles(db)
        _seed_admin(db)
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level="INFO")
    ensure_seed_data()
