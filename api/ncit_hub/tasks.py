from __future__ import annotations

import logging
import os
from typing import Any

from celery import Celery

from . import settings

logger = logging.getLogger(__name__)

DEFAULT_REDIS = "redis://cache:6379/0"

celery_app = Celery(
    "ncit_hub",
    broker=os.getenv("CELERY_BROKER_URL", DEFAULT_REDIS),
    backend=os.getenv("CELERY_RESULT_BACKEND", DEFAULT_REDIS),
)

celery_app.conf.update(
    task_default_queue="default",
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    result_expires=3600,
    worker_max_tasks_per_child=100,
    beat_schedule={
        "send-event-reminders": {
            "task": "ncit_hub.tasks.periodic_send_event_reminders",
            "schedule": 3600.0,  # Every hour (in seconds)
        },
    },
    timezone="UTC",
)


@celery_app.task(name="ncit_hub.tasks.periodic_send_event_reminders", bind=True)
def periodic_send_event_reminders(self, within_hours: int | None = None) -> dict[str, Any]:
    """
    Notify registrants of events starting soon.

    Skipped while the event_management toggle is off.
    """
    from .db import SessionLocal
    from .services.events import send_event_reminders
    from .services.feature_toggles import EVENT_MANAGEMENT, is_enabled

    db = SessionLocal()
    try:
        if not is_enabled(db, EVENT_MANAGEMENT, default=settings.EVENT_MANAGEMENT_DEFAULT):
            logger.info("Event management disabled, skipping reminders")
            return {"status": "skipped", "sent": 0}

        sent = send_event_reminders(
            db, within_hours=within_hours or settings.EVENT_REMINDER_WINDOW_HOURS
        )
        return {"status": "success", "sent": sent}
    except Exception as e:
        logger.error("Event reminder sweep failed: %s", e, exc_info=True)
        db.rollback()
        raise
    finally:
        db.close()
