"""Centralized environment-driven settings.

Keep this module lightweight: stdlib only, no app imports, to avoid circular deps.
"""

from __future__ import annotations

import os


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Alembic upgrade on startup. Tests build the schema from metadata instead.
RUN_MIGRATIONS: bool = _bool_env("RUN_MIGRATIONS", True)

# Redis is optional; realtime falls back to in-process delivery when unset.
REDIS_URL: str | None = os.getenv("REDIS_URL") or None

CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost")

# Blog excerpts (characters of plain text before "...")
EXCERPT_LENGTH: int = _int_env("EXCERPT_LENGTH", 150)

NOTIFICATION_LIST_LIMIT: int = _int_env("NOTIFICATION_LIST_LIMIT", 50)

# Used when the event_management toggle row has not been created yet
EVENT_MANAGEMENT_DEFAULT: bool = _bool_env("EVENT_MANAGEMENT_DEFAULT", True)

EVENT_REMINDER_WINDOW_HOURS: int = _int_env("EVENT_REMINDER_WINDOW_HOURS", 24)

# Optional bootstrap admin, created by the seed step if missing
ADMIN_EMAIL: str | None = os.getenv("ADMIN_EMAIL") or None
ADMIN_PASSWORD: str | None = os.getenv("ADMIN_PASSWORD") or None
ADMIN_FULL_NAME: str = os.getenv("ADMIN_FULL_NAME", "NCIT Hub Admin")

DEFAULT_CATEGORIES: list[tuple[str, str]] = [
    ("Academic", "#3b82f6"),
    ("Sports", "#22c55e"),
    ("Cultural", "#a855f7"),
    ("Technical", "#f97316"),
    ("General", "#64748b"),
]
