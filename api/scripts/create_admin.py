#!/usr/bin/env python3
"""
Create (or promote) an admin account.

Usage (from the api directory):
    python scripts/create_admin.py admin@ncit.edu.np 'S3cret-pass' --full-name "Portal Admin"

An existing profile with the same email is promoted to admin; its password
is left unchanged.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

load_dotenv()

from ncit_hub.db import SessionLocal  # noqa: E402
from ncit_hub.services.users import get_user_by_email, register_user  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def create_admin(email: str, password: str, full_name: str | None, department: str | None) -> int:
    db = SessionLocal()
    try:
        user = get_user_by_email(db, email)
        if user is not None:
            if user.role == "admin":
                logger.info(f"{email} is already an admin (id {user.id})")
                return 0
            user.role = "admin"
            db.commit()
            logger.info(f"Promoted existing user {user.id} ({email}) to admin")
            return 0

        user = register_user(db, email, password, full_name=full_name, role="admin")
        if department:
            user.department = department
            db.commit()
        logger.info(f"Created admin {user.id} ({email})")
        return 0
    finally:
        db.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create an NCIT Hub admin account")
    parser.add_argument("email", help="Admin email address")
    parser.add_argument("password", help="Password (at least 8 characters)")
    parser.add_argument("--full-name", default=None, help="Display name")
    parser.add_argument("--department", default="Administration", help="Department")
    args = parser.parse_args()

    if len(args.password) < 8:
        parser.error("password must be at least 8 characters")

    sys.exit(create_admin(args.email, args.password, args.full_name, args.department))


if __name__ == "__main__":
    main()
