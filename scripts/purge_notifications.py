"""Utility script to purge old and expired notifications."""

from __future__ import annotations

import argparse

from sqlalchemy.exc import SQLAlchemyError

from app.application.use_cases.notifications import purge_notifications
from app.config import get_settings
from app.infrastructure.database import SessionLocal, initialize_database
from app.infrastructure.logging import configure_logging
from app.infrastructure.repositories import NotificationRepository


def parse_args() -> argparse.Namespace:
    """Parse command line arguments for the purge."""

    parser = argparse.ArgumentParser(
        description="Delete read notifications older than N days and every expired notification.",
    )
    parser.add_argument(
        "--days",
        type=int,
        default=None,
        help="Age in days after which read notifications are deleted (default: RETENTION_DAYS)",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    settings = get_settings()
    configure_logging(settings.log_level)

    days = args.days if args.days is not None else settings.retention_days
    if days <= 0:
        raise SystemExit("--days must be a positive number of days.")

    initialize_database()

    session = SessionLocal()
    try:
        counts = purge_notifications(NotificationRepository(session), days_old=days)
    except SQLAlchemyError as exc:
        session.rollback()
        raise SystemExit(f"Could not purge notifications: {exc}") from exc
    else:
        print(
            "Purge finished:\n"
            f"  Read notifications older than {days} days: {counts['old']}\n"
            f"  Expired notifications: {counts['expired']}"
        )
    finally:
        session.close()


if __name__ == "__main__":
    main()
