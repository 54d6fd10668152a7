"""Retention and expiry sweeps over the notification store."""

from __future__ import annotations

import logging
from datetime import datetime

from app.infrastructure.repositories import NotificationRepository

logger = logging.getLogger(__name__)


def purge_notifications(
    repository: NotificationRepository,
    *,
    days_old: int,
    now: datetime | None = None,
) -> dict[str, int]:
    """Delete read notifications older than ``days_old`` days and expired ones.

    Returns the number of rows removed by each sweep.
    """

    old = repository.delete_old(days_old)
    expired = repository.delete_expired(now)
    logger.info(
        "Purged %d read notifications older than %d days and %d expired notifications",
        old,
        days_old,
        expired,
    )
    return {"old": old, "expired": expired}


def sweep_expired(repository: NotificationRepository, now: datetime | None = None) -> int:
    removed = repository.delete_expired(now)
    if removed:
        logger.info("Removed %d expired notifications", removed)
    return removed


__all__ = ["purge_notifications", "sweep_expired"]
