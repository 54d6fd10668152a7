"""Recipient-facing queries and commands over stored notifications."""

from __future__ import annotations

import logging
from typing import Any

from app.domain.entities import NOTIFICATION_TYPES, PRIORITIES, RELATED_ENTITY_KEYS, Notification
from app.domain.exceptions import NotFoundError, ValidationError
from app.infrastructure.repositories import NotificationRepository
from app.infrastructure.repositories.notification_repository import DEFAULT_LIMIT

from .delivery_state import DeliveryStateMachine


class RecipientQueryService:
    """Translate caller filters into store calls and shape the responses."""

    def __init__(
        self,
        repository: NotificationRepository,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._repository = repository
        self._states = DeliveryStateMachine(repository)
        self._logger = logger or logging.getLogger(__name__)

    def list(
        self,
        recipient_id: str,
        *,
        type: str | None = None,
        read: bool | str | None = None,
        priority: str | None = None,
        limit: int | str | None = None,
    ) -> dict[str, Any]:
        if type and type not in NOTIFICATION_TYPES:
            raise ValidationError(f"Unknown notification type: {type}", fields=["type"])
        if priority and priority not in PRIORITIES:
            raise ValidationError(f"Unknown priority: {priority}", fields=["priority"])

        notifications = self._repository.find_by_recipient(
            recipient_id,
            type=type or None,
            read=parse_read_filter(read),
            priority=priority or None,
            limit=parse_limit(limit),
        )
        return {"success": True, "count": len(notifications), "data": list(notifications)}

    def unread(self, recipient_id: str) -> dict[str, Any]:
        notifications = self._repository.find_unread(recipient_id)
        return {"success": True, "count": len(notifications), "data": list(notifications)}

    def related(self, kind: str, value: str, *, limit: int | str | None = None) -> dict[str, Any]:
        """List notifications that reference ``value`` through ``kind`` (e.g. ``patientId``)."""

        if kind not in RELATED_ENTITY_KEYS:
            raise ValidationError(
                f"kind must be one of {', '.join(RELATED_ENTITY_KEYS)}", fields=["kind"]
            )
        notifications = self._repository.find_by_related_entity(kind, value, limit=parse_limit(limit))
        return {"success": True, "count": len(notifications), "data": list(notifications)}

    def unread_count(self, recipient_id: str) -> dict[str, Any]:
        return {
            "success": True,
            "recipientId": recipient_id,
            "unreadCount": self._repository.get_unread_count(recipient_id),
        }

    def mark_as_read(self, notification_id: str) -> dict[str, Any]:
        notification = self._states.mark_as_read(notification_id)
        return {
            "success": True,
            "message": f"Notification {notification_id} marked as read",
            "data": notification,
        }

    def mark_as_delivered(
        self, notification_id: str, channel: str, message_id: str | None = None
    ) -> dict[str, Any]:
        notification = self._states.mark_as_delivered(notification_id, channel, message_id)
        return {"success": True, "data": notification}

    def complete_action(self, notification_id: str) -> dict[str, Any]:
        notification = self._states.complete_action(notification_id)
        return {"success": True, "data": notification}

    def mark_all_as_read(self, recipient_id: str) -> dict[str, Any]:
        modified = self._repository.mark_all_as_read(recipient_id)
        self._logger.info("Marked %d notifications as read for %s", modified, recipient_id)
        return {
            "success": True,
            "modifiedCount": modified,
            "message": f"All notifications marked as read for {recipient_id}",
        }

    def delete(self, notification_id: str) -> dict[str, Any]:
        deleted: Notification | None = self._repository.delete_by_id(notification_id)
        if deleted is None:
            raise NotFoundError("Notification not found")
        return {"success": True, "message": "Notification deleted"}

    def stats(self, recipient_id: str) -> dict[str, Any]:
        stats = self._repository.get_stats(recipient_id)
        return {
            "success": True,
            "data": {
                "total": stats["total"],
                "unread": stats["unread"],
                "byType": stats["by_type"],
                "byPriority": stats["by_priority"],
            },
        }


def parse_read_filter(value: bool | str | None) -> bool | None:
    """Normalize the ``read`` filter; ``"true"``/``"false"`` become booleans."""

    if value is None or isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized == "":
        return None
    if normalized == "true":
        return True
    if normalized == "false":
        return False
    raise ValidationError("read must be 'true' or 'false'", fields=["read"])


def parse_limit(value: int | str | None) -> int:
    """Parse ``limit`` as an integer, falling back to the default of 50."""

    if value is None:
        return DEFAULT_LIMIT
    try:
        limit = int(value)
    except (TypeError, ValueError):
        return DEFAULT_LIMIT
    return limit if limit > 0 else DEFAULT_LIMIT


__all__ = ["RecipientQueryService", "parse_limit", "parse_read_filter"]
