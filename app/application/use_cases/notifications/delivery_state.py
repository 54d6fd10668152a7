"""Read, delivery and action transitions for persisted notifications."""

from __future__ import annotations

import logging

from app.domain.entities import DELIVERY_CHANNELS, IN_APP_CHANNEL, Notification
from app.domain.exceptions import NotFoundError
from app.infrastructure.repositories import NotificationRepository

logger = logging.getLogger(__name__)


class DeliveryStateMachine:
    """Apply the legal state transitions of a notification.

    States advance ``pending -> sent -> delivered -> read``. ``failed`` is set
    by an external delivery-failure signal from any state except ``read``.
    Every transition is a single field-level update in the store.
    """

    def __init__(self, repository: NotificationRepository) -> None:
        self._repository = repository

    def mark_as_read(self, notification_id: str) -> Notification:
        """Set ``read``, ``readAt`` and ``status=read``.

        Calling it again on a read notification leaves ``read`` and
        ``status`` unchanged but refreshes ``readAt`` and ``updatedAt``.
        """

        self._require(self._repository.apply_read(notification_id))
        return self._reload(notification_id)

    def mark_as_delivered(
        self, notification_id: str, channel: str, message_id: str | None = None
    ) -> Notification:
        """Record a delivery on ``channel`` and promote ``pending`` to ``sent``.

        Unknown channels are ignored and the current record is returned.
        """

        if channel not in DELIVERY_CHANNELS and channel != IN_APP_CHANNEL:
            logger.warning(
                "Ignoring delivery on unknown channel %r for notification %s",
                channel,
                notification_id,
            )
            return self._reload(notification_id)

        self._require(self._repository.apply_delivery(notification_id, channel, message_id))
        return self._reload(notification_id)

    def mark_as_failed(self, notification_id: str) -> Notification:
        self._require(self._repository.apply_failure(notification_id))
        return self._reload(notification_id)

    def complete_action(self, notification_id: str) -> Notification:
        self._require(self._repository.apply_action_completed(notification_id))
        return self._reload(notification_id)

    def _reload(self, notification_id: str) -> Notification:
        notification = self._repository.get(notification_id)
        if notification is None:
            raise NotFoundError("Notification not found")
        return notification

    @staticmethod
    def _require(changed: bool) -> None:
        if not changed:
            raise NotFoundError("Notification not found")


__all__ = ["DeliveryStateMachine"]
