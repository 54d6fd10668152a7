"""Broadcast channel pushing notifications to connected websocket clients."""

from __future__ import annotations

import logging
from typing import Any

from anyio import from_thread

from app.domain.entities import ChannelResult

from .manager import NotificationConnectionManager, notification_manager

logger = logging.getLogger(__name__)


class WebsocketBroadcastChannel:
    """Deliver payloads to the live connections of each recipient.

    ``publish`` runs in a worker thread and hands every send back to the
    event loop that owns the websocket connections.
    """

    def __init__(self, manager: NotificationConnectionManager | None = None) -> None:
        self._manager = manager or notification_manager

    def publish(self, category: str, payload: dict[str, Any]) -> ChannelResult:
        message = {"type": "notification", "category": category, "data": payload}
        delivered = 0
        for recipient_id in payload.get("recipients") or []:
            delivered += from_thread.run(self._manager.send_to_recipient, recipient_id, message)
        logger.info(
            "Websocket notification %s pushed to %d connections", payload.get("id"), delivered
        )
        return ChannelResult(success=True, message_id=payload.get("id"), destination="websocket")


__all__ = ["WebsocketBroadcastChannel"]
