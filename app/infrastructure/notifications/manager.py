"""Connection management helpers for notification websockets."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, DefaultDict, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class NotificationConnectionManager:
    """Manage active websocket connections grouped by recipient."""

    def __init__(self) -> None:
        self._connections: DefaultDict[str, Set[WebSocket]] = defaultdict(set)

    async def connect(self, recipient_id: str, websocket: WebSocket) -> None:
        """Accept the websocket connection and register it for ``recipient_id``."""

        await websocket.accept()
        self._connections[recipient_id].add(websocket)

    def disconnect(self, recipient_id: str, websocket: WebSocket) -> None:
        connections = self._connections.get(recipient_id)
        if connections is None:
            return
        connections.discard(websocket)
        if not connections:
            self._connections.pop(recipient_id, None)

    def connection_count(self, recipient_id: str) -> int:
        return len(self._connections.get(recipient_id, ()))

    async def send_to_recipient(self, recipient_id: str, message: dict[str, Any]) -> int:
        """Send ``message`` to every connection of ``recipient_id``.

        Returns the number of connections that accepted the message. Broken
        connections are dropped from the pool.
        """

        delivered = 0
        for connection in list(self._connections.get(recipient_id, set())):
            try:
                await connection.send_json(message)
            except Exception as exc:
                logger.warning("Dropping websocket for %s after send failure: %s", recipient_id, exc)
                self.disconnect(recipient_id, connection)
            else:
                delivered += 1
        return delivered


notification_manager = NotificationConnectionManager()


__all__ = ["NotificationConnectionManager", "notification_manager"]
