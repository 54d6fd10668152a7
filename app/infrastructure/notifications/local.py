"""Channels that only log, used when no downstream infrastructure is configured."""

from __future__ import annotations

import logging
from typing import Any

from app.domain.entities import ChannelResult

logger = logging.getLogger(__name__)

LOCAL_MESSAGE_ID = "local-dev-mock"


class LoggingBroadcastChannel:
    def publish(self, category: str, payload: dict[str, Any]) -> ChannelResult:
        logger.info(
            "Broadcast skipped for notification %s category=%s", payload.get("id"), category
        )
        return ChannelResult(success=True, message_id=LOCAL_MESSAGE_ID, destination="log")


class LoggingQueueChannel:
    def publish(self, payload: dict[str, Any]) -> ChannelResult:
        logger.info("Queue send skipped for notification %s", payload.get("id"))
        return ChannelResult(success=True, message_id=LOCAL_MESSAGE_ID, destination="log")


__all__ = ["LOCAL_MESSAGE_ID", "LoggingBroadcastChannel", "LoggingQueueChannel"]
