"""Downstream channels used by the dispatch router."""

from __future__ import annotations

from app.application.ports import BroadcastChannel, DurableChannel
from app.config import Settings

from .aws import create_client
from .local import LOCAL_MESSAGE_ID, LoggingBroadcastChannel, LoggingQueueChannel
from .manager import NotificationConnectionManager, notification_manager
from .sns import SnsBroadcastChannel
from .sqs import SqsDurableChannel
from .websocket import WebsocketBroadcastChannel


def build_broadcast_channel(settings: Settings) -> BroadcastChannel:
    """Return the broadcast channel selected by ``BROADCAST_BACKEND``."""

    if settings.broadcast_backend == "sns":
        return SnsBroadcastChannel(create_client("sns", settings), settings.topics)
    if settings.broadcast_backend == "websocket":
        return WebsocketBroadcastChannel(notification_manager)
    return LoggingBroadcastChannel()


def build_queue_channel(settings: Settings) -> DurableChannel:
    """Return the durable channel selected by ``QUEUE_BACKEND``."""

    if settings.queue_backend == "sqs":
        return SqsDurableChannel(create_client("sqs", settings), settings.sqs_queue_url or "")
    return LoggingQueueChannel()


__all__ = [
    "LOCAL_MESSAGE_ID",
    "LoggingBroadcastChannel",
    "LoggingQueueChannel",
    "NotificationConnectionManager",
    "SnsBroadcastChannel",
    "SqsDurableChannel",
    "WebsocketBroadcastChannel",
    "build_broadcast_channel",
    "build_queue_channel",
    "create_client",
    "notification_manager",
]
