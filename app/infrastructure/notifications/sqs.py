"""Durable queue channel backed by a single SQS queue."""

from __future__ import annotations

import json
import logging
from typing import Any

from app.domain.entities import PRIORITY_NORMAL, ChannelResult

logger = logging.getLogger(__name__)

RECEIVE_WAIT_SECONDS = 10


class SqsDurableChannel:
    """Send notification payloads to the notifications queue.

    ``receive`` and ``delete`` serve downstream consumers draining the queue.
    """

    def __init__(self, client: Any, queue_url: str) -> None:
        if not queue_url:
            raise ValueError("SQS queue URL is not configured")
        self._client = client
        self._queue_url = queue_url

    @property
    def queue_url(self) -> str:
        return self._queue_url

    def publish(self, payload: dict[str, Any]) -> ChannelResult:
        response = self._client.send_message(
            QueueUrl=self._queue_url,
            MessageBody=json.dumps(payload),
            MessageAttributes={
                "notificationType": {
                    "DataType": "String",
                    "StringValue": str(payload.get("type")),
                },
                "priority": {
                    "DataType": "String",
                    "StringValue": str(payload.get("priority") or PRIORITY_NORMAL),
                },
            },
        )
        message_id = response.get("MessageId")
        logger.info("SQS message sent message_id=%s queue=%s", message_id, self._queue_url)
        return ChannelResult(success=True, message_id=message_id, destination=self._queue_url)

    def receive(self, max_messages: int = 10) -> list[dict[str, Any]]:
        response = self._client.receive_message(
            QueueUrl=self._queue_url,
            MaxNumberOfMessages=max_messages,
            WaitTimeSeconds=RECEIVE_WAIT_SECONDS,
            MessageAttributeNames=["All"],
        )
        return response.get("Messages", [])

    def delete(self, receipt_handle: str) -> None:
        self._client.delete_message(QueueUrl=self._queue_url, ReceiptHandle=receipt_handle)
        logger.info("SQS message deleted")


__all__ = ["SqsDurableChannel"]
