"""Broadcast channel publishing notifications to per-category SNS topics."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from app.domain.entities import PRIORITY_NORMAL, ChannelResult
from app.utils import now_in_app_timezone

logger = logging.getLogger(__name__)

DEFAULT_SUBJECT = "Nursing Home Notification"
SUBJECT_MAX_LENGTH = 100


class SnsBroadcastChannel:
    """Publish notification payloads to the SNS topic of their category."""

    def __init__(self, client: Any, topics: Mapping[str, str | None]) -> None:
        if not any(topics.values()):
            raise ValueError("No SNS topic ARN is configured")
        self._client = client
        self._topics = dict(topics)

    def publish(self, category: str, payload: dict[str, Any]) -> ChannelResult:
        topic_arn = self._topics.get(category)
        if not topic_arn:
            raise ValueError(f"Invalid topic type: {category}")

        subject = (payload.get("title") or DEFAULT_SUBJECT)[:SUBJECT_MAX_LENGTH]
        response = self._client.publish(
            TopicArn=topic_arn,
            Message=json.dumps(payload),
            Subject=subject,
            MessageAttributes={
                "notificationType": _string_attribute(payload.get("type")),
                "priority": _string_attribute(payload.get("priority") or PRIORITY_NORMAL),
                "timestamp": _string_attribute(now_in_app_timezone().isoformat()),
            },
        )
        message_id = response.get("MessageId")
        logger.info(
            "SNS notification published message_id=%s topic=%s type=%s",
            message_id,
            topic_arn,
            payload.get("type"),
        )
        return ChannelResult(success=True, message_id=message_id, destination=topic_arn)


def _string_attribute(value: Any) -> dict[str, str]:
    return {"DataType": "String", "StringValue": str(value)}


__all__ = ["SnsBroadcastChannel"]
