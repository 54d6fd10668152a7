"""Payloads exchanged with the downstream broadcast and queue channels."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

CATEGORY_TASK = "TASK"
CATEGORY_ALARM = "ALARM"
CATEGORY_VISIT = "VISIT"
CATEGORY_MEDICINE = "MEDICINE"

# Photo and audio uploads belong to task workflows.
ENTITY_CATEGORIES: dict[str, str] = {
    "task": CATEGORY_TASK,
    "alarm": CATEGORY_ALARM,
    "visit": CATEGORY_VISIT,
    "medicine": CATEGORY_MEDICINE,
    "audio": CATEGORY_TASK,
    "photo": CATEGORY_TASK,
}


@dataclass
class DispatchNotification:
    """Canonical notification payload delivered to every downstream channel."""

    id: str
    type: str
    entity_type: str
    entity_id: str
    title: str
    message: str
    priority: str
    recipients: list[str]
    metadata: dict[str, Any]
    timestamp: str
    status: str = "sent"

    def to_message(self) -> dict[str, Any]:
        """Return the JSON body published to the channels."""

        return {
            "id": self.id,
            "type": self.type,
            "entityType": self.entity_type,
            "entityId": self.entity_id,
            "title": self.title,
            "message": self.message,
            "priority": self.priority,
            "recipients": list(self.recipients),
            "metadata": dict(self.metadata),
            "timestamp": self.timestamp,
            "status": self.status,
        }


@dataclass
class ChannelResult:
    """Outcome reported by a channel after accepting a payload."""

    success: bool
    message_id: str | None
    destination: str | None = None


@dataclass
class DispatchResult:
    """Aggregated result of a notification dispatch."""

    success: bool
    notification: DispatchNotification
    broadcast_result: ChannelResult
    queue_result: ChannelResult
    records: list[str] = field(default_factory=list)


__all__ = [
    "CATEGORY_TASK",
    "CATEGORY_ALARM",
    "CATEGORY_VISIT",
    "CATEGORY_MEDICINE",
    "ENTITY_CATEGORIES",
    "ChannelResult",
    "DispatchNotification",
    "DispatchResult",
]
