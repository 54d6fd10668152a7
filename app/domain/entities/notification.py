"""Domain entity representing a notification addressed to a recipient."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

NOTIFICATION_TYPES = (
    "file_upload",
    "task_assigned",
    "task_due",
    "task_overdue",
    "alarm",
    "visit_status",
    "medicine_reminder",
    "care_plan_update",
    "system_alert",
    "other",
    # Types emitted by the dispatch templates.
    "task_created",
    "alarm_triggered",
    "visit_status_changed",
    "medicine_updated",
)

PRIORITY_LOW = "low"
PRIORITY_NORMAL = "normal"
PRIORITY_HIGH = "high"
PRIORITY_URGENT = "urgent"
PRIORITIES = (PRIORITY_LOW, PRIORITY_NORMAL, PRIORITY_HIGH, PRIORITY_URGENT)

RECIPIENT_TYPES = ("staff", "patient", "admin", "system")

STATUS_PENDING = "pending"
STATUS_SENT = "sent"
STATUS_DELIVERED = "delivered"
STATUS_READ = "read"
STATUS_FAILED = "failed"
STATUSES = (STATUS_PENDING, STATUS_SENT, STATUS_DELIVERED, STATUS_READ, STATUS_FAILED)

DELIVERY_CHANNELS = ("push", "email", "sms")
IN_APP_CHANNEL = "inApp"

RELATED_ENTITY_KEYS = ("visitId", "patientId", "taskId", "carePlanId", "fileId")

TITLE_MAX_LENGTH = 200
MESSAGE_MAX_LENGTH = 1000


@dataclass
class ChannelDelivery:
    """Delivery bookkeeping for an outbound channel (push, email or sms)."""

    sent: bool = False
    sent_at: datetime | None = None
    message_id: str | None = None


@dataclass
class InAppDelivery:
    """Display bookkeeping for the in-app inbox."""

    displayed: bool = False
    displayed_at: datetime | None = None


@dataclass
class DeliveryChannels:
    push: ChannelDelivery = field(default_factory=ChannelDelivery)
    email: ChannelDelivery = field(default_factory=ChannelDelivery)
    sms: ChannelDelivery = field(default_factory=ChannelDelivery)
    in_app: InAppDelivery = field(default_factory=InAppDelivery)


@dataclass
class RelatedEntities:
    """Weak references to the care records a notification is about."""

    visit_id: str | None = None
    patient_id: str | None = None
    task_id: str | None = None
    care_plan_id: str | None = None
    file_id: str | None = None


@dataclass
class Notification:
    """Notification persisted for a single recipient."""

    id: str | None
    type: str
    title: str
    message: str
    recipient_id: str
    priority: str = PRIORITY_NORMAL
    recipient_type: str = "staff"
    status: str = STATUS_PENDING
    read: bool = False
    read_at: datetime | None = None
    channels: DeliveryChannels = field(default_factory=DeliveryChannels)
    metadata: dict[str, Any] = field(default_factory=dict)
    related_entities: RelatedEntities = field(default_factory=RelatedEntities)
    action_required: bool = False
    action_url: str | None = None
    action_label: str | None = None
    action_completed: bool = False
    action_completed_at: datetime | None = None
    expires_at: datetime | None = None
    sns_message_id: str | None = None
    sqs_message_id: str | None = None
    created_by: str = "system"
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def age_minutes(self) -> int:
        if self.created_at is None:
            return 0
        delta = _now_like(self.created_at) - self.created_at
        return int(delta.total_seconds() // 60)

    @property
    def is_expired(self) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at < _now_like(self.expires_at)

    @property
    def is_urgent(self) -> bool:
        return self.priority in (PRIORITY_URGENT, PRIORITY_HIGH)


def _now_like(value: datetime) -> datetime:
    """Return the current time with the same awareness as ``value``."""

    now = datetime.now(tz=timezone.utc)
    if value.tzinfo is None:
        return now.replace(tzinfo=None)
    return now


__all__ = [
    "ChannelDelivery",
    "DeliveryChannels",
    "InAppDelivery",
    "Notification",
    "RelatedEntities",
    "NOTIFICATION_TYPES",
    "PRIORITIES",
    "PRIORITY_LOW",
    "PRIORITY_NORMAL",
    "PRIORITY_HIGH",
    "PRIORITY_URGENT",
    "RECIPIENT_TYPES",
    "STATUSES",
    "STATUS_PENDING",
    "STATUS_SENT",
    "STATUS_DELIVERED",
    "STATUS_READ",
    "STATUS_FAILED",
    "DELIVERY_CHANNELS",
    "IN_APP_CHANNEL",
    "RELATED_ENTITY_KEYS",
    "TITLE_MAX_LENGTH",
    "MESSAGE_MAX_LENGTH",
]
