"""Pydantic models describing notification requests and responses.

Every model speaks camelCase on the wire and accepts snake_case field names
when constructed in Python.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

PriorityLiteral = Literal["low", "normal", "high", "urgent"]

_DATETIME = TypeAdapter(datetime)


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class NotificationCreate(CamelModel):
    """Generic creation request routed by ``entityType``."""

    type: str = Field(..., min_length=1)
    entity_type: str = Field(..., min_length=1)
    entity_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    priority: PriorityLiteral = "normal"
    recipients: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class TaskNotificationCreate(CamelModel):
    task_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    priority: PriorityLiteral | None = None
    assigned_to: str | None = None
    due_date: str | None = None
    patient_id: str | None = None

    @field_validator("due_date")
    @classmethod
    def _check_due_date(cls, value: str | None) -> str | None:
        # Stored verbatim; only checked for being a parseable timestamp.
        if value is None:
            return None
        try:
            _DATETIME.validate_python(value)
        except PydanticValidationError as exc:
            raise ValueError("dueDate must be an ISO 8601 datetime") from exc
        return value


class AlarmNotificationCreate(CamelModel):
    alarm_id: str = Field(..., min_length=1)
    alarm_type: str = Field(..., min_length=1)
    message: str | None = None
    patient_id: str | None = None
    location: str | None = None
    recipients: list[str] = Field(default_factory=list)


class VisitNotificationCreate(CamelModel):
    visit_id: str = Field(..., min_length=1)
    patient_id: str = Field(..., min_length=1)
    status: str = Field(..., min_length=1)
    nurse_id: str | None = None
    visit_type: str | None = None
    recipients: list[str] = Field(default_factory=list)


class MedicineNotificationCreate(CamelModel):
    medicine_id: str = Field(..., min_length=1)
    patient_id: str = Field(..., min_length=1)
    medicine_name: str = Field(..., min_length=1)
    change_type: Literal["added", "updated", "removed"]
    dosage: str | None = None
    message: str | None = None
    recipients: list[str] = Field(default_factory=list)


class DeliveryUpdate(CamelModel):
    """Delivery confirmation reported by a downstream channel."""

    channel: str = Field(..., min_length=1)
    message_id: str | None = None


class ChannelDeliveryRead(CamelModel):
    sent: bool = False
    sent_at: datetime | None = None
    message_id: str | None = None


class InAppDeliveryRead(CamelModel):
    displayed: bool = False
    displayed_at: datetime | None = None


class DeliveryChannelsRead(CamelModel):
    push: ChannelDeliveryRead
    email: ChannelDeliveryRead
    sms: ChannelDeliveryRead
    in_app: InAppDeliveryRead


class RelatedEntitiesRead(CamelModel):
    visit_id: str | None = None
    patient_id: str | None = None
    task_id: str | None = None
    care_plan_id: str | None = None
    file_id: str | None = None


class NotificationRead(CamelModel):
    """Representation of a stored notification delivered to the client."""

    id: str
    type: str
    title: str
    message: str
    recipient_id: str
    recipient_type: str
    priority: str
    status: str
    read: bool
    read_at: datetime | None = None
    channels: DeliveryChannelsRead
    metadata: dict[str, Any] = Field(default_factory=dict)
    related_entities: RelatedEntitiesRead
    action_required: bool = False
    action_url: str | None = None
    action_label: str | None = None
    action_completed: bool = False
    action_completed_at: datetime | None = None
    expires_at: datetime | None = None
    sns_message_id: str | None = None
    sqs_message_id: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    age_minutes: int | None = None
    is_expired: bool = False
    is_urgent: bool = False


class NotificationListResponse(CamelModel):
    success: bool = True
    count: int
    data: list[NotificationRead]


class NotificationResponse(CamelModel):
    success: bool = True
    message: str | None = None
    data: NotificationRead | None = None


class UnreadCountResponse(CamelModel):
    success: bool = True
    recipient_id: str
    unread_count: int


class MarkAllReadResponse(CamelModel):
    success: bool = True
    modified_count: int
    message: str


class NotificationStats(CamelModel):
    total: int
    unread: int
    by_type: dict[str, int]
    by_priority: dict[str, int]


class NotificationStatsResponse(CamelModel):
    success: bool = True
    data: NotificationStats


class ChannelResultRead(CamelModel):
    success: bool
    message_id: str | None = None
    destination: str | None = None


class DispatchNotificationRead(CamelModel):
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
    status: str


class DispatchResultRead(CamelModel):
    """Outcome of a dispatch, including the ids of the persisted records."""

    success: bool
    notification: DispatchNotificationRead
    broadcast_result: ChannelResultRead
    queue_result: ChannelResultRead
    records: list[str] = Field(default_factory=list)


class HealthRead(BaseModel):
    status: str
    service: str
    timestamp: str


__all__ = [
    "AlarmNotificationCreate",
    "ChannelResultRead",
    "DeliveryUpdate",
    "DispatchNotificationRead",
    "DispatchResultRead",
    "HealthRead",
    "MarkAllReadResponse",
    "MedicineNotificationCreate",
    "NotificationCreate",
    "NotificationListResponse",
    "NotificationRead",
    "NotificationResponse",
    "NotificationStats",
    "NotificationStatsResponse",
    "TaskNotificationCreate",
    "UnreadCountResponse",
    "VisitNotificationCreate",
]
