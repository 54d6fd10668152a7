"""Construction and validation of notification records."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import fields as dataclass_fields
from datetime import datetime
from typing import Any

from app.domain.entities import (
    MESSAGE_MAX_LENGTH,
    NOTIFICATION_TYPES,
    PRIORITIES,
    PRIORITY_NORMAL,
    RECIPIENT_TYPES,
    STATUSES,
    STATUS_PENDING,
    STATUS_READ,
    TITLE_MAX_LENGTH,
    Notification,
    RelatedEntities,
)
from app.domain.exceptions import ValidationError
from app.utils import utc_now_naive

_RELATED_ENTITY_ALIASES = {
    "visitId": "visit_id",
    "patientId": "patient_id",
    "taskId": "task_id",
    "carePlanId": "care_plan_id",
    "fileId": "file_id",
}

_OPTIONAL_FIELDS = (
    "action_required",
    "action_url",
    "action_label",
    "expires_at",
    "sns_message_id",
    "sqs_message_id",
    "created_at",
)


def build_notification(fields: Mapping[str, Any]) -> Notification:
    """Return a validated :class:`Notification` built from ``fields``.

    Raises :class:`ValidationError` naming every violating field when a
    required value is missing, an enumerated value is unknown or a length
    bound is exceeded. Documented defaults are applied to omitted fields.
    """

    errors: list[str] = []
    violations: list[str] = []

    def fail(field_name: str, message: str) -> None:
        violations.append(field_name)
        errors.append(message)

    title = _clean_text(fields.get("title"))
    message = _clean_text(fields.get("message"))
    recipient_id = _clean_text(fields.get("recipient_id"))
    notification_type = fields.get("type")

    if not notification_type:
        fail("type", "type is required")
    elif notification_type not in NOTIFICATION_TYPES:
        fail("type", f"type '{notification_type}' is not a valid notification type")

    if not title:
        fail("title", "title is required")
    elif len(title) > TITLE_MAX_LENGTH:
        fail("title", f"title must be at most {TITLE_MAX_LENGTH} characters")

    if not message:
        fail("message", "message is required")
    elif len(message) > MESSAGE_MAX_LENGTH:
        fail("message", f"message must be at most {MESSAGE_MAX_LENGTH} characters")

    if not recipient_id:
        fail("recipient_id", "recipient_id is required")

    priority = fields.get("priority") or PRIORITY_NORMAL
    if priority not in PRIORITIES:
        fail("priority", f"priority '{priority}' must be one of {', '.join(PRIORITIES)}")

    recipient_type = fields.get("recipient_type") or "staff"
    if recipient_type not in RECIPIENT_TYPES:
        fail(
            "recipient_type",
            f"recipient_type '{recipient_type}' must be one of {', '.join(RECIPIENT_TYPES)}",
        )

    read = bool(fields.get("read", False))
    status = fields.get("status") or (STATUS_READ if read else STATUS_PENDING)
    if status not in STATUSES:
        fail("status", f"status '{status}' must be one of {', '.join(STATUSES)}")
    elif read != (status == STATUS_READ):
        fail("status", "status must be 'read' exactly when read is true")

    metadata = fields.get("metadata")
    if metadata is None:
        metadata = {}
    elif not isinstance(metadata, Mapping):
        fail("metadata", "metadata must be an object")

    related = _related_entities(fields.get("related_entities"))
    if related is None:
        fail("related_entities", "related_entities must be an object")

    for name in ("expires_at", "created_at"):
        value = fields.get(name)
        if value is not None and not isinstance(value, datetime):
            fail(name, f"{name} must be a datetime")

    if violations:
        raise ValidationError("; ".join(errors), fields=violations)

    read_at = fields.get("read_at")
    if read and read_at is None:
        read_at = utc_now_naive()
    if not read:
        read_at = None

    optional = {name: fields[name] for name in _OPTIONAL_FIELDS if fields.get(name) is not None}
    return Notification(
        id=None,
        type=notification_type,
        title=title,
        message=message,
        recipient_id=recipient_id,
        priority=priority,
        recipient_type=recipient_type,
        status=status,
        read=read,
        read_at=read_at,
        metadata=dict(metadata),
        related_entities=related,
        created_by=fields.get("created_by") or "system",
        **optional,
    )


def _clean_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _related_entities(value: Any) -> RelatedEntities | None:
    if value is None:
        return RelatedEntities()
    if isinstance(value, RelatedEntities):
        return value
    if not isinstance(value, Mapping):
        return None
    known = {field.name for field in dataclass_fields(RelatedEntities)}
    values: dict[str, str] = {}
    for key, item in value.items():
        name = _RELATED_ENTITY_ALIASES.get(key, key)
        if name in known and item is not None:
            values[name] = str(item)
    return RelatedEntities(**values)


__all__ = ["build_notification"]
