"""Route notification requests to the broadcast and queue channels."""

from __future__ import annotations

import functools
import logging
import uuid
from collections.abc import Callable, Sequence
from datetime import date, datetime
from typing import Any

import anyio

from app.application.ports import BroadcastChannel, DurableChannel
from app.domain.entities import (
    ENTITY_CATEGORIES,
    MESSAGE_MAX_LENGTH,
    PRIORITIES,
    PRIORITY_HIGH,
    PRIORITY_NORMAL,
    TITLE_MAX_LENGTH,
    ChannelResult,
    DispatchNotification,
    DispatchResult,
)
from app.domain.exceptions import DispatchError, RoutingError, ValidationError
from app.infrastructure.repositories import NotificationRepository
from app.utils import now_in_app_timezone

from .delivery_state import DeliveryStateMachine

_RELATED_BY_ENTITY = {
    "task": "taskId",
    "visit": "visitId",
    "photo": "fileId",
    "audio": "fileId",
}


class DispatchRouter:
    """Build canonical notifications and fan them out to downstream channels.

    Both channels receive the same payload and must finish before a call
    returns. When either fails the whole dispatch fails with
    :class:`DispatchError`; a channel that already accepted the payload is
    not rolled back.
    """

    def __init__(
        self,
        broadcast: BroadcastChannel,
        queue: DurableChannel,
        *,
        repository: NotificationRepository | None = None,
        timeout: float = 10.0,
        logger: logging.Logger | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._broadcast = broadcast
        self._queue = queue
        self._repository = repository
        self._states = DeliveryStateMachine(repository) if repository is not None else None
        self._timeout = timeout
        self._logger = logger or logging.getLogger(__name__)
        self._new_id = id_factory or (lambda: str(uuid.uuid4()))

    @property
    def persists(self) -> bool:
        return self._repository is not None

    async def create_notification(
        self,
        *,
        type: str,
        entity_type: str,
        entity_id: str,
        title: str,
        message: str,
        priority: str | None = None,
        recipients: Sequence[str] | None = None,
        metadata: dict[str, Any] | None = None,
        created_by: str = "system",
    ) -> DispatchResult:
        category = ENTITY_CATEGORIES.get(entity_type)
        if category is None:
            raise RoutingError(entity_type)

        priority = priority or PRIORITY_NORMAL
        title = (title or "").strip()
        message = (message or "").strip()
        _validate_request(type=type, entity_id=entity_id, title=title, message=message, priority=priority)

        recipients = [recipient for recipient in dict.fromkeys(recipients or []) if recipient]
        metadata = dict(metadata or {})

        notification = DispatchNotification(
            id=self._new_id(),
            type=type,
            entity_type=entity_type,
            entity_id=entity_id,
            title=title,
            message=message,
            priority=priority,
            recipients=recipients,
            metadata=metadata,
            timestamp=now_in_app_timezone().isoformat(),
        )
        self._logger.info(
            "Creating notification %s type=%s entity=%s/%s recipients=%d",
            notification.id,
            notification.type,
            entity_type,
            entity_id,
            len(recipients),
        )

        record_ids = await anyio.to_thread.run_sync(
            functools.partial(self._persist, notification, created_by=created_by)
        )
        payload = notification.to_message()

        try:
            broadcast_result, queue_result = await self._publish(category, payload)
        except DispatchError as exc:
            self._logger.error(
                "Failed to dispatch notification %s type=%s channel=%s: %s",
                notification.id,
                notification.type,
                exc.channel,
                exc.cause,
            )
            await anyio.to_thread.run_sync(self._mark_failed, record_ids)
            raise

        await anyio.to_thread.run_sync(
            self._mark_delivered, record_ids, broadcast_result, queue_result
        )
        return DispatchResult(
            success=True,
            notification=notification,
            broadcast_result=broadcast_result,
            queue_result=queue_result,
            records=record_ids,
        )

    async def create_task_notification(
        self,
        *,
        task_id: str,
        title: str,
        priority: str | None = None,
        assigned_to: str | None = None,
        due_date: datetime | date | str | None = None,
        patient_id: str | None = None,
        created_by: str = "system",
    ) -> DispatchResult:
        return await self.create_notification(
            type="task_created",
            entity_type="task",
            entity_id=task_id,
            title="New Task Assigned",
            message=f'Task "{title}" has been assigned to you',
            priority=priority or PRIORITY_NORMAL,
            recipients=[assigned_to] if assigned_to else [],
            metadata={
                "taskTitle": title,
                "dueDate": _isoformat(due_date),
                "patientId": patient_id,
            },
            created_by=created_by,
        )

    async def create_alarm_notification(
        self,
        *,
        alarm_id: str,
        alarm_type: str,
        message: str | None = None,
        patient_id: str | None = None,
        location: str | None = None,
        recipients: Sequence[str] | None = None,
        created_by: str = "system",
    ) -> DispatchResult:
        return await self.create_notification(
            type="alarm_triggered",
            entity_type="alarm",
            entity_id=alarm_id,
            title="Alarm Triggered",
            message=message or "An alarm has been triggered",
            priority=PRIORITY_HIGH,
            recipients=recipients,
            metadata={
                "alarmType": alarm_type,
                "patientId": patient_id,
                "location": location,
            },
            created_by=created_by,
        )

    async def create_visit_status_notification(
        self,
        *,
        visit_id: str,
        patient_id: str,
        status: str,
        nurse_id: str | None = None,
        visit_type: str | None = None,
        recipients: Sequence[str] | None = None,
        created_by: str = "system",
    ) -> DispatchResult:
        return await self.create_notification(
            type="visit_status_changed",
            entity_type="visit",
            entity_id=visit_id,
            title="Visit Status Updated",
            message=f"Visit status changed to {status}",
            priority=PRIORITY_NORMAL,
            recipients=recipients,
            metadata={
                "patientId": patient_id,
                "nurseId": nurse_id,
                "status": status,
                "visitType": visit_type,
            },
            created_by=created_by,
        )

    async def create_medicine_notification(
        self,
        *,
        medicine_id: str,
        patient_id: str,
        medicine_name: str,
        change_type: str,
        dosage: str | None = None,
        message: str | None = None,
        recipients: Sequence[str] | None = None,
        created_by: str = "system",
    ) -> DispatchResult:
        return await self.create_notification(
            type="medicine_updated",
            entity_type="medicine",
            entity_id=medicine_id,
            title="Medication Updated",
            message=message or "Patient medication has been updated",
            priority=PRIORITY_HIGH,
            recipients=recipients,
            metadata={
                "patientId": patient_id,
                "medicineName": medicine_name,
                "changeType": change_type,
                "dosage": dosage,
            },
            created_by=created_by,
        )

    def _persist(self, notification: DispatchNotification, *, created_by: str) -> list[str]:
        if self._repository is None or not notification.recipients:
            return []

        related = _related_entities(notification)
        records = [
            {
                "type": notification.type,
                "title": notification.title,
                "message": notification.message,
                "priority": notification.priority,
                "recipient_id": recipient,
                "metadata": notification.metadata,
                "related_entities": related,
                "created_by": created_by,
            }
            for recipient in notification.recipients
        ]
        return [record.id for record in self._repository.create_many(records)]

    async def _publish(
        self, category: str, payload: dict[str, Any]
    ) -> tuple[ChannelResult, ChannelResult]:
        outcomes: dict[str, ChannelResult] = {}
        failures: dict[str, Exception] = {}

        async def run(name: str, func: Callable[..., ChannelResult], *args: Any) -> None:
            try:
                outcomes[name] = await anyio.to_thread.run_sync(
                    func, *args, abandon_on_cancel=True
                )
            except Exception as exc:
                failures[name] = exc

        try:
            with anyio.fail_after(self._timeout):
                async with anyio.create_task_group() as group:
                    group.start_soon(run, "broadcast", self._broadcast.publish, category, payload)
                    group.start_soon(run, "queue", self._queue.publish, payload)
        except TimeoutError as exc:
            pending = [name for name in ("broadcast", "queue") if name not in outcomes]
            raise DispatchError(
                f"Timed out after {self._timeout}s waiting for {', '.join(pending)}",
                cause=exc,
                channel=pending[0] if pending else None,
            ) from exc

        for name in ("broadcast", "queue"):
            if name in failures:
                cause = failures[name]
                raise DispatchError(
                    f"Failed to publish notification to {name} channel: {cause}",
                    cause=cause,
                    channel=name,
                ) from cause
        return outcomes["broadcast"], outcomes["queue"]

    def _mark_delivered(
        self,
        record_ids: list[str],
        broadcast_result: ChannelResult,
        queue_result: ChannelResult,
    ) -> None:
        if self._states is None or not record_ids:
            return
        self._repository.record_dispatch(
            record_ids,
            sns_message_id=broadcast_result.message_id,
            sqs_message_id=queue_result.message_id,
        )
        for record_id in record_ids:
            self._states.mark_as_delivered(record_id, "push", broadcast_result.message_id)

    def _mark_failed(self, record_ids: list[str]) -> None:
        if self._states is None:
            return
        for record_id in record_ids:
            self._states.mark_as_failed(record_id)


def _validate_request(
    *, type: str, entity_id: str, title: str, message: str, priority: str
) -> None:
    violations: list[str] = []
    errors: list[str] = []
    if not type:
        violations.append("type")
        errors.append("type is required")
    if not entity_id:
        violations.append("entityId")
        errors.append("entityId is required")
    if not title:
        violations.append("title")
        errors.append("title is required")
    elif len(title) > TITLE_MAX_LENGTH:
        violations.append("title")
        errors.append(f"title must be at most {TITLE_MAX_LENGTH} characters")
    if not message:
        violations.append("message")
        errors.append("message is required")
    elif len(message) > MESSAGE_MAX_LENGTH:
        violations.append("message")
        errors.append(f"message must be at most {MESSAGE_MAX_LENGTH} characters")
    if priority not in PRIORITIES:
        violations.append("priority")
        errors.append(f"priority must be one of {', '.join(PRIORITIES)}")
    if violations:
        raise ValidationError("; ".join(errors), fields=violations)


def _related_entities(notification: DispatchNotification) -> dict[str, str]:
    related: dict[str, str] = {}
    key = _RELATED_BY_ENTITY.get(notification.entity_type)
    if key:
        related[key] = notification.entity_id
    for name in ("patientId", "visitId", "taskId", "carePlanId", "fileId"):
        value = notification.metadata.get(name)
        if value and name not in related:
            related[name] = str(value)
    return related


def _isoformat(value: datetime | date | str | None) -> str | None:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


__all__ = ["DispatchRouter"]
