"""Tests for routing and fan-out of new notifications."""

from __future__ import annotations

import threading
from datetime import datetime, timezone

import pytest
from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError

from app.application.use_cases.notifications import DispatchRouter
from app.domain.exceptions import DispatchError, RoutingError, ValidationError
from app.infrastructure.models import NotificationModel
from app.infrastructure.repositories import NotificationRepository

pytestmark = pytest.mark.anyio


@pytest.fixture()
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture()
def router(broadcast, queue, repository: NotificationRepository) -> DispatchRouter:
    return DispatchRouter(broadcast, queue, repository=repository, timeout=2.0)


async def test_dispatch_persists_and_publishes_once_per_channel(
    router: DispatchRouter, broadcast, queue, repository: NotificationRepository
) -> None:
    result = await router.create_notification(
        type="task_assigned",
        entity_type="task",
        entity_id="task-123",
        title="Medication round",
        message="Morning medication round is due",
        priority="high",
        recipients=["nurse-1", "nurse-2", "nurse-1"],
        metadata={"patientId": "patient-9", "room": "101"},
        created_by="scheduler",
    )

    assert result.success is True
    assert result.notification.recipients == ["nurse-1", "nurse-2"]
    assert result.notification.status == "sent"
    assert len(result.records) == 2

    assert len(broadcast.calls) == 1
    category, payload = broadcast.calls[0]
    assert category == "TASK"
    assert queue.calls == [payload]
    assert payload["entityId"] == "task-123"
    assert payload["id"] == result.notification.id

    assert result.broadcast_result.message_id == "sns-message-1"
    assert result.queue_result.message_id == "sqs-message-1"

    stored = repository.find_by_recipient("nurse-1")
    assert len(stored) == 1
    record = stored[0]
    assert record.status == "sent"
    assert record.priority == "high"
    assert record.created_by == "scheduler"
    assert record.sns_message_id == "sns-message-1"
    assert record.sqs_message_id == "sqs-message-1"
    assert record.channels.push.sent is True
    assert record.related_entities.task_id == "task-123"
    assert record.related_entities.patient_id == "patient-9"


@pytest.mark.parametrize(
    ("entity_type", "category"),
    [("alarm", "ALARM"), ("visit", "VISIT"), ("medicine", "MEDICINE"), ("photo", "TASK"), ("audio", "TASK")],
)
async def test_entity_types_route_to_categories(router, broadcast, entity_type, category) -> None:
    await router.create_notification(
        type="file_upload",
        entity_type=entity_type,
        entity_id="entity-1",
        title="Update",
        message="Something changed",
    )

    assert broadcast.calls[0][0] == category


async def test_unknown_entity_type_dispatches_nothing(
    router: DispatchRouter, broadcast, queue, repository: NotificationRepository
) -> None:
    with pytest.raises(RoutingError, match="Unknown entity type: invoice"):
        await router.create_notification(
            type="other",
            entity_type="invoice",
            entity_id="inv-1",
            title="Invoice",
            message="Invoice ready",
            recipients=["nurse-1"],
        )

    assert broadcast.calls == []
    assert queue.calls == []
    assert repository.find_by_recipient("nurse-1") == []


async def test_missing_title_dispatches_nothing(
    router: DispatchRouter, broadcast, queue, repository: NotificationRepository
) -> None:
    with pytest.raises(ValidationError) as excinfo:
        await router.create_notification(
            type="alarm",
            entity_type="alarm",
            entity_id="alarm-1",
            title="",
            message="Call button pressed",
            recipients=["nurse-1"],
        )

    assert "title" in excinfo.value.fields
    assert broadcast.calls == []
    assert queue.calls == []
    assert repository.find_by_recipient("nurse-1") == []


async def test_invalid_notification_type_is_rejected_before_any_insert(
    router: DispatchRouter, broadcast, repository: NotificationRepository
) -> None:
    with pytest.raises(ValidationError):
        await router.create_notification(
            type="carrier_pigeon",
            entity_type="task",
            entity_id="task-1",
            title="Task",
            message="Task",
            recipients=["nurse-1", "nurse-2"],
        )

    assert broadcast.calls == []
    assert repository.find_by_recipient("nurse-1") == []


async def test_queue_failure_marks_records_failed(
    broadcast, queue_factory, repository: NotificationRepository
) -> None:
    """A failing channel surfaces as DispatchError; the other is not rolled back."""

    queue = queue_factory(error=RuntimeError("queue unavailable"))
    router = DispatchRouter(broadcast, queue, repository=repository)

    with pytest.raises(DispatchError) as excinfo:
        await router.create_notification(
            type="alarm",
            entity_type="alarm",
            entity_id="alarm-1",
            title="Alarm",
            message="Call button pressed",
            recipients=["nurse-1"],
        )

    assert excinfo.value.channel == "queue"
    assert isinstance(excinfo.value.cause, RuntimeError)
    assert len(broadcast.calls) == 1
    [record] = repository.find_by_recipient("nurse-1")
    assert record.status == "failed"
    assert record.sns_message_id is None


async def test_slow_channel_times_out(
    broadcast_factory, queue, repository: NotificationRepository
) -> None:
    router = DispatchRouter(
        broadcast_factory(delay=1.0), queue, repository=repository, timeout=0.1
    )

    with pytest.raises(DispatchError) as excinfo:
        await router.create_notification(
            type="alarm",
            entity_type="alarm",
            entity_id="alarm-1",
            title="Alarm",
            message="Call button pressed",
            recipients=["nurse-1"],
        )

    assert excinfo.value.channel == "broadcast"
    assert isinstance(excinfo.value.cause, TimeoutError)
    [record] = repository.find_by_recipient("nurse-1")
    assert record.status == "failed"


async def test_stateless_router_only_publishes(broadcast, queue, repository) -> None:
    router = DispatchRouter(broadcast, queue)

    result = await router.create_notification(
        type="alarm",
        entity_type="alarm",
        entity_id="alarm-1",
        title="Alarm",
        message="Call button pressed",
        recipients=["nurse-1"],
    )

    assert router.persists is False
    assert result.records == []
    assert len(queue.calls) == 1
    assert repository.find_by_recipient("nurse-1") == []


async def test_task_template(router: DispatchRouter, broadcast, repository) -> None:
    due = datetime(2026, 11, 1, 9, 30, tzinfo=timezone.utc)

    result = await router.create_task_notification(
        task_id="task-77",
        title="Blood sugar check",
        priority="urgent",
        assigned_to="nurse-1",
        due_date=due,
        patient_id="patient-4",
    )

    notification = result.notification
    assert notification.type == "task_created"
    assert notification.title == "New Task Assigned"
    assert notification.message == 'Task "Blood sugar check" has been assigned to you'
    assert notification.priority == "urgent"
    assert notification.recipients == ["nurse-1"]
    assert notification.metadata == {
        "taskTitle": "Blood sugar check",
        "dueDate": "2026-11-01T09:30:00+00:00",
        "patientId": "patient-4",
    }
    [record] = repository.find_by_recipient("nurse-1")
    assert record.type == "task_created"
    assert record.related_entities.task_id == "task-77"


async def test_task_template_defaults_to_normal_priority(router: DispatchRouter) -> None:
    result = await router.create_task_notification(task_id="task-1", title="Walk")

    assert result.notification.priority == "normal"
    assert result.notification.recipients == []


async def test_alarm_template(router: DispatchRouter, broadcast) -> None:
    result = await router.create_alarm_notification(
        alarm_id="alarm-9",
        alarm_type="fall",
        patient_id="patient-2",
        location="Room 3",
        recipients=["nurse-1"],
    )

    assert result.notification.type == "alarm_triggered"
    assert result.notification.priority == "high"
    assert result.notification.message == "An alarm has been triggered"
    assert result.notification.metadata["alarmType"] == "fall"
    assert broadcast.calls[0][0] == "ALARM"


async def test_visit_template(router: DispatchRouter, repository) -> None:
    result = await router.create_visit_status_notification(
        visit_id="visit-5",
        patient_id="patient-2",
        status="completed",
        nurse_id="nurse-1",
        recipients=["family-1"],
    )

    assert result.notification.type == "visit_status_changed"
    assert result.notification.message == "Visit status changed to completed"
    [record] = repository.find_by_recipient("family-1")
    assert record.related_entities.visit_id == "visit-5"
    assert record.related_entities.patient_id == "patient-2"


async def test_medicine_template(router: DispatchRouter) -> None:
    result = await router.create_medicine_notification(
        medicine_id="med-1",
        patient_id="patient-2",
        medicine_name="Lisinopril",
        change_type="updated",
        dosage="10mg",
        recipients=["nurse-1"],
    )

    assert result.notification.type == "medicine_updated"
    assert result.notification.title == "Medication Updated"
    assert result.notification.message == "Patient medication has been updated"
    assert result.notification.priority == "high"
    assert result.notification.metadata == {
        "patientId": "patient-2",
        "medicineName": "Lisinopril",
        "changeType": "updated",
        "dosage": "10mg",
    }


async def test_task_template_keeps_due_date_text(router: DispatchRouter) -> None:
    result = await router.create_task_notification(
        task_id="task-2", title="Walk", due_date="2026-11-01T09:30:00.000Z"
    )

    assert result.notification.metadata["dueDate"] == "2026-11-01T09:30:00.000Z"


async def test_store_error_on_second_insert_persists_and_publishes_nothing(
    router: DispatchRouter, broadcast, queue, repository: NotificationRepository
) -> None:
    inserted: list[str] = []

    def fail_on_second(mapper, connection, target) -> None:
        inserted.append(target.recipient_id)
        if len(inserted) == 2:
            raise SQLAlchemyError("disk full")

    event.listen(NotificationModel, "before_insert", fail_on_second)
    try:
        with pytest.raises(SQLAlchemyError, match="disk full"):
            await router.create_notification(
                type="alarm",
                entity_type="alarm",
                entity_id="alarm-1",
                title="Alarm",
                message="Call button pressed",
                recipients=["nurse-1", "nurse-2"],
            )
    finally:
        event.remove(NotificationModel, "before_insert", fail_on_second)

    assert len(inserted) == 2
    assert broadcast.calls == []
    assert queue.calls == []
    assert repository.find_by_recipient("nurse-1") == []
    assert repository.find_by_recipient("nurse-2") == []


class ThreadRecordingRepository(NotificationRepository):
    def __init__(self, session) -> None:
        super().__init__(session)
        self.threads: list[int] = []

    def create_many(self, records):
        self.threads.append(threading.get_ident())
        return super().create_many(records)

    def record_dispatch(self, notification_ids, **kwargs):
        self.threads.append(threading.get_ident())
        return super().record_dispatch(notification_ids, **kwargs)

    def apply_failure(self, notification_id):
        self.threads.append(threading.get_ident())
        return super().apply_failure(notification_id)


async def test_store_calls_run_off_the_event_loop(broadcast, queue, queue_factory, session) -> None:
    loop_thread = threading.get_ident()
    repository = ThreadRecordingRepository(session)

    await DispatchRouter(broadcast, queue, repository=repository).create_notification(
        type="alarm",
        entity_type="alarm",
        entity_id="alarm-1",
        title="Alarm",
        message="Call button pressed",
        recipients=["nurse-1"],
    )
    failing = DispatchRouter(
        broadcast, queue_factory(error=RuntimeError("down")), repository=repository
    )
    with pytest.raises(DispatchError):
        await failing.create_notification(
            type="alarm",
            entity_type="alarm",
            entity_id="alarm-2",
            title="Alarm",
            message="Call button pressed",
            recipients=["nurse-1"],
        )

    assert len(repository.threads) == 4
    assert loop_thread not in repository.threads
