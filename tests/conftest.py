"""Shared fixtures for the notification service test-suite."""

from __future__ import annotations

import os
import tempfile
import time
from datetime import timedelta
from pathlib import Path
from typing import Any

import pytest

TEST_DB_PATH = Path(tempfile.gettempdir()) / "care_notification_service_test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["APP_TIMEZONE"] = "UTC"
os.environ["BROADCAST_BACKEND"] = "log"
os.environ["QUEUE_BACKEND"] = "log"
os.environ["PERSIST_NOTIFICATIONS"] = "true"
os.environ["EXPIRY_SWEEP_INTERVAL_SECONDS"] = "0"

from app.config import get_settings  # noqa: E402

get_settings.cache_clear()

from app.domain.entities import ChannelResult  # noqa: E402
from app.infrastructure.database import (  # noqa: E402
    Base,
    SessionLocal,
    engine,
    initialize_database,
)
from app.infrastructure.repositories import NotificationRepository  # noqa: E402
from app.infrastructure.security import create_access_token  # noqa: E402
from app.utils import utc_now_naive  # noqa: E402


@pytest.fixture(autouse=True)
def reset_database():
    """Ensure every test starts from an empty notification table."""

    Base.metadata.drop_all(bind=engine)
    initialize_database()
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def repository(session) -> NotificationRepository:
    return NotificationRepository(session)


@pytest.fixture()
def auth_headers() -> dict[str, str]:
    token = create_access_token("nurse-station-1", role="staff")
    return {"Authorization": f"Bearer {token}"}


class RecordingBroadcast:
    """Broadcast channel double that records what it was asked to publish."""

    def __init__(
        self,
        message_id: str = "sns-message-1",
        *,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.message_id = message_id
        self.error = error
        self.delay = delay
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def publish(self, category: str, payload: dict[str, Any]) -> ChannelResult:
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        self.calls.append((category, payload))
        return ChannelResult(success=True, message_id=self.message_id, destination=f"topic:{category}")


class RecordingQueue:
    """Durable channel double that records every payload."""

    def __init__(
        self,
        message_id: str = "sqs-message-1",
        *,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.message_id = message_id
        self.error = error
        self.delay = delay
        self.calls: list[dict[str, Any]] = []

    def publish(self, payload: dict[str, Any]) -> ChannelResult:
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        self.calls.append(payload)
        return ChannelResult(success=True, message_id=self.message_id, destination="queue")


@pytest.fixture()
def broadcast_factory() -> type[RecordingBroadcast]:
    return RecordingBroadcast


@pytest.fixture()
def queue_factory() -> type[RecordingQueue]:
    return RecordingQueue


@pytest.fixture()
def broadcast() -> RecordingBroadcast:
    return RecordingBroadcast()


@pytest.fixture()
def queue() -> RecordingQueue:
    return RecordingQueue()


@pytest.fixture()
def mock_notifications(repository: NotificationRepository):
    """Populate a recipient inbox with a realistic mix of demo notifications.

    Returns a callable taking the recipient id; four of the six records are
    unread.
    """

    samples = [
        ("task_assigned", "Medication Round Due",
         "Morning medication round for Room 101-105 is due in 15 minutes",
         "high", False, 15, {"room": "101-105", "round": "morning"}),
        ("alarm", "Patient Call Button",
         "Patient in Room 108 has pressed the call button",
         "urgent", False, 5, {"room": "108"}),
        ("visit_status", "Visit Completed",
         "Blood pressure check has been completed",
         "normal", True, 30, {"visitType": "Blood Pressure Check"}),
        ("medicine_reminder", "Medication Updated",
         "Lisinopril dosage updated",
         "normal", False, 45, {"medication": "Lisinopril"}),
        ("care_plan_update", "Care Plan Review",
         "Weekly care plan review scheduled",
         "low", True, 120, {"reviewType": "weekly"}),
        ("system_alert", "Equipment Maintenance",
         "Blood pressure monitor in Room 105 requires calibration",
         "normal", False, 180, {"room": "105"}),
    ]

    def populate(recipient_id: str):
        now = utc_now_naive()
        return [
            repository.create(
                {
                    "type": notification_type,
                    "title": title,
                    "message": message,
                    "priority": priority,
                    "recipient_id": recipient_id,
                    "read": read,
                    "metadata": metadata,
                    "created_at": now - timedelta(minutes=minutes_ago),
                }
            )
            for notification_type, title, message, priority, read, minutes_ago, metadata in samples
        ]

    return populate
