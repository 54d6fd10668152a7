"""Tests for the notification record store."""

from __future__ import annotations

from datetime import timedelta

import pytest

from app.domain.exceptions import ValidationError
from app.infrastructure.repositories import NotificationRepository
from app.utils import utc_now_naive


def _create(repository: NotificationRepository, **overrides):
    fields = {
        "type": "task_assigned",
        "title": "Wound care",
        "message": "Change dressing in room 12",
        "recipient_id": "nurse-1",
    }
    fields.update(overrides)
    return repository.create(fields)


def test_create_applies_documented_defaults(repository: NotificationRepository) -> None:
    """A freshly created record is unread, pending and owned by the system."""

    notification = _create(repository, title="  Wound care  ")

    assert notification.id
    assert notification.title == "Wound care"
    assert notification.read is False
    assert notification.read_at is None
    assert notification.status == "pending"
    assert notification.priority == "normal"
    assert notification.recipient_type == "staff"
    assert notification.created_by == "system"
    assert notification.metadata == {}
    assert notification.channels.push.sent is False
    assert notification.created_at is not None
    assert notification.created_at.tzinfo is not None


def test_create_without_title_persists_nothing(repository: NotificationRepository) -> None:
    with pytest.raises(ValidationError) as excinfo:
        _create(repository, title="   ")

    assert "title" in excinfo.value.fields
    assert repository.find_by_recipient("nurse-1") == []


def test_create_reports_every_violating_field(repository: NotificationRepository) -> None:
    with pytest.raises(ValidationError) as excinfo:
        _create(repository, type="carrier_pigeon", priority="critical", message="x" * 1001)

    assert set(excinfo.value.fields) == {"type", "priority", "message"}


def test_title_length_bound(repository: NotificationRepository) -> None:
    assert _create(repository, title="t" * 200).title == "t" * 200
    with pytest.raises(ValidationError):
        _create(repository, title="t" * 201)


def test_read_records_always_carry_read_at(repository: NotificationRepository) -> None:
    read = _create(repository, read=True)
    unread = _create(repository, read=False, read_at=utc_now_naive())

    assert read.read_at is not None
    assert unread.read_at is None
    assert read.status == "read"
    assert unread.status == "pending"


def test_read_flag_and_read_status_must_agree(repository: NotificationRepository) -> None:
    with pytest.raises(ValidationError) as excinfo:
        _create(repository, read=True, status="pending")
    assert excinfo.value.fields == ["status"]

    with pytest.raises(ValidationError):
        _create(repository, status="read")

    assert repository.find_by_recipient("nurse-1") == []


def test_related_entities_accept_camel_case_keys(repository: NotificationRepository) -> None:
    notification = _create(repository, related_entities={"visitId": "visit-7", "patientId": "p-3"})

    assert notification.related_entities.visit_id == "visit-7"
    assert [n.id for n in repository.find_by_related_entity("patientId", "p-3")] == [notification.id]
    with pytest.raises(ValueError):
        repository.find_by_related_entity("roomId", "12")


def test_filters_compose(repository: NotificationRepository) -> None:
    """Type, read and priority filters narrow the list together."""

    match = _create(repository, type="alarm", priority="high")
    _create(repository, type="alarm", priority="low")
    _create(repository, type="alarm", priority="high", read=True)
    _create(repository, type="task_due", priority="high")
    _create(repository, type="alarm", priority="high", recipient_id="nurse-2")

    results = repository.find_by_recipient("nurse-1", type="alarm", read=False, priority="high")

    assert [n.id for n in results] == [match.id]
    assert len(repository.find_by_recipient("nurse-1", type="alarm")) == 3
    assert len(repository.find_by_recipient("nurse-1", read=True)) == 1


def test_list_is_newest_first_and_limited(repository: NotificationRepository) -> None:
    now = utc_now_naive()
    created = [
        _create(repository, title=f"Item {index}", created_at=now - timedelta(minutes=index))
        for index in range(5)
    ]

    limited = repository.find_by_recipient("nurse-1", limit=2)
    everything = repository.find_by_recipient("nurse-1", limit=10)

    assert [n.id for n in limited] == [created[0].id, created[1].id]
    assert len(everything) == 5


def test_unread_is_priority_ordered_and_skips_expired(repository: NotificationRepository) -> None:
    now = utc_now_naive()
    normal = _create(repository, priority="normal", created_at=now - timedelta(minutes=1))
    urgent = _create(repository, priority="urgent", created_at=now - timedelta(minutes=30))
    low = _create(repository, priority="low", created_at=now)
    _create(repository, priority="urgent", expires_at=now - timedelta(minutes=1))
    _create(repository, priority="high", read=True)

    unread = repository.find_unread("nurse-1")

    assert [n.id for n in unread] == [urgent.id, normal.id, low.id]
    assert repository.get_unread_count("nurse-1") == len(unread)


def test_mark_all_as_read_clears_unread_count(repository: NotificationRepository) -> None:
    _create(repository)
    _create(repository)
    _create(repository, read=True)
    other = _create(repository, recipient_id="nurse-2")

    assert repository.mark_all_as_read("nurse-1") == 2
    assert repository.get_unread_count("nurse-1") == 0
    assert repository.mark_all_as_read("nurse-1") == 0
    assert repository.get(other.id).read is False

    marked = repository.find_by_recipient("nurse-1")
    assert all(n.status == "read" and n.read_at is not None for n in marked)


def test_delete_old_keeps_unread_records(repository: NotificationRepository) -> None:
    """Only read records past the retention window are removed."""

    now = utc_now_naive()
    _create(repository, title="old read", read=True, created_at=now - timedelta(days=120))
    recent = _create(repository, title="recent read", read=True, created_at=now - timedelta(days=5))
    old_unread = _create(repository, title="old unread", created_at=now - timedelta(days=120))

    assert repository.delete_old(90) == 1

    remaining = {n.id for n in repository.find_by_recipient("nurse-1")}
    assert remaining == {recent.id, old_unread.id}


def test_delete_expired(repository: NotificationRepository) -> None:
    now = utc_now_naive()
    expired = _create(repository, expires_at=now - timedelta(hours=1))
    live = _create(repository, expires_at=now + timedelta(hours=1))
    forever = _create(repository)

    assert expired.is_expired is True
    assert repository.delete_expired() == 1
    assert {n.id for n in repository.find_by_recipient("nurse-1")} == {live.id, forever.id}


def test_delete_by_id(repository: NotificationRepository) -> None:
    notification = _create(repository)

    deleted = repository.delete_by_id(notification.id)

    assert deleted is not None and deleted.id == notification.id
    assert repository.get(notification.id) is None
    assert repository.delete_by_id(notification.id) is None


def test_stats_group_by_type_and_priority(repository: NotificationRepository) -> None:
    _create(repository, type="file_upload", priority="high")
    _create(repository, type="task_assigned", priority="normal")
    _create(repository, type="file_upload", priority="normal", read=True)
    _create(repository, recipient_id="someone-else")

    stats = repository.get_stats("nurse-1")

    assert stats["total"] == 3
    assert stats["unread"] == 2
    assert stats["by_type"] == {"file_upload": 2, "task_assigned": 1}
    assert stats["by_priority"] == {"high": 1, "normal": 2}


def test_stats_for_unknown_recipient(repository: NotificationRepository) -> None:
    assert repository.get_stats("nobody") == {
        "total": 0,
        "unread": 0,
        "by_type": {},
        "by_priority": {},
    }


def test_unread_count_tracks_unread_list_across_mutations(
    repository: NotificationRepository,
) -> None:
    """The unread count and the unread list agree after every kind of write."""

    now = utc_now_naive()

    def assert_consistent(expected: int) -> None:
        unread = repository.find_unread("nurse-1")
        assert repository.get_unread_count("nurse-1") == len(unread) == expected

    assert_consistent(0)
    first = _create(repository, priority="urgent")
    second = _create(repository)
    _create(repository, read=True)
    expiring = _create(repository, expires_at=now + timedelta(hours=1))
    _create(repository, expires_at=now - timedelta(minutes=5))
    assert_consistent(3)

    assert repository.apply_read(first.id) is True
    assert_consistent(2)

    assert repository.delete_by_id(second.id) is not None
    assert_consistent(1)

    assert repository.delete_expired(now + timedelta(hours=2)) == 2
    assert repository.get(expiring.id) is None
    assert_consistent(0)

    _create(repository)
    _create(repository, priority="high")
    assert_consistent(2)

    assert repository.mark_all_as_read("nurse-1") == 2
    assert_consistent(0)
