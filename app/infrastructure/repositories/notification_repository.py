"""Persistence helpers for notification records."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import case, delete, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.entities import (
    PRIORITY_HIGH,
    PRIORITY_LOW,
    PRIORITY_NORMAL,
    PRIORITY_URGENT,
    STATUS_FAILED,
    STATUS_PENDING,
    STATUS_READ,
    STATUS_SENT,
    ChannelDelivery,
    DeliveryChannels,
    InAppDelivery,
    Notification,
    RelatedEntities,
)
from app.domain.validation import build_notification
from app.infrastructure.models import NotificationModel
from app.utils import ensure_app_timezone, ensure_utc_naive_datetime, utc_now_naive

DEFAULT_LIMIT = 50
MAX_LIMIT = 200

_PRIORITY_RANK = case(
    (NotificationModel.priority == PRIORITY_URGENT, 4),
    (NotificationModel.priority == PRIORITY_HIGH, 3),
    (NotificationModel.priority == PRIORITY_NORMAL, 2),
    (NotificationModel.priority == PRIORITY_LOW, 1),
    else_=0,
)

_RELATED_COLUMNS = {
    "visitId": NotificationModel.visit_id,
    "patientId": NotificationModel.patient_id,
    "taskId": NotificationModel.task_id,
    "carePlanId": NotificationModel.care_plan_id,
    "fileId": NotificationModel.file_id,
}

_CHANNEL_COLUMNS = {
    "push": ("push_sent", "push_sent_at", "push_message_id"),
    "email": ("email_sent", "email_sent_at", "email_message_id"),
    "sms": ("sms_sent", "sms_sent_at", "sms_message_id"),
}


class NotificationRepository:
    """Canonical store for :class:`Notification` records.

    Bulk and single-record mutations are expressed as single UPDATE or
    DELETE statements so concurrent writers never lose field updates.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, fields: Mapping[str, Any]) -> Notification:
        """Validate ``fields`` and persist the resulting notification."""

        return self.create_many([fields])[0]

    def create_many(self, records: Sequence[Mapping[str, Any]]) -> list[Notification]:
        """Validate every record, then persist them all in one transaction.

        A validation or store error leaves the table untouched.
        """

        notifications = [build_notification(fields) for fields in records]
        models: list[NotificationModel] = []
        for notification in notifications:
            model = NotificationModel()
            self._apply_entity_to_model(model, notification)
            self.session.add(model)
            models.append(model)

        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise

        for model in models:
            self.session.refresh(model)
        return [self._to_entity(model) for model in models]

    def get(self, notification_id: str) -> Notification | None:
        model = self.session.get(NotificationModel, notification_id)
        if model is None:
            return None
        return self._to_entity(model)

    def find_by_recipient(
        self,
        recipient_id: str,
        *,
        type: str | None = None,
        read: bool | None = None,
        priority: str | None = None,
        limit: int | None = DEFAULT_LIMIT,
    ) -> Sequence[Notification]:
        """Return the recipient's notifications, newest first.

        Filters compose with AND semantics; ``limit`` is clamped to
        ``1..MAX_LIMIT``.
        """

        query = select(NotificationModel).where(NotificationModel.recipient_id == recipient_id)
        if type:
            query = query.where(NotificationModel.type == type)
        if read is not None:
            query = query.where(NotificationModel.read.is_(read))
        if priority:
            query = query.where(NotificationModel.priority == priority)
        query = query.order_by(
            NotificationModel.created_at.desc(), NotificationModel.id.desc()
        ).limit(_clamp_limit(limit))
        return [self._to_entity(model) for model in self.session.scalars(query)]

    def find_unread(self, recipient_id: str) -> Sequence[Notification]:
        """Return unread, unexpired notifications, most urgent first."""

        query = (
            select(NotificationModel)
            .where(*self._unread_predicate(recipient_id))
            .order_by(
                _PRIORITY_RANK.desc(),
                NotificationModel.created_at.desc(),
                NotificationModel.id.desc(),
            )
        )
        return [self._to_entity(model) for model in self.session.scalars(query)]

    def get_unread_count(self, recipient_id: str) -> int:
        query = select(func.count()).select_from(NotificationModel).where(
            *self._unread_predicate(recipient_id)
        )
        return int(self.session.scalar(query) or 0)

    def find_by_related_entity(
        self, kind: str, value: str, *, limit: int | None = DEFAULT_LIMIT
    ) -> Sequence[Notification]:
        """Return notifications referencing ``value`` through ``kind``."""

        column = _RELATED_COLUMNS.get(kind)
        if column is None:
            raise ValueError(f"Unknown related entity: {kind}")
        query = (
            select(NotificationModel)
            .where(column == value)
            .order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
            .limit(_clamp_limit(limit))
        )
        return [self._to_entity(model) for model in self.session.scalars(query)]

    def mark_all_as_read(self, recipient_id: str) -> int:
        """Mark every unread notification of ``recipient_id`` as read."""

        now = utc_now_naive()
        result = self.session.execute(
            update(NotificationModel)
            .where(
                NotificationModel.recipient_id == recipient_id,
                NotificationModel.read.is_(False),
            )
            .values(read=True, read_at=now, status=STATUS_READ, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        return result.rowcount or 0

    def delete_old(self, days_old: int = 90) -> int:
        """Delete read notifications created more than ``days_old`` days ago.

        Unread notifications are kept regardless of their age.
        """

        cutoff = utc_now_naive() - timedelta(days=days_old)
        result = self.session.execute(
            delete(NotificationModel)
            .where(
                NotificationModel.created_at < cutoff,
                NotificationModel.read.is_(True),
            )
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        return result.rowcount or 0

    def delete_expired(self, now: datetime | None = None) -> int:
        """Physically remove notifications whose ``expires_at`` has elapsed."""

        moment = ensure_utc_naive_datetime(now) or utc_now_naive()
        result = self.session.execute(
            delete(NotificationModel)
            .where(
                NotificationModel.expires_at.is_not(None),
                NotificationModel.expires_at <= moment,
            )
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        return result.rowcount or 0

    def delete_by_id(self, notification_id: str) -> Notification | None:
        model = self.session.get(NotificationModel, notification_id)
        if model is None:
            return None
        entity = self._to_entity(model)
        self.session.delete(model)
        self.session.commit()
        return entity

    def get_stats(self, recipient_id: str) -> dict[str, Any]:
        """Return totals plus per-type and per-priority breakdowns."""

        recipient_filter = NotificationModel.recipient_id == recipient_id
        total, unread = self.session.execute(
            select(
                func.count(NotificationModel.id),
                func.coalesce(
                    func.sum(case((NotificationModel.read.is_(False), 1), else_=0)), 0
                ),
            ).where(recipient_filter)
        ).one()
        by_type = self.session.execute(
            select(NotificationModel.type, func.count(NotificationModel.id))
            .where(recipient_filter)
            .group_by(NotificationModel.type)
        ).all()
        by_priority = self.session.execute(
            select(NotificationModel.priority, func.count(NotificationModel.id))
            .where(recipient_filter)
            .group_by(NotificationModel.priority)
        ).all()
        return {
            "total": int(total or 0),
            "unread": int(unread or 0),
            "by_type": {name: int(count) for name, count in by_type},
            "by_priority": {name: int(count) for name, count in by_priority},
        }

    # Field-level primitives used by the delivery state machine.

    def apply_read(self, notification_id: str) -> bool:
        now = utc_now_naive()
        return self._update_one(
            notification_id,
            read=True,
            read_at=now,
            status=STATUS_READ,
            updated_at=now,
        )

    def apply_delivery(self, notification_id: str, channel: str, message_id: str | None) -> bool:
        now = utc_now_naive()
        if channel == "inApp":
            values: dict[str, Any] = {"in_app_displayed": True, "in_app_displayed_at": now}
        else:
            sent_column, sent_at_column, message_id_column = _CHANNEL_COLUMNS[channel]
            values = {sent_column: True, sent_at_column: now, message_id_column: message_id}
        values["status"] = case(
            (NotificationModel.status == STATUS_PENDING, STATUS_SENT),
            else_=NotificationModel.status,
        )
        values["updated_at"] = now
        return self._update_one(notification_id, **values)

    def apply_failure(self, notification_id: str) -> bool:
        return self._update_one(
            notification_id,
            status=case(
                (NotificationModel.status == STATUS_READ, STATUS_READ),
                else_=STATUS_FAILED,
            ),
            updated_at=utc_now_naive(),
        )

    def apply_action_completed(self, notification_id: str) -> bool:
        now = utc_now_naive()
        return self._update_one(
            notification_id,
            action_completed=True,
            action_completed_at=now,
            updated_at=now,
        )

    def record_dispatch(
        self,
        notification_ids: Sequence[str],
        *,
        sns_message_id: str | None,
        sqs_message_id: str | None,
    ) -> int:
        """Store the downstream message ids on the dispatched records."""

        if not notification_ids:
            return 0
        result = self.session.execute(
            update(NotificationModel)
            .where(NotificationModel.id.in_(list(notification_ids)))
            .values(
                sns_message_id=sns_message_id,
                sqs_message_id=sqs_message_id,
                updated_at=utc_now_naive(),
            )
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        return result.rowcount or 0

    def _update_one(self, notification_id: str, **values: Any) -> bool:
        result = self.session.execute(
            update(NotificationModel)
            .where(NotificationModel.id == notification_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        return bool(result.rowcount)

    @staticmethod
    def _unread_predicate(recipient_id: str) -> tuple:
        now = utc_now_naive()
        return (
            NotificationModel.recipient_id == recipient_id,
            NotificationModel.read.is_(False),
            or_(NotificationModel.expires_at.is_(None), NotificationModel.expires_at > now),
        )

    @staticmethod
    def _apply_entity_to_model(model: NotificationModel, notification: Notification) -> None:
        now = utc_now_naive()
        model.type = notification.type
        model.title = notification.title
        model.message = notification.message
        model.priority = notification.priority
        model.recipient_id = notification.recipient_id
        model.recipient_type = notification.recipient_type
        model.status = notification.status
        model.read = notification.read
        model.read_at = ensure_utc_naive_datetime(notification.read_at)
        model.metadata_ = notification.metadata or {}
        related = notification.related_entities
        model.visit_id = related.visit_id
        model.patient_id = related.patient_id
        model.task_id = related.task_id
        model.care_plan_id = related.care_plan_id
        model.file_id = related.file_id
        model.action_required = notification.action_required
        model.action_url = notification.action_url
        model.action_label = notification.action_label
        model.expires_at = ensure_utc_naive_datetime(notification.expires_at)
        model.sns_message_id = notification.sns_message_id
        model.sqs_message_id = notification.sqs_message_id
        model.created_by = notification.created_by
        model.created_at = ensure_utc_naive_datetime(notification.created_at) or now
        model.updated_at = now

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            type=model.type,
            title=model.title,
            message=model.message,
            recipient_id=model.recipient_id,
            priority=model.priority,
            recipient_type=model.recipient_type,
            status=model.status,
            read=bool(model.read),
            read_at=ensure_app_timezone(model.read_at),
            channels=DeliveryChannels(
                push=ChannelDelivery(
                    sent=bool(model.push_sent),
                    sent_at=ensure_app_timezone(model.push_sent_at),
                    message_id=model.push_message_id,
                ),
                email=ChannelDelivery(
                    sent=bool(model.email_sent),
                    sent_at=ensure_app_timezone(model.email_sent_at),
                    message_id=model.email_message_id,
                ),
                sms=ChannelDelivery(
                    sent=bool(model.sms_sent),
                    sent_at=ensure_app_timezone(model.sms_sent_at),
                    message_id=model.sms_message_id,
                ),
                in_app=InAppDelivery(
                    displayed=bool(model.in_app_displayed),
                    displayed_at=ensure_app_timezone(model.in_app_displayed_at),
                ),
            ),
            metadata=dict(model.metadata_ or {}),
            related_entities=RelatedEntities(
                visit_id=model.visit_id,
                patient_id=model.patient_id,
                task_id=model.task_id,
                care_plan_id=model.care_plan_id,
                file_id=model.file_id,
            ),
            action_required=bool(model.action_required),
            action_url=model.action_url,
            action_label=model.action_label,
            action_completed=bool(model.action_completed),
            action_completed_at=ensure_app_timezone(model.action_completed_at),
            expires_at=ensure_app_timezone(model.expires_at),
            sns_message_id=model.sns_message_id,
            sqs_message_id=model.sqs_message_id,
            created_by=model.created_by,
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
        )


def _clamp_limit(limit: int | None) -> int:
    if limit is None:
        return DEFAULT_LIMIT
    return max(1, min(int(limit), MAX_LIMIT))


__all__ = ["NotificationRepository", "DEFAULT_LIMIT", "MAX_LIMIT"]
