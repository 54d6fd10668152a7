"""SQLAlchemy model for persisted notifications."""

import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, Index, String, Text

from app.infrastructure.database import Base
from app.utils import utc_now_naive


def _new_id() -> str:
    return str(uuid.uuid4())


class NotificationModel(Base):
    """Database representation for recipient notifications.

    Channel bookkeeping is stored as flat columns so each channel can be
    updated with a single field-level UPDATE.
    """

    __tablename__ = "notification"

    id = Column(String(36), primary_key=True, default=_new_id)
    type = Column(String(50), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    priority = Column(String(10), nullable=False, default="normal", index=True)

    recipient_id = Column(String(120), nullable=False, index=True)
    recipient_type = Column(String(20), nullable=False, default="staff")

    status = Column(String(20), nullable=False, default="pending", index=True)
    read = Column(Boolean, nullable=False, default=False, index=True)
    read_at = Column(DateTime(), nullable=True)

    push_sent = Column(Boolean, nullable=False, default=False)
    push_sent_at = Column(DateTime(), nullable=True)
    push_message_id = Column(String(255), nullable=True)
    email_sent = Column(Boolean, nullable=False, default=False)
    email_sent_at = Column(DateTime(), nullable=True)
    email_message_id = Column(String(255), nullable=True)
    sms_sent = Column(Boolean, nullable=False, default=False)
    sms_sent_at = Column(DateTime(), nullable=True)
    sms_message_id = Column(String(255), nullable=True)
    in_app_displayed = Column(Boolean, nullable=False, default=False)
    in_app_displayed_at = Column(DateTime(), nullable=True)

    # "metadata" is reserved on declarative classes.
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)

    visit_id = Column(String(120), nullable=True, index=True)
    patient_id = Column(String(120), nullable=True, index=True)
    task_id = Column(String(120), nullable=True, index=True)
    care_plan_id = Column(String(120), nullable=True, index=True)
    file_id = Column(String(120), nullable=True)

    action_required = Column(Boolean, nullable=False, default=False)
    action_url = Column(String(500), nullable=True)
    action_label = Column(String(120), nullable=True)
    action_completed = Column(Boolean, nullable=False, default=False)
    action_completed_at = Column(DateTime(), nullable=True)

    expires_at = Column(DateTime(), nullable=True, index=True)

    sns_message_id = Column(String(255), nullable=True)
    sqs_message_id = Column(String(255), nullable=True)

    created_by = Column(String(120), nullable=False, default="system")
    created_at = Column(DateTime(), nullable=False, default=utc_now_naive, index=True)
    updated_at = Column(
        DateTime(), nullable=False, default=utc_now_naive, onupdate=utc_now_naive
    )

    __table_args__ = (
        Index("ix_notification_recipient_read_created", "recipient_id", "read", "created_at"),
        Index("ix_notification_recipient_type_created", "recipient_id", "type", "created_at"),
        Index("ix_notification_recipient_priority_read", "recipient_id", "priority", "read"),
        Index("ix_notification_status_created", "status", "created_at"),
    )


__all__ = ["NotificationModel"]
