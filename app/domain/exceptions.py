"""Errors raised by the notification lifecycle."""

from __future__ import annotations

from collections.abc import Sequence


class NotificationError(Exception):
    """Base class for errors surfaced by the notification service."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(NotificationError):
    """Input is missing, malformed or outside the allowed values."""

    status_code = 400

    def __init__(self, message: str, fields: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.fields = list(fields)


class NotFoundError(NotificationError):
    """A single-record operation targeted an unknown identifier."""

    status_code = 404


class RoutingError(NotificationError):
    """The entity type does not map to a known routing category."""

    status_code = 400

    def __init__(self, entity_type: str) -> None:
        super().__init__(f"Unknown entity type: {entity_type}")
        self.entity_type = entity_type


class DispatchError(NotificationError):
    """A downstream channel failed while publishing a notification.

    The other channel may already have accepted the payload; nothing is
    retracted.
    """

    status_code = 502

    def __init__(
        self,
        message: str,
        *,
        cause: BaseException | None = None,
        channel: str | None = None,
    ) -> None:
        super().__init__(message)
        self.cause = cause
        self.channel = channel


class InternalError(NotificationError):
    """Unexpected store or infrastructure failure."""

    status_code = 500


__all__ = [
    "NotificationError",
    "ValidationError",
    "NotFoundError",
    "RoutingError",
    "DispatchError",
    "InternalError",
]
