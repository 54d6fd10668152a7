"""Notification lifecycle: dispatch, delivery state and recipient queries."""

from .delivery_state import DeliveryStateMachine
from .dispatch import DispatchRouter
from .maintenance import purge_notifications, sweep_expired
from .queries import RecipientQueryService, parse_limit, parse_read_filter

__all__ = [
    "DeliveryStateMachine",
    "DispatchRouter",
    "RecipientQueryService",
    "parse_limit",
    "parse_read_filter",
    "purge_notifications",
    "sweep_expired",
]
