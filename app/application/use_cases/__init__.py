"""Aggregate application use cases."""

from .notifications import DeliveryStateMachine, DispatchRouter, RecipientQueryService

__all__ = [
    "DeliveryStateMachine",
    "DispatchRouter",
    "RecipientQueryService",
]
