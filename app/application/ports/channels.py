"""Contracts for the downstream notification channels."""

from typing import Any, Protocol

from app.domain.entities import ChannelResult


class BroadcastChannel(Protocol):
    """Real-time fan-out to connected clients, keyed by routing category."""

    def publish(self, category: str, payload: dict[str, Any]) -> ChannelResult:
        ...


class DurableChannel(Protocol):
    """At-least-once queue used for asynchronous processing and audit."""

    def publish(self, payload: dict[str, Any]) -> ChannelResult:
        ...
