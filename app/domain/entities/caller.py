"""Identity of the authenticated caller of the API."""

from dataclasses import dataclass


@dataclass(frozen=True)
class CallerIdentity:
    """Subject and role extracted from a validated access token."""

    subject: str
    role: str | None = None


__all__ = ["CallerIdentity"]
