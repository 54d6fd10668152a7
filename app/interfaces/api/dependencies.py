"""FastAPI dependency utilities."""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.application.ports import BroadcastChannel, DurableChannel
from app.application.use_cases.notifications import DispatchRouter, RecipientQueryService
from app.config import Settings, get_settings
from app.domain.entities import CallerIdentity
from app.infrastructure.database import get_db
from app.infrastructure.repositories import NotificationRepository
from app.infrastructure.security import decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


def resolve_caller(token: str) -> CallerIdentity:
    """Resolve the caller identity carried by ``token``."""

    try:
        payload = decode_access_token(token)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
    return CallerIdentity(subject=payload["sub"], role=payload.get("role"))


def get_caller_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> CallerIdentity:
    """Return the authenticated caller from the bearer token."""

    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return resolve_caller(credentials.credentials)


def get_notification_repository(db: Session = Depends(get_db)) -> NotificationRepository:
    return NotificationRepository(db)


def get_broadcast_channel(request: Request) -> BroadcastChannel:
    return request.app.state.broadcast_channel


def get_queue_channel(request: Request) -> DurableChannel:
    return request.app.state.queue_channel


def get_dispatch_router(
    repository: NotificationRepository = Depends(get_notification_repository),
    broadcast: BroadcastChannel = Depends(get_broadcast_channel),
    queue: DurableChannel = Depends(get_queue_channel),
    settings: Settings = Depends(get_settings),
) -> DispatchRouter:
    """Return a router wired to the configured channels."""

    return DispatchRouter(
        broadcast,
        queue,
        repository=repository if settings.persist_notifications else None,
        timeout=settings.dispatch_timeout_seconds,
    )


def get_query_service(
    repository: NotificationRepository = Depends(get_notification_repository),
) -> RecipientQueryService:
    return RecipientQueryService(repository)
