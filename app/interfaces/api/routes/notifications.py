"""Notification creation, recipient queries and the realtime websocket."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status

from app.application.use_cases.notifications import (
    DeliveryStateMachine,
    DispatchRouter,
    RecipientQueryService,
)
from app.domain.entities import CallerIdentity, DispatchResult, Notification
from app.domain.exceptions import NotFoundError
from app.infrastructure.database import SessionLocal
from app.infrastructure.notifications import notification_manager
from app.infrastructure.repositories import NotificationRepository
from app.interfaces.api.dependencies import (
    get_caller_identity,
    get_dispatch_router,
    get_query_service,
    resolve_caller,
)
from app.interfaces.api.schemas import (
    AlarmNotificationCreate,
    DeliveryUpdate,
    DispatchResultRead,
    MarkAllReadResponse,
    MedicineNotificationCreate,
    NotificationCreate,
    NotificationListResponse,
    NotificationRead,
    NotificationResponse,
    NotificationStatsResponse,
    TaskNotificationCreate,
    UnreadCountResponse,
    VisitNotificationCreate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


def _notification_to_schema(notification: Notification) -> NotificationRead:
    return NotificationRead.model_validate(notification)


def _notification_to_payload(notification: Notification) -> dict[str, Any]:
    return _notification_to_schema(notification).model_dump(mode="json", by_alias=True)


def _dispatch_to_schema(result: DispatchResult) -> DispatchResultRead:
    return DispatchResultRead.model_validate(result)


def _list_to_schema(result: dict[str, Any]) -> NotificationListResponse:
    return NotificationListResponse(
        success=result["success"],
        count=result["count"],
        data=[_notification_to_schema(notification) for notification in result["data"]],
    )


@router.post("", response_model=DispatchResultRead, status_code=status.HTTP_201_CREATED)
async def create_notification(
    payload: NotificationCreate,
    dispatcher: DispatchRouter = Depends(get_dispatch_router),
    caller: CallerIdentity = Depends(get_caller_identity),
) -> DispatchResultRead:
    """Create a notification and publish it to the downstream channels."""

    result = await dispatcher.create_notification(
        type=payload.type,
        entity_type=payload.entity_type,
        entity_id=payload.entity_id,
        title=payload.title,
        message=payload.message,
        priority=payload.priority,
        recipients=payload.recipients,
        metadata=payload.metadata,
        created_by=caller.subject,
    )
    return _dispatch_to_schema(result)


@router.post("/task", response_model=DispatchResultRead, status_code=status.HTTP_201_CREATED)
async def create_task_notification(
    payload: TaskNotificationCreate,
    dispatcher: DispatchRouter = Depends(get_dispatch_router),
    caller: CallerIdentity = Depends(get_caller_identity),
) -> DispatchResultRead:
    result = await dispatcher.create_task_notification(
        task_id=payload.task_id,
        title=payload.title,
        priority=payload.priority,
        assigned_to=payload.assigned_to,
        due_date=payload.due_date,
        patient_id=payload.patient_id,
        created_by=caller.subject,
    )
    return _dispatch_to_schema(result)


@router.post("/alarm", response_model=DispatchResultRead, status_code=status.HTTP_201_CREATED)
async def create_alarm_notification(
    payload: AlarmNotificationCreate,
    dispatcher: DispatchRouter = Depends(get_dispatch_router),
    caller: CallerIdentity = Depends(get_caller_identity),
) -> DispatchResultRead:
    result = await dispatcher.create_alarm_notification(
        alarm_id=payload.alarm_id,
        alarm_type=payload.alarm_type,
        message=payload.message,
        patient_id=payload.patient_id,
        location=payload.location,
        recipients=payload.recipients,
        created_by=caller.subject,
    )
    return _dispatch_to_schema(result)


@router.post("/visit", response_model=DispatchResultRead, status_code=status.HTTP_201_CREATED)
async def create_visit_status_notification(
    payload: VisitNotificationCreate,
    dispatcher: DispatchRouter = Depends(get_dispatch_router),
    caller: CallerIdentity = Depends(get_caller_identity),
) -> DispatchResultRead:
    result = await dispatcher.create_visit_status_notification(
        visit_id=payload.visit_id,
        patient_id=payload.patient_id,
        status=payload.status,
        nurse_id=payload.nurse_id,
        visit_type=payload.visit_type,
        recipients=payload.recipients,
        created_by=caller.subject,
    )
    return _dispatch_to_schema(result)


@router.post("/medicine", response_model=DispatchResultRead, status_code=status.HTTP_201_CREATED)
async def create_medicine_notification(
    payload: MedicineNotificationCreate,
    dispatcher: DispatchRouter = Depends(get_dispatch_router),
    caller: CallerIdentity = Depends(get_caller_identity),
) -> DispatchResultRead:
    result = await dispatcher.create_medicine_notification(
        medicine_id=payload.medicine_id,
        patient_id=payload.patient_id,
        medicine_name=payload.medicine_name,
        change_type=payload.change_type,
        dosage=payload.dosage,
        message=payload.message,
        recipients=payload.recipients,
        created_by=caller.subject,
    )
    return _dispatch_to_schema(result)


@router.get("/recipient/{recipient_id}", response_model=NotificationListResponse)
def list_recipient_notifications(
    recipient_id: str,
    type: str | None = Query(default=None),
    read: str | None = Query(default=None),
    priority: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    service: RecipientQueryService = Depends(get_query_service),
    _: CallerIdentity = Depends(get_caller_identity),
) -> NotificationListResponse:
    """Return the newest notifications of ``recipient_id`` matching the filters."""

    result = service.list(recipient_id, type=type, read=read, priority=priority, limit=limit)
    return _list_to_schema(result)


@router.get("/related/{kind}/{value}", response_model=NotificationListResponse)
def list_related_notifications(
    kind: str,
    value: str,
    limit: str | None = Query(default=None),
    service: RecipientQueryService = Depends(get_query_service),
    _: CallerIdentity = Depends(get_caller_identity),
) -> NotificationListResponse:
    """Return notifications linked to a visit, patient, task, care plan or file."""

    return _list_to_schema(service.related(kind, value, limit=limit))


@router.get("/recipient/{recipient_id}/unread", response_model=NotificationListResponse)
def list_unread_notifications(
    recipient_id: str,
    service: RecipientQueryService = Depends(get_query_service),
    _: CallerIdentity = Depends(get_caller_identity),
) -> NotificationListResponse:
    return _list_to_schema(service.unread(recipient_id))


@router.get("/recipient/{recipient_id}/unread-count", response_model=UnreadCountResponse)
def get_unread_count(
    recipient_id: str,
    service: RecipientQueryService = Depends(get_query_service),
    _: CallerIdentity = Depends(get_caller_identity),
) -> UnreadCountResponse:
    return UnreadCountResponse.model_validate(service.unread_count(recipient_id))


@router.get("/recipient/{recipient_id}/stats", response_model=NotificationStatsResponse)
def get_notification_stats(
    recipient_id: str,
    service: RecipientQueryService = Depends(get_query_service),
    _: CallerIdentity = Depends(get_caller_identity),
) -> NotificationStatsResponse:
    return NotificationStatsResponse.model_validate(service.stats(recipient_id))


@router.put("/recipient/{recipient_id}/read-all", response_model=MarkAllReadResponse)
def mark_all_notifications_as_read(
    recipient_id: str,
    service: RecipientQueryService = Depends(get_query_service),
    _: CallerIdentity = Depends(get_caller_identity),
) -> MarkAllReadResponse:
    return MarkAllReadResponse.model_validate(service.mark_all_as_read(recipient_id))


@router.put("/{notification_id}/read", response_model=NotificationResponse)
def mark_notification_as_read(
    notification_id: str,
    service: RecipientQueryService = Depends(get_query_service),
    _: CallerIdentity = Depends(get_caller_identity),
) -> NotificationResponse:
    result = service.mark_as_read(notification_id)
    return NotificationResponse(
        success=result["success"],
        message=result["message"],
        data=_notification_to_schema(result["data"]),
    )


@router.put("/{notification_id}/delivered", response_model=NotificationResponse)
def mark_notification_as_delivered(
    notification_id: str,
    payload: DeliveryUpdate,
    service: RecipientQueryService = Depends(get_query_service),
    _: CallerIdentity = Depends(get_caller_identity),
) -> NotificationResponse:
    result = service.mark_as_delivered(notification_id, payload.channel, payload.message_id)
    return NotificationResponse(success=True, data=_notification_to_schema(result["data"]))


@router.put("/{notification_id}/action-complete", response_model=NotificationResponse)
def complete_notification_action(
    notification_id: str,
    service: RecipientQueryService = Depends(get_query_service),
    _: CallerIdentity = Depends(get_caller_identity),
) -> NotificationResponse:
    result = service.complete_action(notification_id)
    return NotificationResponse(success=True, data=_notification_to_schema(result["data"]))


@router.delete("/{notification_id}", response_model=NotificationResponse)
def delete_notification(
    notification_id: str,
    service: RecipientQueryService = Depends(get_query_service),
    _: CallerIdentity = Depends(get_caller_identity),
) -> NotificationResponse:
    return NotificationResponse.model_validate(service.delete(notification_id))


@router.websocket("/ws/{recipient_id}")
async def notifications_websocket(websocket: WebSocket, recipient_id: str) -> None:
    """Stream notifications addressed to ``recipient_id``.

    The first frame lists the unread notifications. Clients may send
    ``{"type": "ping"}`` or ``{"type": "ack", "ids": [...]}`` to mark
    notifications as read.
    """

    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=1008)
        return

    try:
        resolve_caller(token)
    except HTTPException:
        await websocket.close(code=1008)
        return

    session = SessionLocal()
    try:
        pending = RecipientQueryService(NotificationRepository(session)).unread(recipient_id)
        pending_payload = [_notification_to_payload(n) for n in pending["data"]]
    finally:
        session.close()

    await notification_manager.connect(recipient_id, websocket)
    try:
        await websocket.send_json({"type": "init", "data": pending_payload})
        while True:
            try:
                message = await websocket.receive_json()
            except WebSocketDisconnect:
                raise
            except ValueError:
                continue

            if not isinstance(message, dict):
                continue

            message_type = message.get("type")
            if message_type == "ping":
                await websocket.send_json({"type": "pong"})
                continue

            if message_type == "ack":
                ids = message.get("ids", [])
                if isinstance(ids, list) and ids:
                    _acknowledge(ids)
                continue
    except WebSocketDisconnect:
        notification_manager.disconnect(recipient_id, websocket)
    except Exception:
        notification_manager.disconnect(recipient_id, websocket)
        raise


def _acknowledge(ids: list[Any]) -> None:
    ack_session = SessionLocal()
    try:
        states = DeliveryStateMachine(NotificationRepository(ack_session))
        for notification_id in ids:
            try:
                states.mark_as_read(str(notification_id))
            except NotFoundError:
                logger.info("Ignoring acknowledgement for unknown notification %s", notification_id)
    finally:
        ack_session.close()
