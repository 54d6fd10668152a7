from .notification import (
    AlarmNotificationCreate,
    ChannelResultRead,
    DeliveryUpdate,
    DispatchNotificationRead,
    DispatchResultRead,
    HealthRead,
    MarkAllReadResponse,
    MedicineNotificationCreate,
    NotificationCreate,
    NotificationListResponse,
    NotificationRead,
    NotificationResponse,
    NotificationStats,
    NotificationStatsResponse,
    TaskNotificationCreate,
    UnreadCountResponse,
    VisitNotificationCreate,
)

__all__ = [
    "AlarmNotificationCreate",
    "ChannelResultRead",
    "DeliveryUpdate",
    "DispatchNotificationRead",
    "DispatchResultRead",
    "HealthRead",
    "MarkAllReadResponse",
    "MedicineNotificationCreate",
    "NotificationCreate",
    "NotificationListResponse",
    "NotificationRead",
    "NotificationResponse",
    "NotificationStats",
    "NotificationStatsResponse",
    "TaskNotificationCreate",
    "UnreadCountResponse",
    "VisitNotificationCreate",
]
