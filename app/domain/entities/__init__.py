"""Domain entities exposed by the application."""

from .caller import CallerIdentity
from .dispatch import (
    CATEGORY_ALARM,
    CATEGORY_MEDICINE,
    CATEGORY_TASK,
    CATEGORY_VISIT,
    ENTITY_CATEGORIES,
    ChannelResult,
    DispatchNotification,
    DispatchResult,
)
from .notification import (
    DELIVERY_CHANNELS,
    IN_APP_CHANNEL,
    MESSAGE_MAX_LENGTH,
    NOTIFICATION_TYPES,
    PRIORITIES,
    PRIORITY_HIGH,
    PRIORITY_LOW,
    PRIORITY_NORMAL,
    PRIORITY_URGENT,
    RECIPIENT_TYPES,
    RELATED_ENTITY_KEYS,
    STATUSES,
    STATUS_DELIVERED,
    STATUS_FAILED,
    STATUS_PENDING,
    STATUS_READ,
    STATUS_SENT,
    TITLE_MAX_LENGTH,
    ChannelDelivery,
    DeliveryChannels,
    InAppDelivery,
    Notification,
    RelatedEntities,
)

__all__ = [
    "CallerIdentity",
    "CATEGORY_ALARM",
    "CATEGORY_MEDICINE",
    "CATEGORY_TASK",
    "CATEGORY_VISIT",
    "ENTITY_CATEGORIES",
    "ChannelResult",
    "DispatchNotification",
    "DispatchResult",
    "DELIVERY_CHANNELS",
    "IN_APP_CHANNEL",
    "MESSAGE_MAX_LENGTH",
    "NOTIFICATION_TYPES",
    "PRIORITIES",
    "PRIORITY_HIGH",
    "PRIORITY_LOW",
    "PRIORITY_NORMAL",
    "PRIORITY_URGENT",
    "RECIPIENT_TYPES",
    "RELATED_ENTITY_KEYS",
    "STATUSES",
    "STATUS_DELIVERED",
    "STATUS_FAILED",
    "STATUS_PENDING",
    "STATUS_READ",
    "STATUS_SENT",
    "TITLE_MAX_LENGTH",
    "ChannelDelivery",
    "DeliveryChannels",
    "InAppDelivery",
    "Notification",
    "RelatedEntities",
]
