"""Notification fan-out for address changes.

Components:
- NotificationHub: ordered, fault-isolated publish/subscribe
- SubscriberKind, Subscription, DeliveryReport: hub bookkeeping types
- LoggingChangeSubscriber: stateful subscriber producing announcement lines
"""

from .notification_hub import (
    NotificationHub, SubscriberKind, Subscription, DeliveryReport, DeliveryFailure, Unsubscribe
)
from .subscribers import LoggingChangeSubscriber, DEFAULT_ANNOUNCEMENTS

__all__ = [
    'NotificationHub', 'SubscriberKind', 'Subscription', 'DeliveryReport',
    'DeliveryFailure', 'Unsubscribe', 'LoggingChangeSubscriber', 'DEFAULT_ANNOUNCEMENTS'
]
