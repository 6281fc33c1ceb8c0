"""Notification Hub

Publish/subscribe primitive with two subscriber shapes: stateful objects that
expose an ``update(...)`` method, and plain callables. One failing subscriber
never prevents delivery to the others.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List

logger = logging.getLogger(__name__)


class SubscriberKind(str, Enum):
    """How a subscriber is invoked on publish."""
    STATEFUL = "stateful"
    CALLBACK = "callback"


@dataclass(eq=False)
class Subscription:
    """One registration in the hub.

    Compared by identity so that duplicate registrations of the same
    subscriber stay distinct entries.
    """
    subscriber: Any
    kind: SubscriberKind

    def notify(self, *args, **kwargs) -> None:
        """Deliver one publish to this subscriber."""
        if self.kind is SubscriberKind.STATEFUL:
            self.subscriber.update(*args, **kwargs)
        else:
            self.subscriber(*args, **kwargs)


@dataclass
class DeliveryFailure:
    """A subscriber that raised during publish."""
    subscriber: Any
    kind: SubscriberKind
    error: Exception


@dataclass
class DeliveryReport:
    """Outcome of one publish call."""
    delivered: int = 0
    failures: List[DeliveryFailure] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def all_delivered(self) -> bool:
        return not self.failures


class Unsubscribe:
    """Handle returned by subscribe; calling it removes that one registration."""

    def __init__(self, hub: "NotificationHub", subscription: Subscription):
        self._hub = hub
        self._subscription = subscription

    def __call__(self) -> bool:
        """Remove the registration.

        Returns:
            True if it was still registered, False if already removed
        """
        return self._hub._remove_subscription(self._subscription)


class NotificationHub:
    """Ordered, fault-isolated publish/subscribe registry.

    Subscriptions are additive: subscribing the same object twice delivers
    each publish to it twice. Subscribers are notified in registration order.
    """

    def __init__(self, name: str = "NotificationHub"):
        self.name = name
        self._subscriptions: List[Subscription] = []

    def subscribe_stateful(self, subscriber: Any) -> Unsubscribe:
        """Register an object exposing ``update(*args)``.

        Raises:
            TypeError: If the object has no callable ``update``
        """
        if not callable(getattr(subscriber, "update", None)):
            raise TypeError(
                f"Stateful subscriber must expose a callable 'update'. "
                f"Received: {type(subscriber).__name__}"
            )
        return self._add(subscriber, SubscriberKind.STATEFUL)

    def subscribe_callback(self, callback: Callable[..., Any]) -> Unsubscribe:
        """Register a plain callable.

        Raises:
            TypeError: If ``callback`` is not callable
        """
        if not callable(callback):
            raise TypeError(
                f"Callback subscriber must be callable. Received: {type(callback).__name__}"
            )
        return self._add(callback, SubscriberKind.CALLBACK)

    def unsubscribe_stateful(self, subscriber: Any) -> int:
        """Remove every stateful registration of ``subscriber``.

        Returns:
            Number of registrations removed
        """
        return self._remove_matching(subscriber, SubscriberKind.STATEFUL)

    def unsubscribe_callback(self, callback: Callable[..., Any]) -> int:
        """Remove every callback registration of ``callback``.

        Returns:
            Number of registrations removed
        """
        return self._remove_matching(callback, SubscriberKind.CALLBACK)

    def publish(self, *args, **kwargs) -> DeliveryReport:
        """Deliver the same arguments to every live subscriber.

        Subscribers added or removed by a subscriber during this publish
        take effect from the next publish.

        Returns:
            DeliveryReport with delivery count and any failures
        """
        report = DeliveryReport()

        for subscription in list(self._subscriptions):
            try:
                subscription.notify(*args, **kwargs)
                report.delivered += 1
            except Exception as e:
                logger.error(
                    f"({self.name}) Subscriber {subscription.subscriber!r} "
                    f"({subscription.kind.value}) failed: {e}",
                    exc_info=True
                )
                report.failures.append(
                    DeliveryFailure(subscription.subscriber, subscription.kind, e)
                )

        return report

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    @property
    def stateful_count(self) -> int:
        return sum(1 for s in self._subscriptions if s.kind is SubscriberKind.STATEFUL)

    @property
    def callback_count(self) -> int:
        return sum(1 for s in self._subscriptions if s.kind is SubscriberKind.CALLBACK)

    def clear(self) -> None:
        """Remove all subscribers."""
        self._subscriptions = []

    def _add(self, subscriber: Any, kind: SubscriberKind) -> Unsubscribe:
        subscription = Subscription(subscriber, kind)
        self._subscriptions = [*self._subscriptions, subscription]
        logger.debug(f"({self.name}) Subscribed {subscriber!r} as {kind.value}")
        return Unsubscribe(self, subscription)

    def _remove_subscription(self, subscription: Subscription) -> bool:
        remaining = [s for s in self._subscriptions if s is not subscription]
        removed = len(remaining) != len(self._subscriptions)
        self._subscriptions = remaining
        return removed

    def _remove_matching(self, subscriber: Any, kind: SubscriberKind) -> int:
        def matches(s: Subscription) -> bool:
            if s.kind is not kind:
                return False
            if kind is SubscriberKind.CALLBACK:
                # Bound methods are recreated on each attribute access but compare equal
                return s.subscriber == subscriber
            return s.subscriber is subscriber

        remaining = [s for s in self._subscriptions if not matches(s)]
        removed = len(self._subscriptions) - len(remaining)
        self._subscriptions = remaining
        return removed

    def __str__(self) -> str:
        return (
            f"{self.name}: {self.stateful_count} stateful, "
            f"{self.callback_count} callback subscribers"
        )
