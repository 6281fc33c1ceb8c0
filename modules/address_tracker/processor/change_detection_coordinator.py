"""Change Detection Coordinator

Ties the address store, the change detector, the per-field callback registry
and the notification hub together. Each newly resolved address is diffed
against the cached one, stored, and every changed field is dispatched to its
registered handler and published on the hub.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..address_store.bounded_address_store import BoundedAddressStore
from ..change_detection.address_change_detector import AddressChangeDetector
from ..change_detection.callback_registry import ChangeCallbackRegistry
from ..change_detection.change_detection_models import FieldChange, TrackedField
from ..models.position_value import PositionValue
from ..models.standardized_address import StandardizedAddress
from ..models.tracking_config import DEFAULT_CACHE_KEY
from ..notifications.notification_hub import NotificationHub

logger = logging.getLogger(__name__)


class CoordinatorState(str, Enum):
    """Lifecycle of a coordinator.

    Values:
        IDLE: No position has been set yet
        TRACKING: A current position exists; an address may be cached
    """
    IDLE = "idle"
    TRACKING = "tracking"


class CoordinationResult(BaseModel):
    """Outcome of handling one resolved address."""

    changes: List[FieldChange] = Field(default_factory=list, description="One entry per tracked field")
    published_fields: List[TrackedField] = Field(
        default_factory=list, description="Changed fields published without error"
    )
    callback_failures: List[TrackedField] = Field(
        default_factory=list, description="Fields whose registered handler failed"
    )
    publish_failures: Dict[TrackedField, int] = Field(
        default_factory=dict, description="Failed subscriber deliveries per field"
    )

    @property
    def changed_fields(self) -> List[TrackedField]:
        return [change.field for change in self.changes if change.changed]

    @property
    def has_changes(self) -> bool:
        return any(change.changed for change in self.changes)

    def get_summary(self) -> str:
        if not self.has_changes:
            return "No tracked address field changed"
        return "; ".join(c.get_change_summary() for c in self.changes if c.changed)


class ChangeDetectionCoordinator:
    """Orchestrates store update, diffing and dual-mode notification.

    For every resolved address:
    1. the previous address is read from the store (``cache_key``),
    2. the detector diffs previous against the new address,
    3. the store is updated unconditionally,
    4. each changed field runs its registry handler, then is published on
       the hub as ``publish(field_name, change)``.

    Step 4 is isolated per field. Failures in steps 1-3 are defects and
    propagate.
    """

    def __init__(self,
                 store: Optional[BoundedAddressStore] = None,
                 detector: Optional[AddressChangeDetector] = None,
                 registry: Optional[ChangeCallbackRegistry] = None,
                 hub: Optional[NotificationHub] = None,
                 cache_key: str = DEFAULT_CACHE_KEY):
        self.store = store if store is not None else BoundedAddressStore()
        self.detector = detector if detector is not None else AddressChangeDetector()
        self.registry = registry if registry is not None else ChangeCallbackRegistry()
        self.hub = hub if hub is not None else NotificationHub()
        self.cache_key = cache_key
        self._current_position: Optional[PositionValue] = None

        logger.info(
            f"ChangeDetectionCoordinator initialized tracking "
            f"{[f.value for f in self.detector.tracked_fields]}"
        )

    @classmethod
    def from_config(cls, config) -> "ChangeDetectionCoordinator":
        """Build a coordinator and its collaborators from a TrackingConfig."""
        return cls(
            store=BoundedAddressStore(
                capacity=config.cache_capacity,
                expiration_ms=config.cache_expiration_ms,
            ),
            detector=AddressChangeDetector.from_config(config),
            cache_key=config.cache_key,
        )

    @property
    def state(self) -> CoordinatorState:
        if self._current_position is None:
            return CoordinatorState.IDLE
        return CoordinatorState.TRACKING

    @property
    def current_position(self) -> Optional[PositionValue]:
        return self._current_position

    def set_current_position(self, position: PositionValue) -> None:
        """Record the position the next address belongs to."""
        self._current_position = position

    def current_address(self) -> Optional[StandardizedAddress]:
        """Poll the latest cached address without waiting for a notification."""
        return self.store.get(self.cache_key)

    def handle_address(self, address: StandardizedAddress) -> CoordinationResult:
        """Process one newly resolved address.

        Args:
            address: Standardized address for the current position

        Returns:
            CoordinationResult describing changes and delivery failures
        """
        # peek: reading the previous address for comparison is not a "use"
        previous = self.store.peek(self.cache_key)
        changes = self.detector.diff(previous, address)
        self.store.set(self.cache_key, address)

        result = CoordinationResult(changes=changes)

        for change in changes:
            if change.changed:
                self._dispatch(change, result)

        if result.has_changes:
            logger.info(f"Address change detected: {result.get_summary()}")

        return result

    def _dispatch(self, change: FieldChange, result: CoordinationResult) -> None:
        field = change.field

        try:
            if self.registry.has(field) and not self.registry.execute(field, change):
                result.callback_failures.append(field)

            report = self.hub.publish(field.value, change)
            if report.failed:
                result.publish_failures[field] = report.failed
            else:
                result.published_fields.append(field)
        except Exception as e:
            logger.error(f"Error dispatching {field.value} change: {e}", exc_info=True)
            result.publish_failures[field] = result.publish_failures.get(field, 0) + 1

    def register_field_callback(self, field: Any, callback) -> None:
        """Shortcut for ``registry.register``."""
        self.registry.register(field, callback)

    def remove_all_callbacks(self) -> None:
        """Tear down every per-field handler."""
        self.registry.clear_all()

    def reset(self) -> None:
        """Forget the cached address and position; back to IDLE."""
        self.store.clear()
        self._current_position = None
