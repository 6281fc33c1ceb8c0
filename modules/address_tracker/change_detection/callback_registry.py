"""
Change Callback Registry

Holds exactly one handler per tracked field. Re-registering a field replaces
its handler; this is "the current handler for field X", not a broadcast list.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Union

from .change_detection_models import TrackedField

logger = logging.getLogger(__name__)

FieldKey = Union[str, TrackedField]


class ChangeCallbackRegistry:
    """One-callback-per-field registry with isolated execution."""

    def __init__(self):
        self._callbacks: Dict[TrackedField, Callable[..., Any]] = {}

    def register(self, field: FieldKey, callback: Optional[Callable[..., Any]]) -> None:
        """Set the handler for ``field``, replacing any previous one.

        Passing None clears the slot.

        Raises:
            TypeError: If ``callback`` is neither callable nor None
            ValueError: If ``field`` is not a tracked field name
        """
        field = TrackedField.coerce(field)

        if callback is None:
            self.unregister(field)
            return

        if not callable(callback):
            raise TypeError(
                f'Callback for field "{field.value}" must be callable or None. '
                f"Received: {type(callback).__name__}"
            )

        if field in self._callbacks:
            logger.debug(f"Replacing change callback for {field.value}")
        self._callbacks[field] = callback

    def unregister(self, field: FieldKey) -> bool:
        """Remove the handler for ``field``.

        Returns:
            True if a handler was registered
        """
        return self._callbacks.pop(TrackedField.coerce(field), None) is not None

    def get(self, field: FieldKey) -> Optional[Callable[..., Any]]:
        """Handler for ``field``, or None (also for unknown field names)."""
        try:
            return self._callbacks.get(TrackedField.coerce(field))
        except ValueError:
            return None

    def has(self, field: FieldKey) -> bool:
        return self.get(field) is not None

    def execute(self, field: FieldKey, *args, **kwargs) -> bool:
        """Run the handler for ``field`` if one is registered.

        A handler that raises is logged and reported as False; the error
        does not propagate.

        Returns:
            True if a handler ran to completion
        """
        field = TrackedField.coerce(field)
        callback = self._callbacks.get(field)
        if callback is None:
            return False

        try:
            callback(*args, **kwargs)
            return True
        except Exception as e:
            logger.error(f'Error executing change callback for "{field.value}": {e}', exc_info=True)
            return False

    def clear_all(self) -> None:
        """Tear down every field's handler."""
        self._callbacks.clear()

    def registered_fields(self) -> List[TrackedField]:
        return list(self._callbacks.keys())

    @property
    def size(self) -> int:
        return len(self._callbacks)

    def __len__(self) -> int:
        return len(self._callbacks)

    def __contains__(self, field: FieldKey) -> bool:
        return self.has(field)
