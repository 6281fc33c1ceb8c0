"""
Address Change Detector

Compares two standardized addresses field by field using normalized
signatures and reports one FieldChange per tracked field.
"""

import logging
from typing import Iterable, List, Optional, Union

from ..models.standardized_address import StandardizedAddress
from .change_detection_models import (
    TrackedField, DEFAULT_TRACKED_FIELDS, ChangeSignature, FieldChange
)

logger = logging.getLogger(__name__)


class AddressChangeDetector:
    """Per-field change detector for standardized addresses.

    When there is no previous address, a field with a non-empty current value
    counts as changed if ``notify_on_first_observation`` is set (the default);
    otherwise first observations are never reported as changes.

    A field going from a value to absent is reported as changed.
    """

    def __init__(self,
                 tracked_fields: Optional[Iterable[Union[str, TrackedField]]] = None,
                 notify_on_first_observation: bool = True):
        """Initialize the detector.

        Args:
            tracked_fields: Fields to compare, in report order (defaults to all tracked fields)
            notify_on_first_observation: Report non-empty fields as changed when
                there is no previous address
        """
        fields = DEFAULT_TRACKED_FIELDS if tracked_fields is None else tracked_fields
        self.tracked_fields: List[TrackedField] = []
        for field in fields:
            field = TrackedField.coerce(field)
            if field not in self.tracked_fields:
                self.tracked_fields.append(field)
        self.notify_on_first_observation = notify_on_first_observation

    @classmethod
    def from_config(cls, config) -> "AddressChangeDetector":
        """Build a detector from a TrackingConfig."""
        return cls(
            tracked_fields=config.tracked_fields,
            notify_on_first_observation=config.notify_on_first_observation,
        )

    def signature(self, field: Union[str, TrackedField],
                  address: Optional[StandardizedAddress]) -> ChangeSignature:
        """Signature of ``field`` in ``address`` (empty when address is None)."""
        field = TrackedField.coerce(field)
        value = getattr(address, field.value) if address is not None else None
        return ChangeSignature.of(field, value)

    def diff(self,
             previous: Optional[StandardizedAddress],
             current: StandardizedAddress) -> List[FieldChange]:
        """Compare two addresses.

        Args:
            previous: Previously cached address, or None on first observation
            current: Newly resolved address

        Returns:
            One FieldChange per tracked field, in tracked-field order
        """
        changes = [self._diff_field(field, previous, current) for field in self.tracked_fields]

        changed_names = [c.field_name for c in changes if c.changed]
        if changed_names:
            logger.debug(f"Address fields changed: {changed_names}")

        return changes

    def changed_fields(self,
                       previous: Optional[StandardizedAddress],
                       current: StandardizedAddress) -> List[FieldChange]:
        """Only the FieldChange entries with ``changed=True``."""
        return [change for change in self.diff(previous, current) if change.changed]

    def _diff_field(self,
                    field: TrackedField,
                    previous: Optional[StandardizedAddress],
                    current: StandardizedAddress) -> FieldChange:
        current_signature = self.signature(field, current)
        current_value = getattr(current, field.value)

        if previous is None:
            return FieldChange(
                field=field,
                previous_value=None,
                current_value=current_value,
                changed=self.notify_on_first_observation and not current_signature.is_empty,
                previous_signature=None,
                current_signature=current_signature,
            )

        previous_signature = self.signature(field, previous)
        return FieldChange(
            field=field,
            previous_value=getattr(previous, field.value),
            current_value=current_value,
            changed=previous_signature != current_signature,
            previous_signature=previous_signature,
            current_signature=current_signature,
        )
