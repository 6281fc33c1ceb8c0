"""Change Detection for the Address Tracker

This package detects which tracked address fields changed between two
standardized addresses, and holds the per-field change handlers.

Components:
- TrackedField: Enum of announced address fields and their event tags
- ChangeSignature: Normalized, comparable value of one field
- FieldChange: Transition of one field between two addresses
- AddressChangeDetector: Signature-based per-field comparison
- ChangeCallbackRegistry: One handler per tracked field

Usage:
    from modules.address_tracker.change_detection import (
        AddressChangeDetector, TrackedField
    )

    detector = AddressChangeDetector()
    for change in detector.changed_fields(previous_address, current_address):
        print(change.get_change_summary())
"""

from .change_detection_models import (
    TrackedField, DEFAULT_TRACKED_FIELDS, ChangeSignature, FieldChange, normalize_field_value
)
from .address_change_detector import AddressChangeDetector
from .callback_registry import ChangeCallbackRegistry

__all__ = [
    'TrackedField', 'DEFAULT_TRACKED_FIELDS', 'ChangeSignature', 'FieldChange',
    'normalize_field_value', 'AddressChangeDetector', 'ChangeCallbackRegistry'
]
