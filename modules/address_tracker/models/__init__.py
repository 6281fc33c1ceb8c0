"""Address Tracker data models."""

from .position_value import PositionValue, accuracy_quality_for
from .standardized_address import StandardizedAddress, ReferencePlace
from .tracked_field import TrackedField, DEFAULT_TRACKED_FIELDS
from .tracking_config import TrackingConfig, InFlightPolicy

__all__ = [
    'PositionValue', 'accuracy_quality_for',
    'StandardizedAddress', 'ReferencePlace',
    'TrackedField', 'DEFAULT_TRACKED_FIELDS',
    'TrackingConfig', 'InFlightPolicy',
]
