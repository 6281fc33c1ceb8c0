"""
Custom exceptions for the Address Tracker.

This module provides domain-specific exception classes for error handling
and debugging throughout the system.
"""

from .custom_exceptions import (
    TrackerBaseException,
    TrackerConfigurationError,
    TrackerValidationError,
    TrackerProcessingError,
    TrackerGeocodingError,
)

__all__ = [
    "TrackerBaseException",
    "TrackerConfigurationError",
    "TrackerValidationError",
    "TrackerProcessingError",
    "TrackerGeocodingError",
]
