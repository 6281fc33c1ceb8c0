"""
Custom exception classes for the Address Tracker.

This module defines domain-specific exceptions so that configuration problems,
rejected fixes and geocoding failures can be told apart by callers.
"""

from typing import Optional, Dict, Any


class TrackerBaseException(Exception):
    """Base exception class for all address tracker exceptions."""
    
    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}
    
    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (Context: {context_str})"
        return self.message


class TrackerConfigurationError(TrackerBaseException):
    """
    Exception raised when configuration loading or validation fails.
    
    This exception is raised when:
    - Configuration files are missing or invalid
    - Environment configuration is malformed
    - A component is constructed with an impossible setting (e.g. cache capacity <= 0)
    """
    pass


class TrackerValidationError(TrackerBaseException):
    """
    Exception raised when input validation fails.
    
    This exception is raised when:
    - A raw fix carries missing or non-finite coordinates
    - Coordinates fall outside their valid ranges
    - Configuration structure fails schema checks
    """
    pass


class TrackerProcessingError(TrackerBaseException):
    """
    Exception raised when a replay or tracking run cannot be completed.
    
    This exception is raised when:
    - A replay file is missing or is not a list of fixes
    """
    pass


class TrackerGeocodingError(TrackerBaseException):
    """
    Exception raised by geocoding collaborators when no address can be produced.
    
    The tracking session contains this error and reports the cycle as
    "no update"; it never retries.
    """
    pass
