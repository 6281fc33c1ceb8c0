"""TrackingConfig Data Model

This module defines the validated, init-time configuration for a tracking
session: the position gate thresholds, the address store sizing, which fields
are tracked and how concurrent fixes are handled while a geocode is in flight.
"""

import logging
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.exceptions import TrackerConfigurationError
from .position_value import ACCURACY_QUALITY_THRESHOLDS, WORST_ACCURACY_QUALITY
from .tracked_field import TrackedField, DEFAULT_TRACKED_FIELDS

logger = logging.getLogger(__name__)

DEFAULT_MIN_TIME_MS = 30000
DEFAULT_MIN_DISTANCE_M = 20.0
DEFAULT_CACHE_CAPACITY = 100
DEFAULT_CACHE_KEY = "current"


class InFlightPolicy(str, Enum):
    """What to do with fixes accepted while a geocode is already running.

    Values:
        LATEST_WINS: Keep only the newest such fix and geocode it next
        DROP: Discard them; only the in-flight geocode completes
    """
    LATEST_WINS = "latest_wins"
    DROP = "drop"


class TrackingConfig(BaseModel):
    """Init-time tracking configuration.

    There is no runtime reconfiguration: components copy the values they
    need when they are built.
    """

    model_config = ConfigDict(frozen=True)

    min_time_ms: int = Field(
        DEFAULT_MIN_TIME_MS, ge=0,
        description="Elapsed time that alone makes a fix significant (ms)"
    )
    min_distance_m: float = Field(
        DEFAULT_MIN_DISTANCE_M, ge=0,
        description="Distance that alone makes a fix significant (m)"
    )
    cache_capacity: int = Field(
        DEFAULT_CACHE_CAPACITY, gt=0,
        description="Maximum number of entries in the address store"
    )
    cache_key: str = Field(
        DEFAULT_CACHE_KEY, min_length=1,
        description="Store key under which the latest address is kept"
    )
    cache_expiration_ms: Optional[int] = Field(
        None, gt=0,
        description="Age after which a stored address expires (ms); None disables expiry"
    )
    tracked_fields: List[TrackedField] = Field(
        default_factory=lambda: list(DEFAULT_TRACKED_FIELDS),
        description="Address fields whose changes are announced"
    )
    notify_on_first_observation: bool = Field(
        True,
        description="Report a field as changed when there is no previous address"
    )
    in_flight_policy: InFlightPolicy = Field(
        InFlightPolicy.LATEST_WINS,
        description="Handling of fixes accepted while a geocode is in flight"
    )
    rejected_accuracy_qualities: List[str] = Field(
        default_factory=list,
        description="Accuracy quality labels whose fixes are always rejected"
    )

    @field_validator('rejected_accuracy_qualities')
    @classmethod
    def validate_accuracy_labels(cls, v: List[str]) -> List[str]:
        """Only known accuracy quality labels are allowed."""
        known = {label for _, label in ACCURACY_QUALITY_THRESHOLDS} | {WORST_ACCURACY_QUALITY}
        unknown = [label for label in v if label not in known]
        if unknown:
            raise ValueError(f"Unknown accuracy quality labels: {unknown}")
        return v

    @classmethod
    def from_config_loader(cls, config_loader, environment: str) -> "TrackingConfig":
        """Build a TrackingConfig from the framework configuration files.

        Tracked fields come from the address field mapping when it is
        available; otherwise the defaults are used.

        Args:
            config_loader: ConfigLoader instance
            environment: Environment name

        Returns:
            Validated TrackingConfig
        """
        settings = config_loader.get_tracking_config(environment)

        if "tracked_fields" not in settings:
            try:
                settings["tracked_fields"] = config_loader.get_tracked_fields()
            except TrackerConfigurationError as e:
                logger.warning(f"Using default tracked fields: {e}")

        return cls(**settings)
