"""PositionValue Data Model

This module defines the immutable coordinate fix used by the position gate and
the tracking session. Validation happens at construction so that a malformed
fix is rejected before any tracking state sees it.
"""

import math
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from src.exceptions import TrackerValidationError
from ..geodesy import haversine_distance


# Upper bounds (inclusive) for each accuracy quality label, in meters
ACCURACY_QUALITY_THRESHOLDS = (
    (10.0, "excellent"),
    (30.0, "good"),
    (100.0, "medium"),
    (200.0, "bad"),
)
WORST_ACCURACY_QUALITY = "very bad"


def accuracy_quality_for(accuracy: float) -> str:
    """Classify a horizontal accuracy in meters as a quality label.

    Args:
        accuracy: Accuracy radius in meters

    Returns:
        One of "excellent", "good", "medium", "bad" or "very bad"
    """
    for upper_bound, label in ACCURACY_QUALITY_THRESHOLDS:
        if accuracy <= upper_bound:
            return label
    return WORST_ACCURACY_QUALITY


class PositionValue(BaseModel):
    """Immutable coordinate fix.

    Attributes:
        latitude: Latitude in decimal degrees (-90..90)
        longitude: Longitude in decimal degrees (-180..180)
        accuracy: Horizontal accuracy radius in meters (>= 0)
        timestamp: Fix time in epoch milliseconds
        altitude: Altitude in meters, when the source reports it
        speed: Ground speed in meters per second, when reported
        heading: Direction of travel in degrees clockwise from true north, when reported
    """

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90.0, le=90.0, description="Latitude in decimal degrees")
    longitude: float = Field(..., ge=-180.0, le=180.0, description="Longitude in decimal degrees")
    accuracy: float = Field(0.0, ge=0.0, description="Horizontal accuracy in meters")
    timestamp: int = Field(..., ge=0, description="Fix time in epoch milliseconds")
    altitude: Optional[float] = Field(None, description="Altitude in meters")
    speed: Optional[float] = Field(None, ge=0.0, description="Ground speed in m/s")
    heading: Optional[float] = Field(None, ge=0.0, lt=360.0, description="Heading in degrees")

    @field_validator('latitude', 'longitude', 'accuracy')
    @classmethod
    def validate_finite(cls, v: float) -> float:
        """Reject NaN and infinite values.

        Range constraints alone let NaN through, since every comparison
        with NaN is False.
        """
        if not math.isfinite(v):
            raise ValueError("value must be a finite number")
        return v

    @field_validator('altitude', 'speed', 'heading', mode='before')
    @classmethod
    def validate_optional_reading(cls, v: Any) -> Any:
        """Treat NaN as not reported and reject infinite readings.

        Geolocation sources report a NaN heading while stationary.
        """
        if isinstance(v, float):
            if math.isnan(v):
                return None
            if math.isinf(v):
                raise ValueError("value must be a finite number")
        return v

    @classmethod
    def from_raw_fix(cls, raw: Mapping[str, Any]) -> "PositionValue":
        """Build a PositionValue from a raw location-source payload.

        Two shapes are accepted: the flat fix-source shape
        ``{latitude, longitude, accuracy, timestampMillis}`` and the browser
        Geolocation shape ``{coords: {latitude, longitude, accuracy}, timestamp}``.
        Optional ``altitude``, ``speed`` and ``heading`` are read from the same
        place as the coordinates.

        Args:
            raw: Raw fix mapping

        Returns:
            Validated PositionValue

        Raises:
            TrackerValidationError: If the payload is missing fields or carries
                out-of-range or non-finite values
        """
        if not isinstance(raw, Mapping):
            raise TrackerValidationError(
                "Raw fix must be a mapping", {"type": type(raw).__name__}
            )

        coords = raw.get("coords")
        source = coords if isinstance(coords, Mapping) else raw
        timestamp = raw.get("timestampMillis", raw.get("timestamp"))

        try:
            return cls(
                latitude=source.get("latitude"),
                longitude=source.get("longitude"),
                accuracy=source.get("accuracy") or 0.0,
                timestamp=timestamp,
                altitude=source.get("altitude"),
                speed=source.get("speed"),
                heading=source.get("heading"),
            )
        except ValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
            raise TrackerValidationError(
                "Rejected malformed fix",
                {"fields": ",".join(fields), "errors": e.error_count()}
            ) from e

    @property
    def accuracy_quality(self) -> str:
        """Quality label derived from the accuracy radius."""
        return accuracy_quality_for(self.accuracy)

    def distance_to(self, other: "PositionValue") -> float:
        """Great-circle distance to another fix, in meters."""
        return haversine_distance(
            self.latitude, self.longitude, other.latitude, other.longitude
        )

    def elapsed_ms_since(self, other: "PositionValue") -> int:
        """Milliseconds elapsed between ``other`` and this fix."""
        return self.timestamp - other.timestamp

    def __str__(self) -> str:
        return (
            f"PositionValue: {self.latitude}, {self.longitude}, "
            f"{self.accuracy_quality}, {self.timestamp}"
        )
