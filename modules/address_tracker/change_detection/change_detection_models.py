"""
Change Detection Data Models

This module defines the models exchanged between the address change detector
and the coordinator: the normalized per-field signature used for comparison
and the per-field transition report.

Signature normalization, applied in order:
1. Missing or blank values normalize to None
2. Unicode NFKD decomposition, then combining marks (diacritics) are dropped
3. casefold()
4. Runs of whitespace collapse to a single space; the ends are stripped

So "São  Paulo", "sao paulo" and " SAO PAULO " share one signature.
"""

import unicodedata
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.tracked_field import TrackedField, DEFAULT_TRACKED_FIELDS


def normalize_field_value(value: Optional[str]) -> Optional[str]:
    """Normalize a raw field value for comparison.

    Args:
        value: Raw field text, possibly None

    Returns:
        Normalized text, or None when the value is missing or blank
    """
    if value is None:
        return None

    decomposed = unicodedata.normalize("NFKD", str(value))
    without_marks = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    normalized = " ".join(without_marks.casefold().split())

    return normalized or None


class ChangeSignature(BaseModel):
    """Comparable representation of one field of one address.

    Two signatures are equal when both the field and the normalized value
    match, regardless of cosmetic differences in the raw text.
    """

    model_config = ConfigDict(frozen=True)

    field: TrackedField = Field(..., description="Field the signature belongs to")
    normalized: Optional[str] = Field(None, description="Normalized value, None when absent")

    @classmethod
    def of(cls, field: TrackedField, value: Optional[str]) -> "ChangeSignature":
        """Compute the signature of a raw field value."""
        return cls(field=field, normalized=normalize_field_value(value))

    @property
    def is_empty(self) -> bool:
        return self.normalized is None


class FieldChange(BaseModel):
    """Transition of one tracked field between two addresses.

    Emitted transiently by the detector; never persisted.
    """

    model_config = ConfigDict(frozen=True)

    field: TrackedField = Field(..., description="Tracked field")
    previous_value: Optional[str] = Field(None, description="Raw value in the previous address")
    current_value: Optional[str] = Field(None, description="Raw value in the current address")
    changed: bool = Field(..., description="Whether the signatures differ")
    previous_signature: Optional[ChangeSignature] = Field(
        None, description="Signature of the previous value; None when there was no previous address"
    )
    current_signature: ChangeSignature = Field(..., description="Signature of the current value")

    @property
    def field_name(self) -> str:
        return self.field.value

    @property
    def event_tag(self) -> str:
        return self.field.event_tag

    @property
    def is_first_observation(self) -> bool:
        """True when there was no previous address to compare against."""
        return self.previous_signature is None

    def get_change_summary(self) -> str:
        """Human-readable one-line summary."""
        if not self.changed:
            return f"{self.field_name} unchanged ({self.current_value!r})"
        return f"{self.field_name}: {self.previous_value!r} -> {self.current_value!r}"


__all__ = [
    'TrackedField', 'DEFAULT_TRACKED_FIELDS',
    'ChangeSignature', 'FieldChange', 'normalize_field_value',
]
