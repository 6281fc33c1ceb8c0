"""Position Gate

Owns the single "current position" of a tracking session and decides, per
incoming fix, whether the movement is significant enough to propagate to
reverse geocoding.
"""

import logging
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

from ..models.position_value import PositionValue
from ..models.tracking_config import DEFAULT_MIN_TIME_MS, DEFAULT_MIN_DISTANCE_M

logger = logging.getLogger(__name__)


class GateDecision(BaseModel):
    """Outcome of evaluating one candidate fix.

    ``elapsed_ms`` and ``distance_m`` are None for the first fix, since there
    is nothing to compare against.
    """
    accepted: bool = Field(..., description="Whether the fix should become current")
    reason: str = Field(..., description="Short machine-readable reason")
    elapsed_ms: Optional[int] = Field(None, description="Time since the current fix (ms)")
    distance_m: Optional[float] = Field(None, ge=0, description="Distance from the current fix (m)")


class PositionGate:
    """Time/distance threshold gate for incoming fixes.

    A fix is accepted when the elapsed time since the current fix is at least
    ``min_time_ms`` OR the distance from it is at least ``min_distance_m``;
    either condition alone is enough and both bounds are inclusive. The first
    fix is always accepted.

    An optional accuracy filter rejects fixes whose accuracy quality label is
    listed in ``rejected_accuracy_qualities``, before the threshold rule runs.
    """

    REASON_FIRST_FIX = "first_fix"
    REASON_ELAPSED_TIME = "elapsed_time"
    REASON_DISTANCE = "distance"
    REASON_BELOW_THRESHOLDS = "below_thresholds"
    REASON_POOR_ACCURACY = "poor_accuracy"

    def __init__(self,
                 min_time_ms: int = DEFAULT_MIN_TIME_MS,
                 min_distance_m: float = DEFAULT_MIN_DISTANCE_M,
                 rejected_accuracy_qualities: Optional[Sequence[str]] = None):
        """Initialize the gate with its thresholds.

        Args:
            min_time_ms: Minimum elapsed time for a significant fix
            min_distance_m: Minimum distance for a significant fix
            rejected_accuracy_qualities: Accuracy labels to always reject
        """
        self.min_time_ms = min_time_ms
        self.min_distance_m = min_distance_m
        self.rejected_accuracy_qualities: List[str] = list(rejected_accuracy_qualities or [])
        self._current: Optional[PositionValue] = None
        self._previous: Optional[PositionValue] = None

    @classmethod
    def from_config(cls, config) -> "PositionGate":
        """Build a gate from a TrackingConfig."""
        return cls(
            min_time_ms=config.min_time_ms,
            min_distance_m=config.min_distance_m,
            rejected_accuracy_qualities=config.rejected_accuracy_qualities,
        )

    @property
    def current(self) -> Optional[PositionValue]:
        """The last accepted fix, or None before the first one."""
        return self._current

    @property
    def previous(self) -> Optional[PositionValue]:
        """The fix that was current before the last acceptance."""
        return self._previous

    def evaluate(self, candidate: PositionValue) -> GateDecision:
        """Decide whether ``candidate`` is significant, without changing state."""
        if candidate.accuracy_quality in self.rejected_accuracy_qualities:
            return GateDecision(accepted=False, reason=self.REASON_POOR_ACCURACY)

        if self._current is None:
            return GateDecision(accepted=True, reason=self.REASON_FIRST_FIX)

        elapsed_ms = candidate.elapsed_ms_since(self._current)
        distance_m = candidate.distance_to(self._current)

        if elapsed_ms >= self.min_time_ms:
            reason = self.REASON_ELAPSED_TIME
        elif distance_m >= self.min_distance_m:
            reason = self.REASON_DISTANCE
        else:
            reason = self.REASON_BELOW_THRESHOLDS

        return GateDecision(
            accepted=reason != self.REASON_BELOW_THRESHOLDS,
            reason=reason,
            elapsed_ms=elapsed_ms,
            distance_m=distance_m,
        )

    def should_accept(self, candidate: PositionValue) -> bool:
        """True if ``candidate`` passes the gate."""
        decision = self.evaluate(candidate)
        logger.debug(
            f"Gate decision for {candidate}: accepted={decision.accepted} "
            f"reason={decision.reason} elapsed_ms={decision.elapsed_ms} "
            f"distance_m={decision.distance_m}"
        )
        return decision.accepted

    def accept(self, candidate: PositionValue) -> PositionValue:
        """Make ``candidate`` the current position and return it.

        The former current position is kept as ``previous``.
        """
        self._previous = self._current
        self._current = candidate
        return candidate

    def reset(self) -> None:
        """Forget all positions; the next fix is treated as the first."""
        self._current = None
        self._previous = None

    def __str__(self) -> str:
        if self._current is None:
            return "PositionGate: No position data"
        return f"PositionGate: {self._current}"
