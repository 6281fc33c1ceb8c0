"""Tracking Session

The asynchronous boundary of the address tracker. A session feeds raw fixes
through its PositionGate, reverse-geocodes accepted fixes through an external
geocoder, and hands results to its ChangeDetectionCoordinator.

Concurrency rules:
- At most one geocode is in flight per session.
- Fixes accepted while a geocode is in flight are handled by the
  InFlightPolicy: LATEST_WINS keeps only the newest one in a single pending
  slot and geocodes it next, and the gate accepts them. DROP discards them
  before the gate sees them, so the in-flight result still applies.
- A result whose position is no longer the gate's current position when the
  geocode completes is stale and is discarded without touching the store.
- Geocoder failures are logged and reported as GEOCODE_FAILED; there is no
  retry here.
"""

import asyncio
import inspect
import logging
from collections import Counter
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from ..models.position_value import PositionValue
from ..models.standardized_address import StandardizedAddress
from ..models.tracking_config import InFlightPolicy, TrackingConfig
from ..position.position_gate import PositionGate
from .change_detection_coordinator import ChangeDetectionCoordinator

logger = logging.getLogger(__name__)

Geocoder = Callable[
    [PositionValue],
    Union[StandardizedAddress, Awaitable[StandardizedAddress]]
]


class FixOutcome(str, Enum):
    """What happened to one submitted fix.

    Values:
        REJECTED: The gate found the movement insignificant
        QUEUED: Held as the pending fix behind an in-flight geocode
        DROPPED: Discarded because a geocode was in flight (DROP policy)
        PROCESSED: Geocoded and handed to the coordinator
        STALE: Geocoded, but a newer fix had been accepted meanwhile
        GEOCODE_FAILED: The geocoder raised; no update this cycle
    """
    REJECTED = "rejected"
    QUEUED = "queued"
    DROPPED = "dropped"
    PROCESSED = "processed"
    STALE = "stale"
    GEOCODE_FAILED = "geocode_failed"


class TrackingSession:
    """One logical tracking session: gate + geocoder + coordinator."""

    def __init__(self,
                 gate: PositionGate,
                 coordinator: ChangeDetectionCoordinator,
                 geocoder: Geocoder,
                 in_flight_policy: InFlightPolicy = InFlightPolicy.LATEST_WINS):
        """Initialize the session.

        Args:
            gate: Position gate owned by this session
            coordinator: Coordinator owned by this session
            geocoder: Callable returning a StandardizedAddress (or an awaitable of one)
            in_flight_policy: Handling of fixes accepted during a geocode
        """
        self.gate = gate
        self.coordinator = coordinator
        self.geocoder = geocoder
        self.in_flight_policy = InFlightPolicy(in_flight_policy)

        self._in_flight = False
        self._pending: Optional[PositionValue] = None
        self._idle = asyncio.Event()
        self._idle.set()
        self._outcomes: Counter = Counter()

    @classmethod
    def from_config(cls, config: TrackingConfig, geocoder: Geocoder) -> "TrackingSession":
        """Build a session and all of its components from a TrackingConfig."""
        return cls(
            gate=PositionGate.from_config(config),
            coordinator=ChangeDetectionCoordinator.from_config(config),
            geocoder=geocoder,
            in_flight_policy=config.in_flight_policy,
        )

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def pending(self) -> Optional[PositionValue]:
        return self._pending

    @property
    def stats(self) -> Dict[str, int]:
        """Outcome counters keyed by FixOutcome value."""
        return {outcome.value: self._outcomes[outcome] for outcome in FixOutcome}

    async def submit_raw(self, raw_fix: Any) -> FixOutcome:
        """Validate a raw fix payload and submit it.

        Raises:
            TrackerValidationError: If the payload is malformed
        """
        return await self.submit(PositionValue.from_raw_fix(raw_fix))

    async def submit(self, position: PositionValue) -> FixOutcome:
        """Offer one fix to the session.

        Returns the outcome for this fix. When this call starts a geocode it
        also works off any fix queued behind it before returning; queued
        fixes are reflected in ``stats``.
        """
        if not self.gate.should_accept(position):
            return self._record(FixOutcome.REJECTED)

        if self._in_flight and self.in_flight_policy is InFlightPolicy.DROP:
            logger.debug(f"Geocode in flight; dropping {position}")
            return self._record(FixOutcome.DROPPED)

        self.gate.accept(position)
        self.coordinator.set_current_position(position)

        if self._in_flight:
            if self._pending is not None:
                logger.debug(f"Replacing pending fix {self._pending} with {position}")
            self._pending = position
            return self._record(FixOutcome.QUEUED)

        return await self._run(position)

    async def drain(self) -> None:
        """Wait until nothing is in flight and nothing is pending."""
        await self._idle.wait()

    async def _run(self, position: PositionValue) -> FixOutcome:
        self._in_flight = True
        self._idle.clear()
        try:
            outcome = await self._process(position)
            while self._pending is not None:
                pending, self._pending = self._pending, None
                await self._process(pending)
        finally:
            self._in_flight = False
            self._idle.set()
        return outcome

    async def _process(self, position: PositionValue) -> FixOutcome:
        try:
            result = self.geocoder(position)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.warning(f"Geocoding failed for {position}: {e}")
            return self._record(FixOutcome.GEOCODE_FAILED)

        if self.gate.current is not position:
            logger.info(
                f"Discarding stale geocode result for fix at {position.timestamp}; "
                f"current fix is {self.gate.current.timestamp if self.gate.current else None}"
            )
            return self._record(FixOutcome.STALE)

        self.coordinator.handle_address(result)
        return self._record(FixOutcome.PROCESSED)

    def _record(self, outcome: FixOutcome) -> FixOutcome:
        self._outcomes[outcome] += 1
        return outcome
