"""TrackingReplayProcessor Implementation

This module implements the ModuleProcessor for the address tracker. It replays
a recorded journey (a JSON file of location fixes, each paired with the
Nominatim reverse-geocoding response recorded for it) through a complete
TrackingSession, and reports the resulting announcements and final address.

Replay file format::

    {
      "fixes": [
        {"fix": {"latitude": -23.55, "longitude": -46.63, "accuracy": 8,
                 "timestamp": 1700000000000},
         "response": {"address": {"road": "Rua Augusta", ...}}},
        ...
      ]
    }

A ``response`` of ``null`` or one holding an ``error`` key stands for a
failed geocode.
"""

import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from src.config.config_loader import ConfigLoader
from src.exceptions import TrackerGeocodingError, TrackerProcessingError, TrackerValidationError
from src.interfaces.module_processor import ModuleProcessor, ProcessingResult, ModuleStatus
from src.utils.logging_setup import log_performance
from ..extraction.address_extractor import AddressExtractor, CachingAddressExtractor
from ..models.position_value import PositionValue
from ..models.standardized_address import StandardizedAddress
from ..models.tracking_config import TrackingConfig
from ..notifications.subscribers import LoggingChangeSubscriber
from ..position.position_gate import PositionGate
from .tracking_session import FixOutcome, TrackingSession

logger = logging.getLogger(__name__)

MODULE_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "tracker_config.json"

ReplayEntry = Tuple[PositionValue, Optional[Mapping[str, Any]]]


class TrackingReplayProcessor(ModuleProcessor):
    """Address tracker processor driven by a recorded journey.

    ``process(dry_run=True)`` only runs the fixes through a PositionGate, so
    nothing is geocoded and nothing is announced. ``process(dry_run=False)``
    runs the full session: gate, replayed geocoder, change detection and the
    announcement subscriber.
    """

    def __init__(self,
                 config_loader: ConfigLoader,
                 replay_path: Optional[str] = None,
                 environment: str = "development"):
        """Initialize the replay processor.

        Args:
            config_loader: ConfigLoader instance providing access to framework configuration
            replay_path: Path to the replay JSON file
            environment: Environment whose tracking settings are used
        """
        self.config_loader = config_loader
        self.replay_path = Path(replay_path) if replay_path else None
        self.environment = environment
        self._last_run: Optional[datetime] = None
        self._module_config: Optional[Dict[str, Any]] = None

        logger.info(f"TrackingReplayProcessor initialized for environment '{environment}'")

    def _load_module_config(self) -> Dict[str, Any]:
        """Load module-specific configuration from tracker_config.json.

        Raises:
            FileNotFoundError: If configuration file is not found
            ValueError: If configuration file is invalid JSON
        """
        try:
            with open(MODULE_CONFIG_PATH, 'r', encoding='utf-8') as f:
                config_data = json.load(f)

            logger.debug(f"Loaded module configuration from {MODULE_CONFIG_PATH}")
            return config_data

        except FileNotFoundError:
            logger.error(f"Module configuration file not found: {MODULE_CONFIG_PATH}")
            raise
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in configuration file {MODULE_CONFIG_PATH}: {e}")
            raise ValueError(f"Invalid JSON in configuration file: {e}")

    def _get_module_config(self) -> Dict[str, Any]:
        if self._module_config is None:
            self._module_config = self._load_module_config()
        return self._module_config

    def validate_configuration(self) -> bool:
        """Validate framework and module configuration.

        Returns:
            bool: True if the tracking settings build a valid TrackingConfig
                and the module announcements are well formed
        """
        try:
            TrackingConfig.from_config_loader(self.config_loader, self.environment)

            announcements = self._get_module_config().get("announcements", {})
            if not isinstance(announcements, dict):
                logger.error("Module configuration 'announcements' must be an object")
                return False

            for field_name, template in announcements.items():
                if not isinstance(template, str) or "{current}" not in template:
                    logger.error(f"Announcement template for '{field_name}' must contain {{current}}")
                    return False

            return True

        except Exception as e:
            logger.error(f"Configuration validation failed: {e}")
            return False

    @log_performance
    def process(self, dry_run: bool = False) -> ProcessingResult:
        """Replay the recorded journey.

        Args:
            dry_run: If True, only evaluate the position gate

        Returns:
            ProcessingResult: Fix counts, outcome counters, announcements and
                the final address in ``metadata``
        """
        start_time = datetime.now()

        try:
            logger.info(f"Starting replay of {self.replay_path} (dry_run={dry_run})")

            if not self.validate_configuration():
                return ProcessingResult(
                    success=False,
                    records_processed=0,
                    errors=["Configuration validation failed"],
                    metadata={"dry_run": dry_run},
                    execution_time=0.0
                )

            entries, invalid_fixes = self._load_replay()
            tracking_config = TrackingConfig.from_config_loader(self.config_loader, self.environment)

            if dry_run:
                metadata = self._evaluate_gate(entries, tracking_config)
            else:
                metadata = asyncio.run(self._replay(entries, tracking_config))

            metadata.update({
                "dry_run": dry_run,
                "environment": self.environment,
                "replay_file": str(self.replay_path),
                "invalid_fixes": len(invalid_fixes),
            })

            self._last_run = datetime.now()
            execution_time = (self._last_run - start_time).total_seconds()

            logger.info(
                f"Replay completed: {len(entries)} fixes, {metadata['accepted']} accepted, "
                f"{metadata['rejected']} rejected in {execution_time:.2f}s"
            )

            return ProcessingResult(
                success=True,
                records_processed=len(entries),
                errors=invalid_fixes,
                metadata=metadata,
                execution_time=execution_time
            )

        except Exception as e:
            execution_time = (datetime.now() - start_time).total_seconds()
            logger.error(f"Replay failed: {e}")

            return ProcessingResult(
                success=False,
                records_processed=0,
                errors=[str(e)],
                metadata={"dry_run": dry_run, "error_occurred_at": datetime.now().isoformat()},
                execution_time=execution_time
            )

    def _load_replay(self) -> Tuple[List[ReplayEntry], List[str]]:
        """Read and validate the replay file.

        Malformed fixes are skipped and reported; a missing or unreadable
        file fails the whole replay.

        Returns:
            Tuple of (valid entries in file order, error messages for skipped fixes)

        Raises:
            TrackerProcessingError: If the file is missing or not a replay document
        """
        if self.replay_path is None:
            raise TrackerProcessingError("No replay file given")

        try:
            with open(self.replay_path, 'r', encoding='utf-8') as f:
                document = json.load(f)
        except FileNotFoundError:
            raise TrackerProcessingError(
                "Replay file not found", {"replay_file": str(self.replay_path)}
            )
        except json.JSONDecodeError as e:
            raise TrackerProcessingError(
                f"Invalid JSON in replay file: {e}", {"replay_file": str(self.replay_path)}
            )

        records = document.get("fixes") if isinstance(document, dict) else document
        if not isinstance(records, list):
            raise TrackerProcessingError(
                "Replay file must contain a list of fixes", {"replay_file": str(self.replay_path)}
            )

        entries: List[ReplayEntry] = []
        invalid: List[str] = []

        for index, record in enumerate(records):
            if not isinstance(record, dict) or "fix" not in record:
                invalid.append(f"Fix {index}: entry has no 'fix' object")
                continue
            try:
                position = PositionValue.from_raw_fix(record["fix"])
            except TrackerValidationError as e:
                logger.warning(f"Skipping invalid fix {index}: {e}")
                invalid.append(f"Fix {index}: {e}")
                continue
            entries.append((position, record.get("response")))

        logger.debug(f"Loaded {len(entries)} fixes from {self.replay_path}")
        return entries, invalid

    def _evaluate_gate(self, entries: List[ReplayEntry], config: TrackingConfig) -> Dict[str, Any]:
        gate = PositionGate.from_config(config)
        accepted = 0

        for position, _ in entries:
            if gate.should_accept(position):
                gate.accept(position)
                accepted += 1

        return {
            "accepted": accepted,
            "rejected": len(entries) - accepted,
            "outcomes": {},
            "announcements": [],
            "final_address": None,
        }

    @staticmethod
    def _accepted_count(outcomes: Dict[str, int], submitted: int) -> int:
        """Fixes the gate accepted and the session did not drop.

        A queued fix is counted again under the outcome of its geocode, so
        the count is derived from the fixes that were turned away.
        """
        return submitted - outcomes[FixOutcome.REJECTED.value] - outcomes[FixOutcome.DROPPED.value]

    async def _replay(self, entries: List[ReplayEntry], config: TrackingConfig) -> Dict[str, Any]:
        extractor = CachingAddressExtractor(AddressExtractor(self._source_keys()))
        recorded: Dict[PositionValue, Optional[Mapping[str, Any]]] = {}

        def geocode(position: PositionValue) -> StandardizedAddress:
            response = recorded.get(position)
            if not response or "error" in response:
                raise TrackerGeocodingError(
                    "Recorded geocode failed",
                    {"timestamp": position.timestamp,
                     "error": (response or {}).get("error", "no response")}
                )
            return extractor.extract(response)

        session = TrackingSession.from_config(config, geocode)
        subscriber = LoggingChangeSubscriber(self._get_module_config().get("announcements"))
        session.coordinator.hub.subscribe_stateful(subscriber)

        for position, response in entries:
            recorded[position] = response
            await session.submit(position)

        await session.drain()

        outcomes = session.stats
        final_address = session.coordinator.current_address()

        return {
            "accepted": self._accepted_count(outcomes, len(entries)),
            "rejected": outcomes["rejected"],
            "outcomes": outcomes,
            "announcements": list(subscriber.announcements),
            "final_address": final_address.full_address() if final_address else None,
            "extraction_cache_hit_ratio": extractor.store.stats.get_hit_ratio(),
        }

    def _source_keys(self) -> Optional[Dict[str, List[str]]]:
        try:
            return self.config_loader.get_source_keys()
        except Exception as e:
            logger.warning(f"Using default address source keys: {e}")
            return None

    def get_status(self) -> ModuleStatus:
        """Get current module processing status.

        Returns:
            ModuleStatus: Current module status and health information
        """
        is_configured = self.validate_configuration()
        health_check_result = is_configured and self._health_check()

        return ModuleStatus(
            module_name="address_tracker",
            is_configured=is_configured,
            last_run=self._last_run,
            status="ready" if health_check_result else "error",
            health_check=health_check_result
        )

    def _health_check(self) -> bool:
        """Check that the field mapping and the replay file are accessible."""
        try:
            if not self.config_loader.load_field_mapping():
                logger.debug("Health check failed: field mapping not accessible")
                return False
        except Exception as e:
            logger.debug(f"Health check failed: field mapping error: {e}")
            return False

        if self.replay_path is not None and not self.replay_path.exists():
            logger.debug(f"Health check failed: replay file {self.replay_path} not found")
            return False

        logger.debug("Health check passed")
        return True
