"""Address Tracker Module Entry Point

This module serves as the command-line interface for replaying a recorded
journey through the address tracker.

Usage:
    python -m modules.address_tracker.main --replay journey.json --environment development
"""

import argparse
import sys
from typing import Optional

from src.config.config_loader import ConfigLoader
from src.exceptions import TrackerConfigurationError
from src.utils.logging_setup import setup_logging, get_logger
from .processor.tracking_replay_processor import TrackingReplayProcessor


def main(args: Optional[list] = None) -> int:
    """Main entry point for the address tracker module.

    Args:
        args: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = argparse.ArgumentParser(
        description="Address Tracker - Replay a recorded journey and report address changes"
    )
    parser.add_argument(
        "--replay",
        required=True,
        help="JSON file of recorded fixes and geocoder responses"
    )
    parser.add_argument(
        "--environment",
        choices=["development", "production"],
        default="development",
        help="Environment to run against (default: development)"
    )
    parser.add_argument(
        "--config-dir",
        default=None,
        help="Directory holding environment_config.json (default: config/)"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only evaluate the position gate; no geocoding or announcements"
    )

    parsed_args = parser.parse_args(args)
    config_loader = ConfigLoader(parsed_args.config_dir)

    try:
        logging_config = config_loader.get_logging_config(parsed_args.environment)
    except TrackerConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(
        environment=parsed_args.environment,
        log_level=logging_config.get("level", "INFO"),
        log_dir=logging_config.get("log_dir"),
    )
    logger = get_logger(__name__)

    processor = TrackingReplayProcessor(
        config_loader,
        replay_path=parsed_args.replay,
        environment=parsed_args.environment,
    )
    result = processor.process(dry_run=parsed_args.dry_run)

    if not result.success:
        for error in result.errors:
            logger.error(error)
        print(f"Replay failed: {'; '.join(result.errors)}")
        return 1

    metadata = result.metadata
    print(f"Fixes replayed: {result.records_processed}")
    print(f"Accepted: {metadata['accepted']}  Rejected: {metadata['rejected']}")
    for outcome, count in metadata.get("outcomes", {}).items():
        if count:
            print(f"  {outcome}: {count}")
    for line in metadata.get("announcements", []):
        print(f"> {line}")
    if metadata.get("final_address"):
        print(f"Final address: {metadata['final_address']}")
    for error in result.errors:
        print(f"Skipped: {error}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
