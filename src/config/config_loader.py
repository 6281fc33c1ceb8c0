"""
Configuration loader for the Address Tracker.

This module provides the ConfigLoader class that handles loading and validating
JSON configuration files for multi-environment deployments.
"""

import json
from pathlib import Path
from typing import Dict, Any, List, Optional
from functools import lru_cache

from ..exceptions import TrackerConfigurationError, TrackerValidationError
from ..utils import get_logger


# Keys every environment block must provide once shared values are merged in
REQUIRED_ENVIRONMENT_KEYS = ["tracking", "cache", "logging"]

# Keys that merge key-by-key instead of being replaced wholesale
MERGEABLE_SECTIONS = ["tracking", "cache", "logging"]


class ConfigLoader:
    """
    Configuration loader and validator for the address tracker.

    This class handles loading environment-specific configuration from JSON files,
    validating required sections, and providing access to tracking thresholds,
    cache sizing and the address field mapping.
    """

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize the configuration loader.

        Args:
            config_dir: Directory containing configuration files (defaults to 'config/')
        """
        self.logger = get_logger(__name__)
        self.config_dir = Path(config_dir) if config_dir else Path("config")

    @lru_cache(maxsize=2)
    def load_environment_config(self, environment: str) -> Dict[str, Any]:
        """
        Load configuration for a specific environment.

        Args:
            environment: Environment name (development/production)

        Returns:
            Dictionary containing environment-specific configuration merged with shared config

        Raises:
            TrackerConfigurationError: If configuration cannot be loaded or validated
        """
        try:
            env_config_path = self.config_dir / "environment_config.json"

            if not env_config_path.exists():
                raise TrackerConfigurationError(
                    f"Environment configuration file not found: {env_config_path}"
                )

            with open(env_config_path, 'r', encoding='utf-8') as f:
                config_data = json.load(f)

            env_config = self._merge_shared_config(config_data, environment)
            self._validate_environment_config(env_config, environment)

            env_config["_validation"] = config_data.get("validation", {})

            self.logger.info(f"Loaded configuration for environment: {environment}")
            return env_config

        except json.JSONDecodeError as e:
            raise TrackerConfigurationError(
                f"Invalid JSON in environment configuration: {str(e)}"
            )
        except TrackerConfigurationError:
            raise
        except Exception as e:
            raise TrackerConfigurationError(
                f"Failed to load environment configuration: {str(e)}",
                {"environment": environment}
            )

    @lru_cache(maxsize=1)
    def load_field_mapping(self) -> Dict[str, Any]:
        """
        Load the address field mapping configuration.

        The mapping lists, for each standardized address field, the ordered
        geocoder response keys it is read from and whether changes to it are
        tracked.

        Returns:
            Dictionary containing field mapping configuration

        Raises:
            TrackerConfigurationError: If field mapping cannot be loaded or validated
        """
        try:
            field_mapping_path = self.config_dir / "address_field_mapping.json"

            if not field_mapping_path.exists():
                raise TrackerConfigurationError(
                    f"Field mapping configuration file not found: {field_mapping_path}"
                )

            with open(field_mapping_path, 'r', encoding='utf-8') as f:
                mapping_data = json.load(f)

            self._validate_field_mapping(mapping_data)

            self.logger.info("Loaded address field mapping configuration")
            return mapping_data

        except json.JSONDecodeError as e:
            raise TrackerConfigurationError(
                f"Invalid JSON in field mapping configuration: {str(e)}"
            )
        except TrackerConfigurationError:
            raise
        except Exception as e:
            raise TrackerConfigurationError(
                f"Failed to load field mapping configuration: {str(e)}"
            )

    def get_tracking_config(self, environment: str) -> Dict[str, Any]:
        """
        Get the flattened tracking settings for an environment.

        Combines the ``tracking`` and ``cache`` sections into one dictionary
        using the keys expected by ``TrackingConfig``.

        Args:
            environment: Environment name

        Returns:
            Dictionary of tracking settings
        """
        env_config = self.load_environment_config(environment)
        tracking = dict(env_config["tracking"])
        cache = env_config["cache"]

        if "capacity" in cache:
            tracking["cache_capacity"] = cache["capacity"]
        if "key" in cache:
            tracking["cache_key"] = cache["key"]
        if "expiration_ms" in cache:
            tracking["cache_expiration_ms"] = cache["expiration_ms"]

        return tracking

    def get_logging_config(self, environment: str) -> Dict[str, Any]:
        """
        Get the logging section for an environment.

        Args:
            environment: Environment name

        Returns:
            Dictionary with ``level`` and optional ``log_dir``
        """
        return dict(self.load_environment_config(environment)["logging"])

    def get_tracked_fields(self) -> List[str]:
        """
        Get the names of address fields whose changes are tracked.

        Returns:
            Field names in mapping order
        """
        field_mapping = self.load_field_mapping()
        return [
            name for name, field_config in field_mapping["fields"].items()
            if field_config["tracked"]
        ]

    def get_source_keys(self) -> Dict[str, List[str]]:
        """
        Get the geocoder source keys for every standardized field.

        Returns:
            Mapping of field name to ordered source keys
        """
        field_mapping = self.load_field_mapping()
        return {
            name: list(field_config["source_keys"])
            for name, field_config in field_mapping["fields"].items()
        }

    def _merge_shared_config(self, config_data: Dict[str, Any], environment: str) -> Dict[str, Any]:
        """
        Merge the ``shared`` block into the selected environment block.

        Args:
            config_data: Raw configuration file contents
            environment: Environment name to extract

        Returns:
            Merged environment configuration

        Raises:
            TrackerValidationError: If the environment block is missing
        """
        if "environments" not in config_data:
            raise TrackerValidationError("Missing 'environments' key in configuration")

        if environment not in config_data["environments"]:
            available_envs = list(config_data["environments"].keys())
            raise TrackerValidationError(
                f"Environment '{environment}' not found. Available: {available_envs}"
            )

        env_config = dict(config_data["environments"][environment])
        shared_config = config_data.get("shared", {})

        for key, value in shared_config.items():
            if key in MERGEABLE_SECTIONS and isinstance(value, dict):
                merged = dict(value)
                merged.update(env_config.get(key, {}))
                env_config[key] = merged
            elif key not in env_config:
                env_config[key] = value

        return env_config

    def _validate_environment_config(self, env_config: Dict[str, Any], environment: str) -> None:
        """
        Validate merged environment configuration structure.

        Args:
            env_config: Merged environment configuration
            environment: Environment name being validated

        Raises:
            TrackerValidationError: If configuration is invalid
        """
        for key in REQUIRED_ENVIRONMENT_KEYS:
            if key not in env_config:
                raise TrackerValidationError(
                    f"Missing required key '{key}' in {environment} configuration"
                )

        capacity = env_config["cache"].get("capacity")
        if capacity is not None and (not isinstance(capacity, int) or capacity <= 0):
            raise TrackerValidationError(
                f"Cache capacity must be a positive integer in {environment} configuration",
                {"capacity": capacity}
            )

        expiration_ms = env_config["cache"].get("expiration_ms")
        if expiration_ms is not None and (
                isinstance(expiration_ms, bool) or not isinstance(expiration_ms, int)
                or expiration_ms <= 0):
            raise TrackerValidationError(
                f"Cache expiration_ms must be a positive integer or null in {environment} configuration",
                {"expiration_ms": expiration_ms}
            )

        for threshold in ("min_time_ms", "min_distance_m"):
            value = env_config["tracking"].get(threshold)
            if value is not None and value < 0:
                raise TrackerValidationError(
                    f"Tracking threshold '{threshold}' cannot be negative",
                    {threshold: value}
                )

    def _validate_field_mapping(self, mapping_data: Dict[str, Any]) -> None:
        """
        Validate field mapping configuration structure.

        Args:
            mapping_data: Field mapping data to validate

        Raises:
            TrackerValidationError: If field mapping is invalid
        """
        if "fields" not in mapping_data:
            raise TrackerValidationError("Missing 'fields' key in field mapping")

        for field_name, field_config in mapping_data["fields"].items():
            for key in ("source_keys", "tracked"):
                if key not in field_config:
                    raise TrackerValidationError(
                        f"Missing required key '{key}' in field '{field_name}'"
                    )

            if not isinstance(field_config["source_keys"], list):
                raise TrackerValidationError(
                    f"'source_keys' of field '{field_name}' must be a list"
                )

            if not isinstance(field_config["tracked"], bool):
                raise TrackerValidationError(
                    f"'tracked' of field '{field_name}' must be a boolean"
                )

    def clear_cache(self) -> None:
        """Clear the configuration cache."""
        self.load_environment_config.cache_clear()
        self.load_field_mapping.cache_clear()
        self.logger.info("Configuration cache cleared")
