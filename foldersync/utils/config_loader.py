"""Configuration loader for the folder synchronization tool."""

import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
import yaml
from pydantic import ValidationError

from foldersync.errors import ConfigurationError
from foldersync.models.config import AppConfig

log = structlog.stdlib.get_logger()

CONFIG_DIR = Path(__file__).parent.parent / "config"


class ConfigLoader:
    """Loads and validates configuration from YAML files, environment variables and overrides."""

    def __init__(self, config_dir: Path | None = None) -> None:
        self.env_var_pattern = re.compile(r"\$\{([^}]+)\}")
        self.config_dir = config_dir or CONFIG_DIR

    def load_config(
        self,
        config_path: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> AppConfig:
        """Load configuration from YAML with environment substitution and overrides.

        Values in overrides (typically command-line arguments) win over the file.
        Keys with a None value are ignored so unset flags keep the file value.

        Args:
            config_path: Path to the configuration YAML file. If None, the
                default file is used when one exists.
            overrides: Nested dict of values to apply on top of the file

        Returns:
            AppConfig: Validated application configuration

        Raises:
            ConfigurationError: If the file is unreadable or validation fails
        """
        if config_path is None:
            config_path = self._get_default_config_path()

        config_dict: Dict[str, Any] = {}
        if config_path is not None:
            log.info("loading_configuration", config_path=config_path)
            config_dict = self._substitute_env_vars(self._load_yaml_file(config_path))

        if overrides:
            config_dict = self._merge(config_dict, overrides)

        try:
            app_config = AppConfig(**config_dict)
        except ValidationError as e:
            log.error("configuration_validation_failed", error=str(e))
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

        log.debug("configuration_loaded", source=app_config.sync.source_path)
        return app_config

    def _get_default_config_path(self) -> str | None:
        """Return config/<FOLDERSYNC_ENV>.yaml, config/default.yaml, or None."""
        env = os.getenv("FOLDERSYNC_ENV", "default")
        config_file = self.config_dir / f"{env}.yaml"

        if not config_file.exists():
            config_file = self.config_dir / "default.yaml"

        if not config_file.exists():
            log.debug("no_default_configuration", config_dir=str(self.config_dir))
            return None

        return str(config_file)

    def _load_yaml_file(self, config_path: str) -> Dict[str, Any]:
        """Load YAML configuration file.

        Raises:
            ConfigurationError: If file cannot be read or parsed
        """
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_dict = yaml.safe_load(f)
        except FileNotFoundError:
            raise ConfigurationError(f"Configuration file not found: {config_path}")
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse YAML file {config_path}: {e}")
        except OSError as e:
            raise ConfigurationError(f"Failed to load configuration file {config_path}: {e}")

        if config_dict is None:
            return {}
        if not isinstance(config_dict, dict):
            raise ConfigurationError(f"Configuration file must contain a mapping: {config_path}")

        log.debug("yaml_file_loaded", config_path=config_path)
        return config_dict

    def _merge(self, base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
        merged = dict(base)
        for key, value in overrides.items():
            if value is None:
                continue
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = self._merge(merged[key], value)
            elif isinstance(value, dict):
                merged[key] = self._merge({}, value)
            else:
                merged[key] = value
        return merged

    def _substitute_env_vars(self, config: Any) -> Any:
        """Recursively substitute ${VAR_NAME} references with environment values."""
        if isinstance(config, dict):
            return {key: self._substitute_env_vars(value) for key, value in config.items()}
        elif isinstance(config, list):
            return [self._substitute_env_vars(item) for item in config]
        elif isinstance(config, str):
            return self._substitute_env_var_in_string(config)
        else:
            return config

    def _substitute_env_var_in_string(self, value: str) -> str:
        """Substitute environment variables in a string.

        Raises:
            ConfigurationError: If a referenced environment variable is not set
        """
        for var_name in self.env_var_pattern.findall(value):
            env_value = os.getenv(var_name)
            if env_value is None:
                raise ConfigurationError(f"Required environment variable not set: {var_name}")
            value = value.replace(f"${{{var_name}}}", env_value)

        return value
