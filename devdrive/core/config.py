#!/usr/bin/env python3
"""
Configuration management for devdrive.

This module handles loading, validation, and access to the settings around
provisioning: the PowerShell backend, the environment sink and logging. The
dev drive itself (size, path, filesystem) is fixed and not configurable.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .exceptions import ConfigError


class ConfigManager:
    """
    Manages configuration for devdrive.

    Configuration is loaded with the following precedence (highest to lowest):
    CLI overrides, environment variables, configuration file, defaults.

    Attributes:
        config_file (Optional[str]): Path to YAML configuration file
        cli_args (Dict[str, Any]): Overrides keyed by dotted path
        config (Dict[str, Any]): Merged configuration
        logger (logging.Logger): Logger instance
    """

    DEFAULT_CONFIG = {
        "powershell": {
            "executable": "powershell",
            "step_timeout": 600
        },
        "environment": {
            "file": None
        },
        "logging": {
            "level": "INFO",
            "file": None
        }
    }

    # Environment variable mapping; numeric settings name their converter
    ENV_MAPPING = {
        "GITHUB_ENV": ["environment", "file"],
        "DEVDRIVE_POWERSHELL": ["powershell", "executable"],
        "DEVDRIVE_STEP_TIMEOUT": ["powershell", "step_timeout", float],
        "DEVDRIVE_LOG_LEVEL": ["logging", "level"],
        "DEVDRIVE_LOG_FILE": ["logging", "file"]
    }

    LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

    def __init__(
        self,
        config_file: Optional[str] = None,
        cli_args: Optional[Dict[str, Any]] = None
    ):
        self.config_file = config_file
        self.cli_args = cli_args or {}
        self.config = {}
        self.logger = logging.getLogger("config")

    def load(self) -> Dict[str, Any]:
        """
        Load and merge configuration from all sources.

        Returns:
            Dict[str, Any]: The merged configuration

        Raises:
            ConfigError: If the configuration file cannot be parsed
        """
        self.config = self._deep_copy(self.DEFAULT_CONFIG)

        if self.config_file:
            self._merge_config(self.config, self._load_from_file(self.config_file))

        self._merge_config(self.config, self._load_from_env())
        self._merge_config(self.config, self._load_from_cli())

        self._substitute_env_vars(self.config)

        self.logger.debug(f"Loaded configuration: {self.config}")
        return self.config

    def _load_from_file(self, file_path: str) -> Dict[str, Any]:
        """
        Load configuration from a YAML file.

        Raises:
            ConfigError: If the file cannot be read or parsed
        """
        path = Path(file_path)
        if not path.exists():
            self.logger.warning(f"Configuration file not found: {file_path}")
            return {}

        try:
            with open(path, "r") as f:
                config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Error loading configuration from {file_path}: {e}")

        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ConfigError(f"Invalid configuration format in {file_path}")
        return config

    def _load_from_env(self) -> Dict[str, Any]:
        config = {}

        for env_var, path in self.ENV_MAPPING.items():
            value = os.environ.get(env_var)
            if value is None or value == "":
                continue
            if callable(path[-1]):
                *path, convert = path
                try:
                    value = convert(value)
                except ValueError:
                    # Left as text so validate() reports it
                    pass
            self._set_path(config, path, value)

        return config

    def _load_from_cli(self) -> Dict[str, Any]:
        """Turn dotted-path overrides such as ``powershell.step_timeout`` into a nested dict."""
        config = {}

        for key, value in self.cli_args.items():
            if value is not None:
                self._set_path(config, key.split("."), value)

        return config

    @staticmethod
    def _set_path(config: Dict[str, Any], path, value: Any) -> None:
        current = config
        for key in path[:-1]:
            current = current.setdefault(key, {})
        current[path[-1]] = value

    def _merge_config(self, target: Dict[str, Any], source: Dict[str, Any]) -> None:
        """
        Recursively merge source configuration into target.

        Args:
            target: Target configuration to merge into
            source: Source configuration to merge from
        """
        for key, value in source.items():
            if isinstance(value, dict) and key in target and isinstance(target[key], dict):
                self._merge_config(target[key], value)
            else:
                target[key] = value

    def _substitute_env_vars(self, config: Dict[str, Any]) -> None:
        """
        Recursively substitute environment variables in string values.

        Environment variables should be in the format ${VAR_NAME} or ${VAR_NAME:-default}.
        """
        pattern = r'\${([A-Za-z0-9_]+)(?::-([^}]*))?}'

        def replace_env_var(match):
            var_name = match.group(1)
            default = match.group(2)
            return os.environ.get(var_name, default if default is not None else '')

        for key, value in config.items():
            if isinstance(value, dict):
                self._substitute_env_vars(value)
            elif isinstance(value, str):
                config[key] = re.sub(pattern, replace_env_var, value)

    def _deep_copy(self, obj: Any) -> Any:
        if isinstance(obj, dict):
            return {k: self._deep_copy(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [self._deep_copy(item) for item in obj]
        else:
            return obj

    def validate(self) -> bool:
        """
        Validate the loaded configuration.

        Returns:
            bool: True if the configuration is valid, False otherwise
        """
        valid = True

        if not self.get("powershell.executable"):
            self.logger.error("PowerShell executable is required")
            valid = False

        timeout = self.get("powershell.step_timeout")
        try:
            if float(timeout) <= 0:
                raise ValueError
        except (TypeError, ValueError):
            self.logger.error(f"Invalid step timeout: {timeout!r}")
            valid = False

        level = str(self.get("logging.level", "")).upper()
        if level not in self.LOG_LEVELS:
            self.logger.error(f"Invalid log level: {level!r}")
            valid = False

        return valid

    def get(self, path: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            path: Path to the configuration value (e.g., "powershell.executable")
            default: Default value if the path doesn't exist

        Returns:
            Any: The configuration value or default
        """
        current = self.config

        for part in path.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default

        return current
