#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SnarlKit v0.1.0

Configuration parser — YAML loading on top of the schema defaults.

Author: SnarlKit Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import copy
import os
import re
import yaml
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .schema import DEFAULT_CONFIG, merge_configs, validate_config

# ${NAME} or ${NAME:-fallback}
_ENV_REFERENCE = re.compile(r'\$\{([^}:]+)(?::-(.*?))?\}')


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


def substitute_env_vars(value: Any) -> Any:
    """
    Expand environment references in every string of a nested config value.

    An unset variable without a fallback expands to the empty string.
    """
    if isinstance(value, dict):
        return {key: substitute_env_vars(item) for key, item in value.items()}
    if isinstance(value, list):
        return [substitute_env_vars(item) for item in value]
    if isinstance(value, str):
        return _ENV_REFERENCE.sub(
            lambda m: os.environ.get(m.group(1), m.group(2) or ''), value
        )
    return value


def _read_yaml_mapping(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    try:
        with open(path, 'r') as f:
            loaded = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML in config file {path}: {e}")

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigValidationError(
            f"Config file {path} must contain a mapping at top level, "
            f"got {type(loaded).__name__}"
        )
    return loaded


class ConfigParser:
    """
    Layered SnarlKit configuration.

    Values come from DEFAULT_CONFIG, then an optional YAML file (with
    ${VAR} / ${VAR:-default} expansion), then dotted-key overrides.
    """

    def __init__(self, config_file: Optional[Union[str, Path]] = None):
        """
        Args:
            config_file: Path to YAML configuration file (optional)

        Raises:
            FileNotFoundError: If config_file does not exist
            ConfigValidationError: If the file is not a YAML mapping
        """
        self.config_file = Path(config_file) if config_file else None
        self._config: Dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)

        if self.config_file:
            user_config = substitute_env_vars(_read_yaml_mapping(self.config_file))
            self._config = merge_configs(self._config, user_config)

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'ConfigParser':
        """Build a parser from an in-memory config layered over the defaults."""
        parser = cls()
        parser._config = merge_configs(parser._config, copy.deepcopy(config))
        return parser

    def set(self, key: str, value: Any):
        """Set one value by dotted key, creating sections as needed."""
        *sections, leaf = key.split('.')
        target = self._config
        for section in sections:
            if not isinstance(target.get(section), dict):
                target[section] = {}
            target = target[section]
        target[leaf] = value

    def merge_overrides(self, overrides: Dict[str, Any]):
        """
        Apply overrides keyed by dotted path (e.g. 'genotyping.ploidy').
        """
        for key, value in overrides.items():
            self.set(key, value)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Look up a value by dotted key (e.g. 'traversals.max_depth').

        Returns:
            The value, or default when any part of the key is missing
        """
        value: Any = self._config
        for part in key.split('.'):
            if not isinstance(value, dict) or part not in value:
                return default
            value = value[part]
        return value

    def section(self, name: str) -> Dict[str, Any]:
        return self._config.get(name, {})

    def get_traversal_config(self) -> Dict[str, Any]:
        return self.section('traversals')

    def get_genotyping_config(self) -> Dict[str, Any]:
        return self.section('genotyping')

    def get_execution_config(self) -> Dict[str, Any]:
        return self.section('execution')

    def get_logging_config(self) -> Dict[str, Any]:
        """Logging settings live under output.logging."""
        return self.section('output').get('logging', {})

    def to_dict(self) -> Dict[str, Any]:
        """Deep copy of the effective configuration."""
        return copy.deepcopy(self._config)

    def save(self, output_path: Union[str, Path]):
        """Write the effective configuration as YAML."""
        with open(output_path, 'w') as f:
            yaml.dump(self._config, f, default_flow_style=False, sort_keys=False)

    def validate(self) -> bool:
        """
        Validate configuration against the schema.

        Returns:
            True if valid

        Raises:
            ConfigValidationError: If validation fails
        """
        errors = validate_config(self._config)
        if errors:
            raise ConfigValidationError(
                "Invalid configuration:\n  " + "\n  ".join(errors)
            )
        return True

    def __repr__(self) -> str:
        return f"ConfigParser(config_file={self.config_file})"

# SnarlKit v0.1.0
# Any usage is subject to this software's license.
