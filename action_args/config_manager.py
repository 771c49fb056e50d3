"""
Configuration management for the action argument engine.

This module provides configuration loading with support for:
- Environment variables
- Configuration files (YAML/JSON)
- Configuration validation
- Schema declaration files

Configuration is read once at startup. Schemas registered from it are
frozen with the registry, so there is no hot-reloading.
"""

import os
import json
import yaml
from pathlib import Path
from typing import Any, Dict, Optional, Union, List, Tuple
from pydantic import BaseModel, ValidationError, Field, field_validator

from .coercion import DEFAULT_TRUE_TOKENS, DEFAULT_FALSE_TOKENS
from .declarations import Argument, arguments_from_dict
from .errors import ConfigError, ConfigErrorKind


class EngineSettings(BaseModel):
    """Pydantic model for engine configuration validation."""
    raise_on_error_default: bool = True
    bool_true_tokens: List[str] = Field(default_factory=lambda: list(DEFAULT_TRUE_TOKENS))
    bool_false_tokens: List[str] = Field(default_factory=lambda: list(DEFAULT_FALSE_TOKENS))
    log_level: str = "INFO"
    schema_file: Optional[str] = None

    @field_validator("bool_true_tokens", "bool_false_tokens")
    @classmethod
    def _tokens_not_empty(cls, tokens: List[str]) -> List[str]:
        cleaned = [token.strip().lower() for token in tokens if token.strip()]
        if not cleaned:
            raise ValueError("at least one token is required")
        return cleaned

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, level: str) -> str:
        level = level.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level {level}")
        return level


def _split_tokens(value: str) -> List[str]:
    return [token.strip() for token in value.split(',')]


def _parse_bool(value: str) -> bool:
    return value.lower() in ['true', '1', 'yes']


def load_config_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a mapping from a YAML or JSON file."""
    path = Path(path)
    try:
        with open(path, 'r') as f:
            if path.suffix.lower() in ['.yml', '.yaml']:
                return yaml.safe_load(f) or {}
            elif path.suffix.lower() == '.json':
                return json.load(f)
            else:
                raise ValueError(f"Unsupported configuration file format: {path.suffix}")
    except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise ValueError(f"Failed to load configuration file {path}: {e}")


class ConfigManager:
    """
    Configuration manager merging a config file with environment variables.
    """

    ENV_MAPPINGS = {
        'ACTION_ARGS_RAISE_ON_ERROR': ('raise_on_error_default', _parse_bool),
        'ACTION_ARGS_BOOL_TRUE_TOKENS': ('bool_true_tokens', _split_tokens),
        'ACTION_ARGS_BOOL_FALSE_TOKENS': ('bool_false_tokens', _split_tokens),
        'ACTION_ARGS_LOG_LEVEL': ('log_level', str),
        'ACTION_ARGS_SCHEMA_FILE': ('schema_file', str),
    }

    def __init__(self, config_file: Optional[Union[str, Path]] = None):
        """
        Initialize the configuration manager.

        Args:
            config_file: Path to configuration file (YAML or JSON)
        """
        self.config_file_path = Path(config_file) if config_file else None
        self._config: Optional[EngineSettings] = None
        self.load_configuration()

    def load_configuration(self):
        """Load configuration from config file and environment variables."""
        config_dict = {}

        if self.config_file_path and self.config_file_path.exists():
            config_dict = load_config_file(self.config_file_path)

        config_dict = self._load_environment_variables(config_dict)

        try:
            self._config = EngineSettings(**config_dict)
        except ValidationError as e:
            raise ValueError(f"Configuration validation failed: {e}")

    def _load_environment_variables(self, config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """Override configuration values from environment variables."""
        for env_var, (key, type_converter) in self.ENV_MAPPINGS.items():
            env_value = os.getenv(env_var)
            if env_value is not None:
                try:
                    config_dict[key] = type_converter(env_value)
                except (ValueError, TypeError) as e:
                    raise ValueError(f"Invalid value for environment variable {env_var}: {env_value} ({e})")
        return config_dict

    @property
    def config(self) -> EngineSettings:
        """Get the current configuration."""
        if self._config is None:
            raise RuntimeError("Configuration not loaded")
        return self._config


# Global configuration manager instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Get the global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        # Look for config file in common locations
        config_paths = [
            Path("action_args.yml"),
            Path("action_args.yaml"),
            Path("action_args.json"),
        ]

        config_file = None
        for path in config_paths:
            if path.exists():
                config_file = path
                break

        _config_manager = ConfigManager(config_file)

    return _config_manager


def set_config_manager(config_manager: Optional[ConfigManager]):
    """Set the global configuration manager instance."""
    global _config_manager
    _config_manager = config_manager


def load_schema_file(path: Union[str, Path]) -> List[Tuple[str, Tuple[Argument, ...], Optional[bool]]]:
    """
    Read schema declarations from a YAML or JSON file.

    Expected format:
    {
      "action_name": {
          "raise_on_error": bool,         # optional
          "arguments": {name: spec, ...}  # see declarations.argument_from_dict
      }, ...
    }

    Returns:
        List of (action, arguments, raise_on_error) in file order
    """
    content = load_config_file(path)
    if not isinstance(content, dict):
        raise ConfigError(ConfigErrorKind.INVALID_DECLARATION,
                          f"schema file {path} must contain a mapping of actions")

    declarations = []
    for action, body in content.items():
        body = body or {}
        if not isinstance(body, dict):
            raise ConfigError(ConfigErrorKind.INVALID_DECLARATION,
                              "action declaration must be a mapping", action)
        unknown = set(body) - {"raise_on_error", "arguments"}
        if unknown:
            raise ConfigError(ConfigErrorKind.INVALID_DECLARATION,
                              f"unknown options: {', '.join(sorted(unknown))}", action)
        raise_on_error = body.get("raise_on_error")
        if raise_on_error is not None and not isinstance(raise_on_error, bool):
            raise ConfigError(ConfigErrorKind.INVALID_DECLARATION,
                              f"raise_on_error must be true or false, got {raise_on_error!r}", action)
        arguments = arguments_from_dict(body.get("arguments") or {})
        declarations.append((action, arguments, raise_on_error))
    return declarations
