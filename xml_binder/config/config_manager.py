"""
Centralized configuration management for the XML Binder system.

This module provides the ConfigManager class that serves as the single source
of truth for configuration: the eXist-db endpoint and credentials, query
limits, serialization settings and logging level, read from environment
variables and optionally overlaid by a YAML or JSON settings file.
"""

import os
import json
import logging
import dataclasses

from pathlib import Path
from typing import Dict, Any, Optional, Union
from dataclasses import dataclass

import yaml

from .binder_defaults import BinderDefaults
from ..exceptions import ConfigurationError


_TRUE_VALUES = ('true', '1', 'yes', 'on')


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"Environment variable {name} must be an integer, got '{raw}'")


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"Environment variable {name} must be a number, got '{raw}'")


@dataclass
class ExistConfig:
    """eXist-db connection configuration with environment variable support."""
    url: str = BinderDefaults.EXIST_URL
    user: str = BinderDefaults.EXIST_USER
    password: str = BinderDefaults.EXIST_PASSWORD
    request_timeout: Optional[float] = BinderDefaults.REQUEST_TIMEOUT
    max_results: int = BinderDefaults.MAX_RESULTS
    allow_empty_password: bool = False

    def __post_init__(self):
        """Validate connection configuration."""
        if not self.url:
            raise ConfigurationError("eXist-db url cannot be empty")
        if self.max_results <= 0:
            raise ConfigurationError("max_results must be positive")
        if self.request_timeout is not None and self.request_timeout <= 0:
            raise ConfigurationError("request_timeout must be positive when set")

    @property
    def rest_url(self) -> str:
        """Base URL of the REST servlet (e.g., 'http://localhost:8080/exist/rest')."""
        return self.url.rstrip('/') + '/rest'

    @classmethod
    def from_environment(cls) -> 'ExistConfig':
        """Create connection configuration from environment variables."""
        return cls(
            url=os.environ.get('XML_BINDER_EXIST_URL', cls.url),
            user=os.environ.get('XML_BINDER_EXIST_USER', cls.user),
            password=os.environ.get('XML_BINDER_EXIST_PASSWORD', cls.password),
            request_timeout=_env_float('XML_BINDER_REQUEST_TIMEOUT', cls.request_timeout),
            max_results=_env_int('XML_BINDER_MAX_RESULTS', cls.max_results),
            allow_empty_password=_env_bool('XML_BINDER_ALLOW_EMPTY_PASSWORD', cls.allow_empty_password)
        )


@dataclass
class SerializationParameters:
    """Document output settings with environment variable support."""
    pretty_print: bool = BinderDefaults.PRETTY_PRINT
    encoding: str = BinderDefaults.ENCODING

    @classmethod
    def from_environment(cls) -> 'SerializationParameters':
        """Create serialization parameters from environment variables."""
        return cls(
            pretty_print=_env_bool('XML_BINDER_PRETTY_PRINT', cls.pretty_print),
            encoding=os.environ.get('XML_BINDER_ENCODING', cls.encoding)
        )


class ConfigManager:
    """
    Centralized configuration manager serving as single source of truth.

    This class consolidates:
    - eXist-db endpoint, credentials and query limits
    - Serialization settings
    - Logging level
    - Environment variable handling and settings file loading

    Values from a settings file override values taken from the environment.
    """

    def __init__(self, settings_path: Optional[Union[str, Path]] = None):
        """
        Initialize the centralized configuration manager.

        Args:
            settings_path: Optional YAML or JSON settings file to overlay on the environment.
        """
        self.logger = logging.getLogger(__name__)

        # Load configuration from environment variables
        self.exist_config = ExistConfig.from_environment()
        self.serialization_params = SerializationParameters.from_environment()
        self.log_level = os.environ.get('XML_BINDER_LOG_LEVEL', BinderDefaults.LOG_LEVEL).upper()
        self.settings_path: Optional[Path] = None

        if settings_path:
            self.load_settings_file(settings_path)

        self.logger.info(f"ConfigManager initialized for eXist-db at {self.exist_config.url}")

    def get_exist_config(self) -> ExistConfig:
        return self.exist_config

    def get_serialization_parameters(self) -> SerializationParameters:
        return self.serialization_params

    def get_log_level(self) -> str:
        return self.log_level

    def load_settings_file(self, settings_path: Union[str, Path]) -> None:
        """
        Overlay settings from a YAML or JSON file.

        Expected layout (every key optional):

            exist:
              url: http://localhost:8080/exist
              user: admin
              password: secret
              request_timeout: 30
              max_results: 5000
            serialization:
              pretty_print: false
              encoding: UTF-8
            log_level: INFO

        Args:
            settings_path: Path to a .yaml, .yml or .json file

        Raises:
            ConfigurationError: If the file is missing, unreadable or holds unknown keys
        """
        full_path = Path(settings_path)

        if not full_path.exists():
            raise ConfigurationError(f"Settings file not found: {full_path}")

        try:
            with open(full_path, 'r', encoding='utf-8') as file:
                if full_path.suffix.lower() in ['.yaml', '.yml']:
                    settings = yaml.safe_load(file) or {}
                elif full_path.suffix.lower() == '.json':
                    settings = json.load(file)
                else:
                    raise ConfigurationError(f"Unsupported file format: {full_path.suffix}")
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to parse settings file {full_path}: {e}")
        except OSError as e:
            raise ConfigurationError(f"Failed to read settings file {full_path}: {e}")

        if not isinstance(settings, dict):
            raise ConfigurationError(f"Settings file {full_path} must contain a mapping")

        unknown = set(settings) - {'exist', 'serialization', 'log_level'}
        if unknown:
            raise ConfigurationError(f"Unknown settings section(s) in {full_path}: {', '.join(sorted(unknown))}")

        self.exist_config = self._overlay(self.exist_config, settings.get('exist'), 'exist')
        self.serialization_params = self._overlay(self.serialization_params, settings.get('serialization'),
                                                  'serialization')
        if settings.get('log_level'):
            self.log_level = str(settings['log_level']).upper()

        self.settings_path = full_path
        self.logger.info(f"Loaded settings from {full_path}")

    @staticmethod
    def _overlay(current: Any, section: Optional[Dict[str, Any]], section_name: str) -> Any:
        if not section:
            return current
        if not isinstance(section, dict):
            raise ConfigurationError(f"Settings section '{section_name}' must be a mapping")

        known = {f.name for f in dataclasses.fields(current)}
        unknown = set(section) - known
        if unknown:
            raise ConfigurationError(
                f"Unknown key(s) in settings section '{section_name}': {', '.join(sorted(unknown))}"
            )
        return dataclasses.replace(current, **section)

    def validate_configuration(self) -> bool:
        """
        Validate the current configuration.

        Returns:
            True if the configuration can be used to connect, False otherwise
        """
        is_valid = True

        if not self.exist_config.url.startswith(('http://', 'https://')):
            self.logger.error(f"eXist-db url must use http or https: {self.exist_config.url}")
            is_valid = False

        if not self.exist_config.user:
            self.logger.error("eXist-db user is not configured (XML_BINDER_EXIST_USER)")
            is_valid = False

        if not self.exist_config.password and not self.exist_config.allow_empty_password:
            self.logger.error("eXist-db password is not configured (XML_BINDER_EXIST_PASSWORD)")
            is_valid = False

        if self.log_level not in ('CRITICAL', 'ERROR', 'WARNING', 'INFO', 'DEBUG'):
            self.logger.error(f"Unknown log level: {self.log_level}")
            is_valid = False

        return is_valid

    def get_configuration_summary(self) -> Dict[str, Any]:
        """
        Get a summary of the current configuration with the password masked.

        Returns:
            Dictionary with 'exist', 'serialization' and 'logging' sections
        """
        return {
            'exist': {
                'url': self.exist_config.url,
                'rest_url': self.exist_config.rest_url,
                'user': self.exist_config.user,
                'password': '***' if self.exist_config.password else '',
                'request_timeout': self.exist_config.request_timeout,
                'max_results': self.exist_config.max_results,
            },
            'serialization': {
                'pretty_print': self.serialization_params.pretty_print,
                'encoding': self.serialization_params.encoding,
            },
            'logging': {
                'level': self.log_level,
            },
            'settings_file': str(self.settings_path) if self.settings_path else None,
        }


# Global configuration manager instance
_global_config_manager: Optional[ConfigManager] = None


def get_config_manager(settings_path: Optional[Union[str, Path]] = None) -> ConfigManager:
    """
    Get the global configuration manager instance.

    Args:
        settings_path: Optional settings file. Only used on first call.

    Returns:
        Global ConfigManager instance
    """
    global _global_config_manager

    if _global_config_manager is None:
        _global_config_manager = ConfigManager(settings_path)

    return _global_config_manager


def reset_config_manager() -> None:
    """Reset the global configuration manager instance."""
    global _global_config_manager
    _global_config_manager = None
