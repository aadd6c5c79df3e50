"""Configuration management components."""

from .config_manager import ConfigManager, ExistConfig, SerializationParameters, get_config_manager, reset_config_manager
from .binder_defaults import BinderDefaults

__all__ = [
    'ConfigManager',
    'ExistConfig',
    'SerializationParameters',
    'BinderDefaults',
    'get_config_manager',
    'reset_config_manager'
]
