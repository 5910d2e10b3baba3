"""Configuration management components."""

from .config_manager import ConfigManager, DatabaseConfig, get_config_manager, reset_config_manager
from .processing_defaults import ProcessingDefaults

__all__ = ['ConfigManager', 'DatabaseConfig', 'get_config_manager', 'reset_config_manager', 'ProcessingDefaults']
