"""Configuration management for the signal coordination system."""

from .config_manager import ConfigManager, CoordinationConfig

__all__ = ['ConfigManager', 'CoordinationConfig']
