"""Utility functions and helpers."""

from .logging_config import setup_logging
from .error_handling import (
    TrafficSystemError,
    ValidationError,
    ConfigurationError,
    InvalidDimensionsError,
    InvalidStrategyError,
    StorageError,
)

__all__ = [
    'setup_logging',
    'TrafficSystemError',
    'ValidationError',
    'ConfigurationError',
    'InvalidDimensionsError',
    'InvalidStrategyError',
    'StorageError',
]
