"""Configuration manager for coordination parameters."""

import json
import os
from typing import Dict, Any
from dataclasses import dataclass, asdict, fields
import logging

from ..utils.error_handling import ConfigurationError

logger = logging.getLogger(__name__)

VALID_STRATEGY_TAGS = ('green_wave', 'adaptive_offset', 'distributed_control', 'predictive')


@dataclass
class CoordinationConfig:
    """Tunable constants of the coordination engine and its driving loop."""

    # Signal cycle
    phase_duration: float = 30.0  # simulation time units per phase
    vehicle_capacity: int = 30  # vehicles per intersection
    hotspot_threshold: float = 70.0  # congestion percent

    # Grid layout
    default_rows: int = 3
    default_cols: int = 3
    canvas_width: float = 800.0
    canvas_height: float = 600.0
    canvas_margin: float = 100.0

    # Strategies
    default_strategy: str = "adaptive_offset"
    max_strategy_adjustment: float = 3.0  # max cycle shift per execution
    wave_travel_speed: float = 40.0  # layout units per time unit
    wave_transfer_ratio: float = 0.3  # share of vehicles moving on to a neighbour
    adaptive_max_extension: float = 8.0
    distributed_gain: float = 5.0
    predictive_gain: float = 6.0
    prediction_horizon: float = 10.0
    history_length: int = 10

    # Metrics model
    min_wait_time: float = 5.0  # seconds
    wait_time_range: float = 55.0  # seconds added at full congestion
    wait_time_scale: float = 30.0
    saturation_flow_per_hour: float = 1800.0  # vehicles/hour per intersection
    co2_efficiency_factor: float = 0.3

    # Driving loop
    tick_size: float = 0.1

    # Response cache
    cache_ttl_seconds: int = 7 * 24 * 60 * 60
    cache_version: str = "v3"

    # Logging settings
    log_level: str = "INFO"
    log_file_path: str = "logs/signal_network.log"

    def validate(self) -> None:
        """Validate the configuration values."""
        if self.phase_duration <= 0:
            raise ConfigurationError("phase_duration must be positive", "coordination")
        if not isinstance(self.vehicle_capacity, int) or self.vehicle_capacity <= 0:
            raise ConfigurationError("vehicle_capacity must be a positive integer", "coordination")
        if not (0.0 <= self.hotspot_threshold <= 100.0):
            raise ConfigurationError("hotspot_threshold must be between 0 and 100", "coordination")
        if self.default_rows <= 0 or self.default_cols <= 0:
            raise ConfigurationError("default grid dimensions must be positive", "coordination")
        if self.canvas_width <= 2 * self.canvas_margin or self.canvas_height <= 2 * self.canvas_margin:
            raise ConfigurationError("canvas must be larger than twice its margin", "coordination")
        if self.default_strategy not in VALID_STRATEGY_TAGS:
            raise ConfigurationError(f"default_strategy must be one of {VALID_STRATEGY_TAGS}", "coordination")
        if self.max_strategy_adjustment < 0:
            raise ConfigurationError("max_strategy_adjustment must be non-negative", "coordination")
        if self.wave_travel_speed <= 0:
            raise ConfigurationError("wave_travel_speed must be positive", "coordination")
        if not (0.0 <= self.wave_transfer_ratio <= 1.0):
            raise ConfigurationError("wave_transfer_ratio must be between 0 and 1", "coordination")
        if self.history_length < 2:
            raise ConfigurationError("history_length must be at least 2", "coordination")
        if self.wait_time_scale <= 0:
            raise ConfigurationError("wait_time_scale must be positive", "coordination")
        if self.tick_size < 0:
            raise ConfigurationError("tick_size must be non-negative", "coordination")
        if self.cache_ttl_seconds <= 0:
            raise ConfigurationError("cache_ttl_seconds must be positive", "cache")


class ConfigManager:
    """Loads, updates and persists the coordination configuration."""

    def __init__(self, config_file: str = "config/coordination_config.json"):
        self.config_file = config_file
        self.config = CoordinationConfig()
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file if it exists."""
        if not os.path.exists(self.config_file):
            logger.info("No config file found, using default configuration")
            self.save_config()
            return

        try:
            with open(self.config_file, 'r') as f:
                config_data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error loading configuration: {e}")
            logger.info("Using default configuration")
            return

        known = {f.name for f in fields(CoordinationConfig)}
        for key, value in config_data.get('coordination', {}).items():
            if key in known:
                setattr(self.config, key, value)
            else:
                logger.warning(f"Ignoring unknown config parameter: {key}")

        self.config.validate()
        logger.info(f"Configuration loaded from {self.config_file}")

    def save_config(self) -> None:
        """Save current configuration to file."""
        try:
            config_dir = os.path.dirname(self.config_file)
            if config_dir:
                os.makedirs(config_dir, exist_ok=True)

            with open(self.config_file, 'w') as f:
                json.dump({'coordination': asdict(self.config)}, f, indent=2)

            logger.info(f"Configuration saved to {self.config_file}")

        except OSError as e:
            logger.error(f"Error saving configuration: {e}")

    def get_config(self) -> CoordinationConfig:
        """Get coordination configuration."""
        return self.config

    def update_config(self, **kwargs) -> None:
        """Update configuration parameters; the result must still validate."""
        previous = asdict(self.config)
        for key, value in kwargs.items():
            if hasattr(self.config, key):
                setattr(self.config, key, value)
                logger.info(f"Updated coordination config: {key} = {value}")
            else:
                logger.warning(f"Unknown coordination config parameter: {key}")

        try:
            self.config.validate()
        except ConfigurationError:
            self.config = CoordinationConfig(**previous)
            raise

    def to_dict(self) -> Dict[str, Any]:
        """Get the configuration as a plain dictionary."""
        return asdict(self.config)
