"""Driving loop, detection feeds and vehicle tracking for the coordination engine."""

from .detection_feed import DetectionSource, RandomDetectionSource
from .network_simulator import NetworkSimulator, LOAD_SCENARIOS
from .vehicle_tracker import VehicleTracker, VehicleTrack, SpeedViolation

__all__ = [
    'DetectionSource',
    'RandomDetectionSource',
    'NetworkSimulator',
    'LOAD_SCENARIOS',
    'VehicleTracker',
    'VehicleTrack',
    'SpeedViolation'
]
