"""Data models for the signal coordination system."""

from .intersection_node import IntersectionNode, Phase, SignalColor, signal_state_for
from .network_metrics import NetworkMetrics, TrafficWave
from .vehicle_detection import VehicleDetection

__all__ = [
    'IntersectionNode',
    'Phase',
    'SignalColor',
    'signal_state_for',
    'NetworkMetrics',
    'TrafficWave',
    'VehicleDetection'
]
