"""Multi-intersection signal coordination engine."""

from .phase_controller import PhaseController
from .intersection_grid import IntersectionGrid
from .metrics_aggregator import MetricsAggregator
from .strategies import CoordinationStrategy, CoordinationStrategyType, STRATEGY_DESCRIPTIONS
from .strategy_engine import CoordinationStrategyEngine
from .coordinator import MultiIntersectionCoordinator, create_multi_intersection_coordinator

__all__ = [
    'PhaseController',
    'IntersectionGrid',
    'MetricsAggregator',
    'CoordinationStrategy',
    'CoordinationStrategyType',
    'STRATEGY_DESCRIPTIONS',
    'CoordinationStrategyEngine',
    'MultiIntersectionCoordinator',
    'create_multi_intersection_coordinator'
]
