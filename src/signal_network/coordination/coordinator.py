"""Multi-intersection coordinator: single owner of the grid, strategy and metrics."""

import logging
from typing import Any, Dict, List, Optional, Union

from ..config.config_manager import CoordinationConfig
from ..models.intersection_node import IntersectionNode
from ..models.network_metrics import NetworkMetrics, TrafficWave
from .intersection_grid import IntersectionGrid
from .metrics_aggregator import MetricsAggregator
from .phase_controller import PhaseController
from .strategies import CoordinationStrategy, CoordinationStrategyType
from .strategy_engine import CoordinationStrategyEngine

logger = logging.getLogger(__name__)


class MultiIntersectionCoordinator:
    """Coordinates traffic signals across a grid of intersections.

    A driving loop is expected to, every cycle: update each intersection
    (load and phase timer) through :meth:`update_intersection`, call
    :meth:`execute_strategy`, then :meth:`calculate_network_metrics`.
    """

    def __init__(self, config: Optional[CoordinationConfig] = None):
        self.config = config or CoordinationConfig()
        self.config.validate()

        self.phase_controller = PhaseController(self.config.phase_duration)
        self.grid = IntersectionGrid(self.config, self.phase_controller)
        self.metrics_aggregator = MetricsAggregator(self.config, self.phase_controller)
        self.strategy_engine = CoordinationStrategyEngine(self.grid, self.metrics_aggregator)

        logger.info(f"Coordinator created with strategy {self.strategy_engine.strategy.type.value}")

    # Grid

    def initialize_grid(self, rows: Optional[int] = None, cols: Optional[int] = None) -> None:
        """Rebuild the grid; defaults come from the configuration."""
        rows = self.config.default_rows if rows is None else rows
        cols = self.config.default_cols if cols is None else cols
        self.grid.initialize_grid(rows, cols)
        self.strategy_engine.traffic_waves = []

    def get_intersections(self) -> List[IntersectionNode]:
        return self.grid.get_intersections()

    def get_intersection(self, intersection_id: str) -> Optional[IntersectionNode]:
        return self.grid.get_intersection(intersection_id)

    def update_intersection(self, intersection_id: str, **fields: Any) -> bool:
        return self.grid.update_intersection(intersection_id, **fields)

    def apply_vehicle_delta(self, intersection_id: str, delta: int) -> bool:
        return self.grid.apply_vehicle_delta(intersection_id, delta)

    def advance_phase(self, intersection_id: str, tick: float) -> bool:
        return self.grid.advance_phase(intersection_id, tick)

    # Strategy

    def set_strategy(self, strategy: Union[str, CoordinationStrategyType, CoordinationStrategy]) -> None:
        self.strategy_engine.set_strategy(strategy)

    def get_strategy(self) -> CoordinationStrategy:
        return self.strategy_engine.get_strategy()

    def execute_strategy(self) -> None:
        self.strategy_engine.execute_strategy()

    def calculate_green_wave_offsets(self) -> Dict[str, float]:
        return self.strategy_engine.calculate_green_wave_offsets()

    def predict_traffic_waves(self) -> List[TrafficWave]:
        return self.strategy_engine.predict_traffic_waves()

    def get_traffic_waves(self) -> List[TrafficWave]:
        """Waves from the most recent prediction or strategy execution."""
        return list(self.strategy_engine.traffic_waves)

    # Metrics

    def calculate_network_metrics(self) -> NetworkMetrics:
        """Metrics snapshot for the current grid state; no side effects."""
        nodes = self.grid.get_intersections()
        targets = self.strategy_engine.compute_targets(nodes)
        return self.metrics_aggregator.calculate_network_metrics(nodes, targets)

    def get_status_summary(self) -> Dict[str, Any]:
        """Get a summary of the coordination network."""
        metrics = self.calculate_network_metrics()
        return {
            'rows': self.grid.rows,
            'cols': self.grid.cols,
            'intersections': len(self.grid),
            'strategy': self.get_strategy().to_dict(),
            'metrics': metrics.to_dict(),
            'traffic_waves': len(self.strategy_engine.traffic_waves)
        }


def create_multi_intersection_coordinator(config: Optional[CoordinationConfig] = None) -> MultiIntersectionCoordinator:
    """Create a coordinator with a grid of the configured default size."""
    coordinator = MultiIntersectionCoordinator(config)
    coordinator.initialize_grid()
    return coordinator
