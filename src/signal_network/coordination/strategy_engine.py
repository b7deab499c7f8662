"""Network-wide coordination strategies applied to the intersection grid."""

import logging
import math
from typing import Callable, Dict, List, Optional, Sequence, Union

import numpy as np

from ..config.config_manager import CoordinationConfig
from ..models.intersection_node import IntersectionNode
from ..models.network_metrics import TrafficWave
from .intersection_grid import IntersectionGrid
from .metrics_aggregator import MetricsAggregator
from .strategies import CoordinationStrategy, CoordinationStrategyType, parse_strategy_type

logger = logging.getLogger(__name__)

TargetHandler = Callable[[Sequence[IntersectionNode]], Dict[str, float]]


class CoordinationStrategyEngine:
    """Applies the active coordination strategy to every intersection.

    Each strategy maps the current grid state to a target cycle position per
    intersection. Executing the strategy moves every intersection toward its
    target by at most ``max_strategy_adjustment`` time units, through
    ``IntersectionGrid.update_intersection``.
    """

    def __init__(self, grid: IntersectionGrid,
                 metrics_aggregator: Optional[MetricsAggregator] = None,
                 strategy: Optional[CoordinationStrategy] = None):
        self.grid = grid
        self.config: CoordinationConfig = grid.config
        self.phase_controller = grid.phase_controller
        self.metrics_aggregator = metrics_aggregator or MetricsAggregator(self.config, self.phase_controller)
        self.strategy = strategy or CoordinationStrategy.from_type(self.config.default_strategy)
        self.traffic_waves: List[TrafficWave] = []

        self._handlers: Dict[CoordinationStrategyType, TargetHandler] = {
            CoordinationStrategyType.GREEN_WAVE: self._green_wave_targets,
            CoordinationStrategyType.ADAPTIVE_OFFSET: self._adaptive_offset_targets,
            CoordinationStrategyType.DISTRIBUTED_CONTROL: self._distributed_control_targets,
            CoordinationStrategyType.PREDICTIVE: self._predictive_targets,
        }

    def set_strategy(self, strategy: Union[str, CoordinationStrategyType, CoordinationStrategy]) -> None:
        """Select the strategy used by the next execution.

        Raises:
            InvalidStrategyError: for unknown tags; the active strategy is kept.
        """
        if isinstance(strategy, CoordinationStrategy):
            new_strategy = strategy
        else:
            new_strategy = CoordinationStrategy.from_type(parse_strategy_type(strategy))

        previous = self.strategy.type
        self.strategy = new_strategy
        logger.info(f"Coordination strategy switched from {previous.value} to {new_strategy.type.value}")

    def get_strategy(self) -> CoordinationStrategy:
        return self.strategy

    def compute_targets(self, nodes: Optional[Sequence[IntersectionNode]] = None) -> Dict[str, float]:
        """Target cycle position per intersection under the active strategy."""
        if nodes is None:
            nodes = self.grid.get_intersections()
        if not nodes:
            return {}
        return self._handlers[self.strategy.type](nodes)

    def execute_strategy(self) -> None:
        """Apply the active strategy to the grid and refresh its efficiency."""
        nodes = self.grid.get_intersections()
        if not nodes:
            logger.debug("Empty grid, nothing to coordinate")
            return

        self.traffic_waves = self._traffic_waves(nodes)
        targets = self.compute_targets(nodes)
        max_step = self.config.max_strategy_adjustment

        for node in nodes:
            target = targets.get(node.id)
            if target is None:
                continue
            phase, timer = self.phase_controller.shift_toward(
                node.current_phase, node.phase_timer, target, max_step
            )
            self.grid.update_intersection(node.id, current_phase=phase, phase_timer=timer)

        updated = self.grid.get_intersections()
        self.strategy.efficiency = self.metrics_aggregator.coordination_efficiency(
            updated, self.compute_targets(updated)
        )
        logger.debug(f"Executed {self.strategy.type.value}, efficiency {self.strategy.efficiency:.1f}%")

    def calculate_green_wave_offsets(self, nodes: Optional[Sequence[IntersectionNode]] = None) -> Dict[str, float]:
        """Lag of each intersection behind the green-wave reference, in time units.

        The wave travels along the axis with the larger spatial extent
        (east-west on ties), starting at the intersection with the smallest
        coordinate on that axis.
        """
        if nodes is None:
            nodes = self.grid.get_intersections()
        if not nodes:
            return {}

        axis = self._dominant_axis(nodes)
        reference = min(nodes, key=lambda node: node.position[axis])
        cycle = self.phase_controller.cycle_length

        return {
            node.id: ((node.position[axis] - reference.position[axis]) / self.config.wave_travel_speed) % cycle
            for node in nodes
        }

    def predict_traffic_waves(self) -> List[TrafficWave]:
        """Predict platoons moving from each intersection to its neighbours and keep them for display."""
        self.traffic_waves = self._traffic_waves(self.grid.get_intersections())
        return list(self.traffic_waves)

    def _traffic_waves(self, nodes: Sequence[IntersectionNode]) -> List[TrafficWave]:
        by_id = {node.id: node for node in nodes}
        speed = self.config.wave_travel_speed

        waves = []
        for node in nodes:
            vehicle_count = math.floor(node.vehicle_count * self.config.wave_transfer_ratio)
            if vehicle_count <= 0:
                continue
            for neighbour_id in node.connected_intersections:
                neighbour = by_id.get(neighbour_id)
                if neighbour is None:
                    continue
                waves.append(TrafficWave(
                    source_intersection=node.id,
                    target_intersection=neighbour_id,
                    vehicle_count=vehicle_count,
                    estimated_arrival_time=node.distance_to(neighbour) / speed,
                    speed=speed
                ))

        return waves

    def _green_wave_targets(self, nodes: Sequence[IntersectionNode]) -> Dict[str, float]:
        offsets = self.calculate_green_wave_offsets(nodes)
        axis = self._dominant_axis(nodes)
        reference = min(nodes, key=lambda node: node.position[axis])
        reference_position = self._position(reference)
        cycle = self.phase_controller.cycle_length

        return {node.id: (reference_position - offsets[node.id]) % cycle for node in nodes}

    def _adaptive_offset_targets(self, nodes: Sequence[IntersectionNode]) -> Dict[str, float]:
        wave_targets = self._green_wave_targets(nodes)
        by_id = {node.id: node for node in nodes}
        cycle = self.phase_controller.cycle_length
        targets = {}

        for node in nodes:
            relative = node.congestion_level - self._neighbour_congestion(node, by_id)
            # holding the timer back extends the phase that is currently green
            extension = relative / 100.0 * self.config.adaptive_max_extension
            targets[node.id] = (wave_targets[node.id] - extension) % cycle

        return targets

    def _distributed_control_targets(self, nodes: Sequence[IntersectionNode]) -> Dict[str, float]:
        cycle = self.phase_controller.cycle_length
        by_id = {node.id: node for node in nodes}
        targets = {}

        for node in nodes:
            nudge = (self._neighbour_congestion(node, by_id) - node.congestion_level) / 100.0
            nudge *= self.config.distributed_gain
            targets[node.id] = (self._position(node) + nudge) % cycle

        return targets

    def _predictive_targets(self, nodes: Sequence[IntersectionNode]) -> Dict[str, float]:
        horizon = self.config.prediction_horizon
        cycle = self.phase_controller.cycle_length

        net_inflow = {node.id: 0.0 for node in nodes}
        for wave in self._traffic_waves(nodes):
            if wave.arrives_within(horizon):
                net_inflow[wave.target_intersection] += wave.vehicle_count
                net_inflow[wave.source_intersection] -= wave.vehicle_count

        targets = {}
        for node in nodes:
            trend = self._vehicle_trend(node)
            projected = node.vehicle_count + trend * horizon + net_inflow[node.id]
            projected = max(0.0, min(float(node.capacity), projected))
            bias = (projected - node.vehicle_count) / node.capacity * self.config.predictive_gain
            targets[node.id] = (self._position(node) - bias) % cycle

        return targets

    def _position(self, node: IntersectionNode) -> float:
        return self.phase_controller.cycle_position(node.current_phase, node.phase_timer)

    @staticmethod
    def _dominant_axis(nodes: Sequence[IntersectionNode]) -> int:
        """0 for the x (east-west) axis, 1 for the y (north-south) axis."""
        xs = [node.position[0] for node in nodes]
        ys = [node.position[1] for node in nodes]
        return 0 if (max(xs) - min(xs)) >= (max(ys) - min(ys)) else 1

    @staticmethod
    def _neighbour_congestion(node: IntersectionNode, by_id: Dict[str, IntersectionNode]) -> float:
        """Mean congestion of a node's neighbours; its own congestion if it has none."""
        levels = [by_id[n].congestion_level for n in node.connected_intersections if n in by_id]
        if not levels:
            return node.congestion_level
        return float(np.mean(levels))

    @staticmethod
    def _vehicle_trend(node: IntersectionNode) -> float:
        """Mean change in vehicle count per update over the recent history."""
        if len(node.vehicle_history) < 2:
            return 0.0
        return float(np.mean(np.diff(node.vehicle_history)))
