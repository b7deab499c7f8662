"""Network-level metrics derived from intersection states."""

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..config.config_manager import CoordinationConfig
from ..models.intersection_node import IntersectionNode
from ..models.network_metrics import NetworkMetrics
from .phase_controller import PhaseController

logger = logging.getLogger(__name__)


def _clamp(value: float, lower: float, upper: float) -> float:
    if not np.isfinite(value):
        return lower
    return float(max(lower, min(upper, value)))


class MetricsAggregator:
    """Computes efficiency, throughput, wait time, emissions and hotspots.

    All methods are pure queries over the nodes they are given. An empty
    node sequence yields all-zero metrics.
    """

    def __init__(self, config: Optional[CoordinationConfig] = None,
                 phase_controller: Optional[PhaseController] = None):
        self.config = config or CoordinationConfig()
        self.phase_controller = phase_controller or PhaseController(self.config.phase_duration)

    def calculate_network_metrics(self, nodes: Sequence[IntersectionNode],
                                  targets: Optional[Dict[str, float]] = None) -> NetworkMetrics:
        """Derive a metrics snapshot.

        Args:
            nodes: Intersections in creation order
            targets: Ideal cycle position per intersection id, as implied by
                the active coordination strategy

        Returns:
            NetworkMetrics snapshot
        """
        if not nodes:
            return NetworkMetrics.empty()

        counts = np.array([node.vehicle_count for node in nodes], dtype=int)
        congestion = np.array([node.congestion_level for node in nodes], dtype=float)

        total_vehicles = int(counts.sum())
        average_wait_time = self.average_wait_time(float(congestion.mean()))
        network_throughput = self.network_throughput(len(nodes), average_wait_time)
        coordination_efficiency = self.coordination_efficiency(nodes, targets or {})
        co2_reduction = self.co2_reduction(coordination_efficiency)
        hotspots = self.congestion_hotspots(nodes)

        metrics = NetworkMetrics(
            coordination_efficiency=coordination_efficiency,
            total_vehicles=total_vehicles,
            average_wait_time=average_wait_time,
            network_throughput=network_throughput,
            co2_reduction=co2_reduction,
            congestion_hotspots=tuple(hotspots)
        )
        logger.debug(f"Network metrics: {metrics}")
        return metrics

    def average_wait_time(self, average_congestion: float) -> float:
        """Average wait in seconds; grows linearly with average congestion."""
        congestion = _clamp(average_congestion, 0.0, 100.0)
        wait = self.config.min_wait_time + congestion / 100.0 * self.config.wait_time_range
        return _clamp(wait, 0.0, float('inf'))

    def network_throughput(self, intersection_count: int, average_wait_time: float) -> float:
        """Vehicles per hour across the network; falls as waiting grows."""
        if intersection_count <= 0:
            return 0.0
        flow = intersection_count * self.config.saturation_flow_per_hour
        throughput = flow / (1.0 + max(0.0, average_wait_time) / self.config.wait_time_scale)
        return _clamp(throughput, 0.0, flow)

    def coordination_efficiency(self, nodes: Sequence[IntersectionNode],
                                targets: Dict[str, float]) -> float:
        """How closely the network's cycle positions match their targets, in percent.

        A node exactly on its target scores 1, a node half a cycle away
        scores 0. Nodes without a target score 0.

        Green wave and adaptive offset targets are anchored to the wave
        reference, so the score measures network-wide alignment. Distributed
        control and predictive targets are a bounded nudge from each node's
        own position; for them the score only measures how much of that
        nudge is still outstanding, and stays at or above
        ``1 - max(distributed_gain, predictive_gain) / (cycle / 2)``
        whatever the phase alignment between neighbours.
        """
        if not nodes:
            return 0.0

        half_cycle = self.phase_controller.cycle_length / 2
        scores = []
        for node in nodes:
            target = targets.get(node.id)
            if target is None:
                scores.append(0.0)
                continue
            position = self.phase_controller.cycle_position(node.current_phase, node.phase_timer)
            distance = self.phase_controller.cycle_distance(position, target)
            scores.append(1.0 - distance / half_cycle)

        return _clamp(float(np.mean(scores)) * 100.0, 0.0, 100.0)

    def co2_reduction(self, coordination_efficiency: float) -> float:
        """Emissions reduction proxy in percent, proportional to efficiency."""
        return _clamp(coordination_efficiency * self.config.co2_efficiency_factor, 0.0, 100.0)

    def congestion_hotspots(self, nodes: Sequence[IntersectionNode]) -> List[str]:
        """Ids of intersections above the hotspot threshold, in node order."""
        return [node.id for node in nodes if node.congestion_level > self.config.hotspot_threshold]
