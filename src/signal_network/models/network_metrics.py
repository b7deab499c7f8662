"""NetworkMetrics and TrafficWave data models."""

from dataclasses import dataclass, asdict
from typing import Dict, Tuple, Any


@dataclass(frozen=True)
class NetworkMetrics:
    """Snapshot of network-level performance, recomputed every cycle."""

    coordination_efficiency: float  # percent
    total_vehicles: int
    average_wait_time: float  # seconds
    network_throughput: float  # vehicles/hour
    co2_reduction: float  # percent
    congestion_hotspots: Tuple[str, ...] = ()

    @classmethod
    def empty(cls) -> "NetworkMetrics":
        """All-zero metrics for a network without intersections."""
        return cls(
            coordination_efficiency=0.0,
            total_vehicles=0,
            average_wait_time=0.0,
            network_throughput=0.0,
            co2_reduction=0.0,
            congestion_hotspots=()
        )

    def has_hotspots(self) -> bool:
        return bool(self.congestion_hotspots)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['congestion_hotspots'] = list(self.congestion_hotspots)
        return data


@dataclass(frozen=True)
class TrafficWave:
    """A platoon of vehicles predicted to travel between two neighbouring intersections."""

    source_intersection: str
    target_intersection: str
    vehicle_count: int
    estimated_arrival_time: float  # simulation time units from now
    speed: float  # layout units per time unit

    def arrives_within(self, horizon: float) -> bool:
        """Check whether the wave reaches its target within the horizon."""
        return 0.0 <= self.estimated_arrival_time <= horizon
