"""Integration tests for the multi-intersection coordinator."""

import pytest
from signal_network.config import CoordinationConfig
from signal_network.coordination import (
    CoordinationStrategyType,
    MultiIntersectionCoordinator,
    create_multi_intersection_coordinator,
)
from signal_network.models import NetworkMetrics
from signal_network.utils.error_handling import (
    ConfigurationError,
    InvalidDimensionsError,
    InvalidStrategyError,
)


@pytest.fixture
def coordinator():
    """A coordinator with a 2x2 grid."""
    coordinator = MultiIntersectionCoordinator()
    coordinator.initialize_grid(2, 2)
    return coordinator


class TestCoordinatorSetup:
    """Test cases for creating a coordinator."""

    def test_factory_builds_default_grid(self):
        """The factory builds a grid of the configured size."""
        coordinator = create_multi_intersection_coordinator(CoordinationConfig(default_rows=2, default_cols=4))

        assert len(coordinator.get_intersections()) == 8

    def test_invalid_config_rejected(self):
        """An invalid configuration is rejected up front."""
        with pytest.raises(ConfigurationError):
            MultiIntersectionCoordinator(CoordinationConfig(phase_duration=-1))

    def test_metrics_before_initialization(self):
        """Metrics on an empty network are all zero."""
        assert MultiIntersectionCoordinator().calculate_network_metrics() == NetworkMetrics.empty()

    def test_invalid_dimensions_keep_grid(self, coordinator):
        """A failed rebuild leaves the previous grid."""
        with pytest.raises(InvalidDimensionsError):
            coordinator.initialize_grid(0, 0)

        assert len(coordinator.get_intersections()) == 4

    def test_rebuild_clears_waves(self, coordinator):
        """Rebuilding the grid discards stored waves."""
        coordinator.update_intersection("intersection-0-0", vehicle_count=20)
        coordinator.predict_traffic_waves()

        coordinator.initialize_grid(3, 3)

        assert coordinator.get_traffic_waves() == []


class TestCoordinationCycle:
    """Test cases for the per-cycle workflow."""

    def test_vehicle_total_after_updates(self, coordinator):
        """Adding five vehicles everywhere totals twenty, before and after executing."""
        assert all(len(node.connected_intersections) == 2 for node in coordinator.get_intersections())

        coordinator.set_strategy("adaptive_offset")
        for node in coordinator.get_intersections():
            coordinator.update_intersection(node.id, vehicle_count=node.vehicle_count + 5)

        assert coordinator.calculate_network_metrics().total_vehicles == 20

        coordinator.execute_strategy()

        assert coordinator.calculate_network_metrics().total_vehicles == 20

    def test_hotspot_reported(self, coordinator):
        """An intersection at 80% congestion is a hotspot, one at 50% is not."""
        coordinator.update_intersection("intersection-0-0", vehicle_count=24)
        coordinator.update_intersection("intersection-0-1", vehicle_count=15)

        metrics = coordinator.calculate_network_metrics()

        assert metrics.congestion_hotspots == ("intersection-0-0",)

    def test_strategy_switch_keeps_past_metrics(self, coordinator):
        """Metrics already computed are not affected by a strategy switch."""
        coordinator.update_intersection("intersection-0-0", vehicle_count=12, phase_timer=8.0)
        before = coordinator.calculate_network_metrics()
        snapshot = before.to_dict()

        coordinator.set_strategy(CoordinationStrategyType.DISTRIBUTED_CONTROL)
        coordinator.execute_strategy()

        assert before.to_dict() == snapshot

    def test_metrics_have_no_side_effects(self, coordinator):
        """Calculating metrics twice gives the same snapshot."""
        coordinator.update_intersection("intersection-1-1", vehicle_count=9)

        assert coordinator.calculate_network_metrics() == coordinator.calculate_network_metrics()
        assert coordinator.get_traffic_waves() == []

    def test_invalid_strategy_keeps_active(self, coordinator):
        """An unknown strategy tag is rejected."""
        with pytest.raises(InvalidStrategyError):
            coordinator.set_strategy("round_robin")

        assert coordinator.get_strategy().type is CoordinationStrategyType.ADAPTIVE_OFFSET

    def test_unknown_intersection_update(self, coordinator):
        """Updates to unknown ids report failure and change nothing."""
        before = coordinator.get_intersections()

        assert not coordinator.update_intersection("intersection-5-5", vehicle_count=3)
        assert coordinator.get_intersections() == before

    def test_apply_delta_and_advance(self, coordinator):
        """Deltas and ticks are forwarded to the grid."""
        coordinator.apply_vehicle_delta("intersection-0-0", 4)
        coordinator.advance_phase("intersection-0-0", 2.5)

        node = coordinator.get_intersection("intersection-0-0")
        assert node.vehicle_count == 4
        assert node.phase_timer == pytest.approx(2.5)

    def test_green_wave_offsets(self, coordinator):
        """Offsets cover every intersection."""
        offsets = coordinator.calculate_green_wave_offsets()

        assert offsets == pytest.approx({
            "intersection-0-0": 0.0,
            "intersection-0-1": 10.0,
            "intersection-1-0": 0.0,
            "intersection-1-1": 10.0,
        })

    def test_status_summary(self, coordinator):
        """The summary describes grid, strategy and metrics."""
        summary = coordinator.get_status_summary()

        assert summary['rows'] == 2
        assert summary['cols'] == 2
        assert summary['intersections'] == 4
        assert summary['strategy']['type'] == "adaptive_offset"
        assert summary['metrics']['total_vehicles'] == 0
        assert summary['traffic_waves'] == 0
