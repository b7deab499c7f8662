"""Unit tests for the network simulator driving loop."""

import pytest
from datetime import datetime
from unittest.mock import Mock
from signal_network.config import CoordinationConfig
from signal_network.coordination import create_multi_intersection_coordinator
from signal_network.processors import DetectionSource, NetworkSimulator, LOAD_SCENARIOS
from signal_network.utils.error_handling import ValidationError


class FixedDetectionSource(DetectionSource):
    """Reports the same vehicle count at every intersection."""

    def __init__(self, count):
        self.count = count

    def detect(self, intersection_id, timestamp):
        return []

    def count_vehicles(self, intersection_id, timestamp):
        return self.count


class FailingDetectionSource(DetectionSource):
    """Detection source whose backend is unavailable."""

    def detect(self, intersection_id, timestamp):
        raise RuntimeError("camera offline")


@pytest.fixture
def coordinator():
    return create_multi_intersection_coordinator(CoordinationConfig(default_rows=2, default_cols=3))


class TestNetworkSimulator:
    """Test cases for NetworkSimulator."""

    def test_initialization(self, coordinator):
        """Tick size defaults to the configured value."""
        simulator = NetworkSimulator(coordinator)

        assert simulator.tick_size == pytest.approx(0.1)
        assert simulator.cycle == 0
        assert simulator.get_metrics_history().empty

    def test_unknown_scenario(self, coordinator):
        """Unknown load scenarios are rejected."""
        with pytest.raises(ValidationError):
            NetworkSimulator(coordinator, scenario="holiday")

    def test_negative_tick(self, coordinator):
        with pytest.raises(ValidationError):
            NetworkSimulator(coordinator, tick_size=-1.0)

    def test_step_advances_time(self, coordinator):
        """Each step advances cycle count and simulation time."""
        simulator = NetworkSimulator(coordinator, tick_size=1.0, seed=1)

        simulator.step()
        simulator.step()

        assert simulator.cycle == 2
        assert simulator.simulation_time == pytest.approx(2.0)

    def test_loads_stay_within_capacity(self, coordinator):
        """Random perturbation never leaves the valid vehicle range."""
        simulator = NetworkSimulator(coordinator, tick_size=1.0, scenario='rush_hour', seed=3)

        simulator.run(100)

        for node in coordinator.get_intersections():
            assert 0 <= node.vehicle_count <= node.capacity
            assert 0.0 <= node.phase_timer < coordinator.config.phase_duration

    def test_seeded_runs_are_reproducible(self):
        """Two simulators with the same seed produce the same history."""
        config = CoordinationConfig(default_rows=2, default_cols=2)
        first = NetworkSimulator(create_multi_intersection_coordinator(config), tick_size=1.0, seed=11)
        second = NetworkSimulator(create_multi_intersection_coordinator(config), tick_size=1.0, seed=11)

        first.run(20)
        second.run(20)

        assert first.get_metrics_history()['total_vehicles'].tolist() == \
            second.get_metrics_history()['total_vehicles'].tolist()

    def test_metrics_history_columns(self, coordinator):
        """History holds one row per cycle with the metrics columns."""
        simulator = NetworkSimulator(coordinator, seed=5)

        simulator.run(3)
        history = simulator.get_metrics_history()

        assert len(history) == 3
        assert history['cycle'].tolist() == [1, 2, 3]
        assert set(history['strategy']) == {"adaptive_offset"}
        for column in ('coordination_efficiency', 'network_throughput', 'hotspot_count'):
            assert column in history.columns

    def test_cycle_callback(self, coordinator):
        """The callback receives the cycle number and its metrics."""
        simulator = NetworkSimulator(coordinator, seed=2)
        callback = Mock()
        simulator.set_cycle_callback(callback)

        results = simulator.run(2)

        assert callback.call_count == 2
        callback.assert_called_with(2, results[-1])

    def test_negative_cycles(self, coordinator):
        with pytest.raises(ValidationError):
            NetworkSimulator(coordinator).run(-1)

    def test_detection_source_sets_counts(self, coordinator):
        """Detected vehicle counts replace the random perturbation."""
        simulator = NetworkSimulator(coordinator, detection_source=FixedDetectionSource(7),
                                     start_time=datetime(2024, 1, 15, 8, 0))

        metrics = simulator.step()

        assert metrics.total_vehicles == 7 * 6

    def test_failing_detection_source(self, coordinator):
        """A failing source leaves counts unchanged and the loop running."""
        coordinator.update_intersection("intersection-0-0", vehicle_count=9)
        simulator = NetworkSimulator(coordinator, detection_source=FailingDetectionSource())

        simulator.run(2)

        assert simulator.cycle == 2
        assert coordinator.get_intersection("intersection-0-0").vehicle_count == 9

    def test_strategy_summary(self, coordinator):
        """Summary groups history by strategy."""
        simulator = NetworkSimulator(coordinator, seed=4)
        simulator.run(3)
        coordinator.set_strategy("green_wave")
        simulator.run(2)

        summary = simulator.get_strategy_summary().set_index('strategy')

        assert summary.loc['adaptive_offset', 'cycles'] == 3
        assert summary.loc['green_wave', 'cycles'] == 2

    def test_strategy_summary_empty(self, coordinator):
        assert NetworkSimulator(coordinator).get_strategy_summary().empty

    def test_reset(self, coordinator):
        """Reset clears history and time."""
        simulator = NetworkSimulator(coordinator, seed=6)
        simulator.run(4)

        simulator.reset()

        assert simulator.cycle == 0
        assert simulator.simulation_time == 0.0
        assert simulator.get_metrics_history().empty

    def test_scenarios_are_ranges(self):
        """Every scenario is an inclusive (low, high) delta range."""
        for low, high in LOAD_SCENARIOS.values():
            assert low <= 0 <= high
