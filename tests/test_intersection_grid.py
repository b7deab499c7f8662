"""Unit tests for the intersection grid."""

import pytest
import logging
from signal_network.config import CoordinationConfig
from signal_network.coordination import IntersectionGrid
from signal_network.models import Phase, SignalColor
from signal_network.utils.error_handling import InvalidDimensionsError, ValidationError


@pytest.fixture
def grid():
    """A 3x3 grid with default configuration."""
    grid = IntersectionGrid()
    grid.initialize_grid(3, 3)
    return grid


class TestGridInitialization:
    """Test cases for building the grid."""

    def test_node_count_and_ids(self, grid):
        """A 3x3 grid has nine nodes in row-major order."""
        ids = grid.node_ids()

        assert len(grid) == 9
        assert ids[0] == "intersection-0-0"
        assert ids[1] == "intersection-0-1"
        assert ids[-1] == "intersection-2-2"
        assert grid.rows == 3 and grid.cols == 3

    def test_initial_state(self, grid):
        """Every node starts north-south green, empty, with zero timer."""
        for node in grid.get_intersections():
            assert node.current_phase is Phase.NORTH_SOUTH
            assert node.phase_timer == 0.0
            assert node.vehicle_count == 0
            assert node.signal_state['north'] is SignalColor.GREEN

    def test_names(self, grid):
        """Names are one-based row and column."""
        assert grid.get_intersection("intersection-1-2").name == "Int 2-3"

    def test_neighbour_order(self, grid):
        """Neighbours are listed left, right, up, down."""
        centre = grid.get_intersection("intersection-1-1")

        assert centre.connected_intersections == [
            "intersection-1-0", "intersection-1-2", "intersection-0-1", "intersection-2-1"
        ]

    def test_corner_and_edge_degree(self, grid):
        """Corners have two neighbours, edges three."""
        assert len(grid.get_intersection("intersection-0-0").connected_intersections) == 2
        assert len(grid.get_intersection("intersection-0-1").connected_intersections) == 3

    def test_adjacency_is_symmetric(self, grid):
        """Every connection is listed by both ends."""
        nodes = {node.id: node for node in grid.get_intersections()}
        for node in nodes.values():
            for neighbour_id in node.connected_intersections:
                assert node.id in nodes[neighbour_id].connected_intersections

    @pytest.mark.parametrize("rows, cols", [(1, 1), (1, 5), (4, 1), (2, 3), (5, 5)])
    def test_any_size_is_well_formed(self, rows, cols):
        """Any positive size yields rows*cols nodes with symmetric, loop-free links."""
        grid = IntersectionGrid()
        grid.initialize_grid(rows, cols)
        nodes = {node.id: node for node in grid.get_intersections()}

        assert len(nodes) == rows * cols
        for node in nodes.values():
            assert node.id not in node.connected_intersections
            for neighbour_id in node.connected_intersections:
                assert node.id in nodes[neighbour_id].connected_intersections

    def test_two_by_two_connectivity(self):
        """Top-left of a 2x2 grid connects right and down."""
        grid = IntersectionGrid()
        grid.initialize_grid(2, 2)

        assert grid.get_intersection("intersection-0-0").connected_intersections == [
            "intersection-0-1", "intersection-1-0"
        ]

    def test_layout_positions(self, grid):
        """A 3x3 grid is centred in the canvas with 200 unit spacing."""
        assert grid.get_intersection("intersection-0-0").position == (200.0, 100.0)
        assert grid.get_intersection("intersection-1-1").position == (400.0, 300.0)
        assert grid.get_intersection("intersection-2-2").position == (600.0, 500.0)

    def test_single_node_at_canvas_centre(self):
        """A 1x1 grid has one isolated node in the centre."""
        grid = IntersectionGrid()
        grid.initialize_grid(1, 1)

        node = grid.get_intersection("intersection-0-0")
        assert node.position == (400.0, 300.0)
        assert node.connected_intersections == []

    def test_capacity_from_config(self):
        """Node capacity follows the configuration."""
        grid = IntersectionGrid(CoordinationConfig(vehicle_capacity=50))
        grid.initialize_grid(1, 2)

        assert all(node.capacity == 50 for node in grid.get_intersections())

    @pytest.mark.parametrize("rows, cols", [(0, 3), (3, -1), (2.5, 2), ("3", 3), (True, 2)])
    def test_invalid_dimensions(self, grid, rows, cols):
        """Invalid dimensions raise and keep the previous grid."""
        with pytest.raises(InvalidDimensionsError):
            grid.initialize_grid(rows, cols)

        assert len(grid) == 9

    def test_reinitialize_replaces_grid(self, grid):
        """Re-initializing discards the previous nodes."""
        grid.update_intersection("intersection-0-0", vehicle_count=10)
        grid.initialize_grid(1, 2)

        assert grid.node_ids() == ["intersection-0-0", "intersection-0-1"]
        assert grid.get_intersection("intersection-0-0").vehicle_count == 0

    def test_empty_before_initialization(self):
        """A new grid has no intersections."""
        grid = IntersectionGrid()

        assert grid.is_empty()
        assert grid.get_intersections() == []


class TestGridUpdates:
    """Test cases for updating intersections."""

    def test_snapshots_are_isolated(self, grid):
        """Mutating a returned node does not affect the grid."""
        node = grid.get_intersection("intersection-0-0")
        node.vehicle_count = 25
        node.connected_intersections.append("intersection-2-2")

        stored = grid.get_intersection("intersection-0-0")
        assert stored.vehicle_count == 0
        assert "intersection-2-2" not in stored.connected_intersections

    def test_update_vehicle_count(self, grid):
        """Vehicle count updates are stored and recorded in history."""
        assert grid.update_intersection("intersection-0-0", vehicle_count=12)

        node = grid.get_intersection("intersection-0-0")
        assert node.vehicle_count == 12
        assert node.congestion_level == pytest.approx(40.0)
        assert node.vehicle_history == [12]

    def test_vehicle_count_clamped(self, grid):
        """Counts outside [0, capacity] are clamped."""
        grid.update_intersection("intersection-0-0", vehicle_count=45)
        grid.update_intersection("intersection-0-1", vehicle_count=-4)

        assert grid.get_intersection("intersection-0-0").vehicle_count == 30
        assert grid.get_intersection("intersection-0-1").vehicle_count == 0

    def test_vehicle_count_rounded(self, grid):
        """Fractional counts are rounded to whole vehicles."""
        grid.update_intersection("intersection-0-0", vehicle_count=7.6)

        assert grid.get_intersection("intersection-0-0").vehicle_count == 8

    def test_history_trimmed(self, grid):
        """History keeps only the configured number of samples."""
        for count in range(15):
            grid.update_intersection("intersection-0-0", vehicle_count=count)

        assert grid.get_intersection("intersection-0-0").vehicle_history == list(range(5, 15))

    def test_update_phase_from_string(self, grid):
        """Phases may be given by their value."""
        grid.update_intersection("intersection-0-0", current_phase="east-west")

        node = grid.get_intersection("intersection-0-0")
        assert node.current_phase is Phase.EAST_WEST
        assert node.signal_state['east'] is SignalColor.GREEN

    def test_timer_at_duration_switches_phase(self, grid):
        """Setting the timer to the phase duration switches the phase."""
        grid.update_intersection("intersection-0-0", phase_timer=30.0)

        node = grid.get_intersection("intersection-0-0")
        assert node.current_phase is Phase.EAST_WEST
        assert node.phase_timer == 0.0

    def test_unknown_id_is_noop(self, grid, caplog):
        """Unknown ids are ignored with a warning."""
        with caplog.at_level(logging.WARNING):
            assert not grid.update_intersection("intersection-9-9", vehicle_count=5)

        assert "intersection-9-9" in caplog.text

    @pytest.mark.parametrize("fields", [
        {'congestion_level': 50.0},
        {'signal_state': {}},
        {'position': (0.0, 0.0)},
        {'capacity': 40},
        {'vehicle_count': "many"},
        {'vehicle_count': float('nan')},
        {'phase_timer': True},
        {'current_phase': "diagonal"},
        {'name': 42},
    ])
    def test_invalid_updates_rejected(self, grid, fields):
        """Derived, structural and mistyped fields raise and change nothing."""
        before = grid.get_intersection("intersection-0-0")

        with pytest.raises(ValidationError):
            grid.update_intersection("intersection-0-0", **fields)

        assert grid.get_intersection("intersection-0-0") == before

    def test_apply_vehicle_delta(self, grid):
        """Deltas add to the current count."""
        grid.apply_vehicle_delta("intersection-0-0", 5)
        grid.apply_vehicle_delta("intersection-0-0", -2)

        assert grid.get_intersection("intersection-0-0").vehicle_count == 3
        assert not grid.apply_vehicle_delta("missing", 1)

    def test_advance_phase(self, grid):
        """Advancing accumulates the timer and switches at the duration."""
        grid.advance_phase("intersection-0-0", 20.0)
        assert grid.get_intersection("intersection-0-0").phase_timer == pytest.approx(20.0)

        grid.advance_phase("intersection-0-0", 10.0)
        node = grid.get_intersection("intersection-0-0")
        assert node.current_phase is Phase.EAST_WEST
        assert node.phase_timer == 0.0

    def test_advance_phase_unknown_id(self, grid):
        assert not grid.advance_phase("missing", 1.0)

    def test_contains(self, grid):
        assert "intersection-1-1" in grid
        assert "intersection-3-3" not in grid
