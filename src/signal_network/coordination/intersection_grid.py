"""Grid of intersections: layout, adjacency and state updates."""

import copy
import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from ..config.config_manager import CoordinationConfig
from ..models.intersection_node import IntersectionNode, Phase
from ..utils.error_handling import InvalidDimensionsError, ValidationError
from .phase_controller import PhaseController

logger = logging.getLogger(__name__)


class IntersectionGrid:
    """Owns the intersection nodes of a rows x cols lattice.

    Nodes are only ever mutated through :meth:`update_intersection`; every
    query hands out copies, so callers cannot reach into the grid's state.
    The grid is not safe for concurrent use: one driving loop owns it.
    """

    MUTABLE_FIELDS = frozenset({'current_phase', 'phase_timer', 'vehicle_count', 'name'})
    DERIVED_FIELDS = frozenset({'congestion_level', 'signal_state'})

    def __init__(self, config: Optional[CoordinationConfig] = None,
                 phase_controller: Optional[PhaseController] = None):
        self.config = config or CoordinationConfig()
        self.phase_controller = phase_controller or PhaseController(self.config.phase_duration)
        self._nodes: Dict[str, IntersectionNode] = {}
        self.rows = 0
        self.cols = 0

    @staticmethod
    def node_id(row: int, col: int) -> str:
        return f"intersection-{row}-{col}"

    def initialize_grid(self, rows: int, cols: int) -> None:
        """Replace the grid with a fresh rows x cols lattice.

        Every node starts north-south green with a zero timer and no vehicles.

        Raises:
            InvalidDimensionsError: if rows or cols is not a positive integer.
                The previous grid is left untouched.
        """
        for value in (rows, cols):
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise InvalidDimensionsError(rows, cols)

        positions = self._layout(rows, cols)
        nodes: Dict[str, IntersectionNode] = {}

        for row in range(rows):
            for col in range(cols):
                connected = []
                if col > 0:
                    connected.append(self.node_id(row, col - 1))  # left
                if col < cols - 1:
                    connected.append(self.node_id(row, col + 1))  # right
                if row > 0:
                    connected.append(self.node_id(row - 1, col))  # up
                if row < rows - 1:
                    connected.append(self.node_id(row + 1, col))  # down

                node_id = self.node_id(row, col)
                nodes[node_id] = IntersectionNode(
                    id=node_id,
                    name=f"Int {row + 1}-{col + 1}",
                    position=positions[(row, col)],
                    connected_intersections=connected,
                    current_phase=Phase.NORTH_SOUTH,
                    phase_timer=0.0,
                    vehicle_count=0,
                    capacity=self.config.vehicle_capacity,
                )

        self._nodes = nodes
        self.rows = rows
        self.cols = cols
        logger.info(f"Initialized {rows}x{cols} intersection grid ({len(nodes)} intersections)")

    def _layout(self, rows: int, cols: int) -> Dict[Tuple[int, int], Tuple[float, float]]:
        """Lattice positions centred inside the canvas extent."""
        width = self.config.canvas_width
        height = self.config.canvas_height
        margin = self.config.canvas_margin

        candidates = []
        if cols > 1:
            candidates.append((width - 2 * margin) / (cols - 1))
        if rows > 1:
            candidates.append((height - 2 * margin) / (rows - 1))
        spacing = min(candidates) if candidates else 0.0

        start_x = width / 2 - spacing * (cols - 1) / 2
        start_y = height / 2 - spacing * (rows - 1) / 2

        return {
            (row, col): (start_x + col * spacing, start_y + row * spacing)
            for row in range(rows)
            for col in range(cols)
        }

    def get_intersections(self) -> List[IntersectionNode]:
        """Snapshot of all intersections in creation order."""
        return [copy.deepcopy(node) for node in self._nodes.values()]

    def get_intersection(self, intersection_id: str) -> Optional[IntersectionNode]:
        """Snapshot of a single intersection, or None if it does not exist."""
        node = self._nodes.get(intersection_id)
        return copy.deepcopy(node) if node is not None else None

    def node_ids(self) -> List[str]:
        return list(self._nodes.keys())

    def is_empty(self) -> bool:
        return not self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, intersection_id: str) -> bool:
        return intersection_id in self._nodes

    def update_intersection(self, intersection_id: str, **fields: Any) -> bool:
        """Merge field updates into an intersection.

        Vehicle counts are clamped to [0, capacity]; a phase timer that
        reaches the phase duration switches the phase.

        Returns:
            True if the intersection was updated, False if no intersection
            has that id.

        Raises:
            ValidationError: if a field is derived, structural or unknown,
                or a value has the wrong type. The node is left unchanged.
        """
        node = self._nodes.get(intersection_id)
        if node is None:
            logger.warning(f"No intersection matches id {intersection_id}; update ignored")
            return False

        for name in fields:
            if name in self.DERIVED_FIELDS:
                raise ValidationError(f"{name} is derived and cannot be set", name, fields[name])
            if name not in self.MUTABLE_FIELDS:
                raise ValidationError(f"{name} cannot be updated", name, fields[name])

        phase = node.current_phase
        if 'current_phase' in fields:
            phase = self._coerce_phase(fields['current_phase'])

        timer = node.phase_timer
        if 'phase_timer' in fields:
            timer = self._coerce_number('phase_timer', fields['phase_timer'])
        phase, timer, _ = self.phase_controller.settle(phase, timer)

        vehicle_count = node.vehicle_count
        if 'vehicle_count' in fields:
            raw = self._coerce_number('vehicle_count', fields['vehicle_count'])
            vehicle_count = max(0, min(node.capacity, int(round(raw))))

        name = node.name
        if 'name' in fields:
            if not isinstance(fields['name'], str):
                raise ValidationError("name must be a string", 'name', fields['name'])
            name = fields['name']

        node.current_phase = phase
        node.phase_timer = timer
        node.name = name
        if 'vehicle_count' in fields:
            node.vehicle_count = vehicle_count
            node.vehicle_history.append(vehicle_count)
            del node.vehicle_history[:-self.config.history_length]

        return True

    def apply_vehicle_delta(self, intersection_id: str, delta: int) -> bool:
        """Add a (possibly negative) number of vehicles to an intersection."""
        node = self._nodes.get(intersection_id)
        if node is None:
            logger.warning(f"No intersection matches id {intersection_id}; vehicle delta ignored")
            return False
        return self.update_intersection(intersection_id, vehicle_count=node.vehicle_count + delta)

    def advance_phase(self, intersection_id: str, tick: float) -> bool:
        """Advance an intersection's phase timer by one tick."""
        node = self._nodes.get(intersection_id)
        if node is None:
            logger.warning(f"No intersection matches id {intersection_id}; phase advance ignored")
            return False
        phase, timer, _ = self.phase_controller.advance(node.current_phase, node.phase_timer, tick)
        return self.update_intersection(intersection_id, current_phase=phase, phase_timer=timer)

    @staticmethod
    def _coerce_phase(value: Any) -> Phase:
        if isinstance(value, Phase):
            return value
        try:
            return Phase(value)
        except ValueError:
            raise ValidationError(f"Unknown phase {value!r}", 'current_phase', value)

    @staticmethod
    def _coerce_number(name: str, value: Any) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError(f"{name} must be a number", name, value)
        if not math.isfinite(value):
            raise ValidationError(f"{name} must be finite", name, value)
        return float(value)
