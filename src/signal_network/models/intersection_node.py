"""IntersectionNode data model with validation."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Tuple
import logging

logger = logging.getLogger(__name__)

DIRECTIONS = ('north', 'south', 'east', 'west')


class Phase(Enum):
    """Signal phases; each gives green to one traffic axis."""
    NORTH_SOUTH = "north-south"
    EAST_WEST = "east-west"

    @property
    def green_directions(self) -> Tuple[str, str]:
        if self is Phase.NORTH_SOUTH:
            return ('north', 'south')
        return ('east', 'west')


class SignalColor(Enum):
    """Colors a signal head can show."""
    RED = "red"
    GREEN = "green"


def signal_state_for(phase: Phase) -> Dict[str, SignalColor]:
    """Signal heads for a phase: the phase's axis green, the other axis red."""
    green = phase.green_directions
    return {
        direction: SignalColor.GREEN if direction in green else SignalColor.RED
        for direction in DIRECTIONS
    }


@dataclass
class IntersectionNode:
    """A signal-controlled intersection in the coordination grid."""

    id: str
    name: str
    position: Tuple[float, float]  # layout coordinate, no physical units
    connected_intersections: List[str] = field(default_factory=list)
    current_phase: Phase = Phase.NORTH_SOUTH
    phase_timer: float = 0.0
    vehicle_count: int = 0
    capacity: int = 30
    vehicle_history: List[int] = field(default_factory=list)  # oldest first

    def __post_init__(self):
        """Validate the intersection data."""
        self.validate()

    def validate(self) -> None:
        """Validate all fields of the intersection."""
        if not self.id or not isinstance(self.id, str):
            raise ValueError("id must be a non-empty string")

        if not isinstance(self.name, str):
            raise ValueError("name must be a string")

        if not isinstance(self.position, tuple) or len(self.position) != 2:
            raise ValueError("position must be a tuple of two numbers (x, y)")

        if self.id in self.connected_intersections:
            raise ValueError(f"intersection {self.id} cannot be connected to itself")

        if len(set(self.connected_intersections)) != len(self.connected_intersections):
            raise ValueError(f"intersection {self.id} lists a neighbour more than once")

        if not isinstance(self.current_phase, Phase):
            raise ValueError("current_phase must be a Phase")

        if not isinstance(self.capacity, int) or self.capacity <= 0:
            raise ValueError("capacity must be a positive integer")

        if not isinstance(self.vehicle_count, int) or not (0 <= self.vehicle_count <= self.capacity):
            raise ValueError(f"vehicle_count must be an integer between 0 and {self.capacity}")

        if not isinstance(self.phase_timer, (int, float)) or self.phase_timer < 0:
            raise ValueError("phase_timer must be a non-negative number")

    @property
    def congestion_level(self) -> float:
        """Share of the intersection's capacity currently occupied, in percent."""
        return self.vehicle_count / self.capacity * 100.0

    @property
    def signal_state(self) -> Dict[str, SignalColor]:
        """Signal heads, always consistent with the current phase."""
        return signal_state_for(self.current_phase)

    def is_green(self, direction: str) -> bool:
        """Check whether the signal head for a direction is green."""
        return self.signal_state[direction] is SignalColor.GREEN

    def distance_to(self, other: "IntersectionNode") -> float:
        """Euclidean layout distance to another intersection."""
        dx = other.position[0] - self.position[0]
        dy = other.position[1] - self.position[1]
        return (dx ** 2 + dy ** 2) ** 0.5

    def to_dict(self) -> Dict:
        """Convert the intersection to a plain dictionary."""
        return {
            'id': self.id,
            'name': self.name,
            'x': self.position[0],
            'y': self.position[1],
            'connected_intersections': list(self.connected_intersections),
            'current_phase': self.current_phase.value,
            'phase_timer': self.phase_timer,
            'vehicle_count': self.vehicle_count,
            'congestion_level': self.congestion_level,
            'signal_state': {d: color.value for d, color in self.signal_state.items()},
        }
