"""Coordination strategy descriptors."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Union

from ..utils.error_handling import InvalidStrategyError


class CoordinationStrategyType(Enum):
    """The closed set of network-wide coordination policies."""
    GREEN_WAVE = "green_wave"
    ADAPTIVE_OFFSET = "adaptive_offset"
    DISTRIBUTED_CONTROL = "distributed_control"
    PREDICTIVE = "predictive"


STRATEGY_DESCRIPTIONS: Dict[CoordinationStrategyType, str] = {
    CoordinationStrategyType.GREEN_WAVE:
        "Green wave: downstream intersections turn green after upstream ones along the main axis",
    CoordinationStrategyType.ADAPTIVE_OFFSET:
        "Adaptive offset coordination based on real-time traffic",
    CoordinationStrategyType.DISTRIBUTED_CONTROL:
        "Distributed control: each intersection negotiates with its direct neighbours",
    CoordinationStrategyType.PREDICTIVE:
        "Predictive coordination: adjusts timing ahead of forecast congestion",
}


def parse_strategy_type(tag: Union[str, CoordinationStrategyType]) -> CoordinationStrategyType:
    """Resolve a strategy tag, rejecting anything outside the known set."""
    if isinstance(tag, CoordinationStrategyType):
        return tag
    try:
        return CoordinationStrategyType(tag)
    except ValueError:
        raise InvalidStrategyError(tag)


@dataclass
class CoordinationStrategy:
    """The active coordination policy and its running efficiency score."""

    type: CoordinationStrategyType
    description: str = ""
    efficiency: float = 0.0  # percent, refreshed after every execution

    def __post_init__(self):
        self.type = parse_strategy_type(self.type)
        if not self.description:
            self.description = STRATEGY_DESCRIPTIONS[self.type]

    @classmethod
    def from_type(cls, tag: Union[str, CoordinationStrategyType]) -> "CoordinationStrategy":
        """Canonical descriptor for a strategy tag."""
        return cls(type=parse_strategy_type(tag))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type.value,
            'description': self.description,
            'efficiency': self.efficiency
        }
