"""Two-phase signal timing state machine."""

import logging
from typing import Dict, Tuple

from ..models.intersection_node import Phase, SignalColor, signal_state_for
from ..utils.error_handling import ValidationError

logger = logging.getLogger(__name__)


class PhaseController:
    """Advances intersection phase timers and switches phases at the threshold.

    The two phases form a cycle of length ``2 * phase_duration``: north-south
    occupies cycle positions ``[0, D)`` and east-west ``[D, 2D)``. Strategies
    reason about that cycle position; the controller converts it back into a
    phase and a timer.
    """

    def __init__(self, phase_duration: float = 30.0):
        if phase_duration <= 0:
            raise ValidationError("phase_duration must be positive", "phase_duration", phase_duration)
        self.phase_duration = float(phase_duration)

    @property
    def cycle_length(self) -> float:
        return 2 * self.phase_duration

    @staticmethod
    def next_phase(phase: Phase) -> Phase:
        """The phase that follows the given one."""
        return Phase.EAST_WEST if phase is Phase.NORTH_SOUTH else Phase.NORTH_SOUTH

    @staticmethod
    def signal_state_for(phase: Phase) -> Dict[str, SignalColor]:
        return signal_state_for(phase)

    def advance(self, phase: Phase, phase_timer: float, tick: float) -> Tuple[Phase, float, bool]:
        """Advance a timer by one tick.

        Returns:
            (phase, timer, switched): the timer resets to zero and the phase
            flips once the timer reaches the phase duration.
        """
        if tick < 0:
            raise ValidationError("tick must be non-negative", "tick", tick)
        return self.settle(phase, phase_timer + tick)

    def settle(self, phase: Phase, phase_timer: float) -> Tuple[Phase, float, bool]:
        """Bring a (phase, timer) pair back inside the phase bounds."""
        if phase_timer >= self.phase_duration:
            new_phase = self.next_phase(phase)
            logger.debug(f"Phase switch {phase.value} -> {new_phase.value}")
            return new_phase, 0.0, True
        return phase, max(0.0, float(phase_timer)), False

    def cycle_position(self, phase: Phase, phase_timer: float) -> float:
        """Position of a (phase, timer) pair on the full signal cycle."""
        base = 0.0 if phase is Phase.NORTH_SOUTH else self.phase_duration
        return base + phase_timer

    def cycle_offset(self, source: float, target: float) -> float:
        """Signed shortest shift along the cycle from source to target."""
        half = self.cycle_length / 2
        return ((target - source + half) % self.cycle_length) - half

    def cycle_distance(self, source: float, target: float) -> float:
        """Unsigned shortest distance along the cycle, in ``[0, cycle/2]``."""
        return abs(self.cycle_offset(source, target))

    def shift_toward(self, phase: Phase, phase_timer: float, target: float,
                     max_step: float) -> Tuple[Phase, float]:
        """Move a (phase, timer) pair toward a target cycle position by at most max_step.

        A backward shift holds the current phase and stops at its start, so
        the green is extended rather than cut. A forward shift that reaches
        the phase duration switches the phase with the timer reset to zero.
        """
        current = self.cycle_position(phase, phase_timer)
        step = self.cycle_offset(current, target)
        step = max(-max_step, min(max_step, step))
        if step < 0:
            return phase, max(0.0, phase_timer + step)
        new_phase, new_timer, _ = self.settle(phase, phase_timer + step)
        return new_phase, new_timer
