"""Unit tests for the phase controller."""

import pytest
from signal_network.coordination import PhaseController
from signal_network.models import Phase, SignalColor
from signal_network.utils.error_handling import ValidationError


@pytest.fixture
def controller():
    """Phase controller with the default 30 unit phase."""
    return PhaseController(phase_duration=30.0)


class TestPhaseAdvance:
    """Test cases for timer advancement and phase switching."""

    def test_invalid_phase_duration(self):
        """Phase duration must be positive."""
        with pytest.raises(ValidationError):
            PhaseController(phase_duration=0)

    def test_advance_below_threshold(self, controller):
        """The timer accumulates while below the phase duration."""
        phase, timer, switched = controller.advance(Phase.NORTH_SOUTH, 10.0, 0.5)

        assert phase is Phase.NORTH_SOUTH
        assert timer == pytest.approx(10.5)
        assert not switched

    def test_switch_at_threshold(self, controller):
        """Reaching the duration flips the phase and resets the timer."""
        phase, timer, switched = controller.advance(Phase.NORTH_SOUTH, 29.5, 0.5)

        assert phase is Phase.EAST_WEST
        assert timer == 0.0
        assert switched

    def test_east_west_switches_back(self, controller):
        """East-west switches back to north-south."""
        phase, timer, switched = controller.advance(Phase.EAST_WEST, 29.0, 1.0)

        assert phase is Phase.NORTH_SOUTH
        assert timer == 0.0
        assert switched

    def test_oversized_tick_switches_once(self, controller):
        """A tick longer than a phase produces a single switch."""
        phase, timer, switched = controller.advance(Phase.NORTH_SOUTH, 10.0, 100.0)

        assert phase is Phase.EAST_WEST
        assert timer == 0.0
        assert switched

    def test_zero_tick(self, controller):
        """A zero tick leaves the state unchanged."""
        assert controller.advance(Phase.EAST_WEST, 5.0, 0.0) == (Phase.EAST_WEST, 5.0, False)

    def test_negative_tick_rejected(self, controller):
        """Time cannot run backwards."""
        with pytest.raises(ValidationError):
            controller.advance(Phase.NORTH_SOUTH, 5.0, -1.0)

    def test_settle_clamps_negative_timer(self, controller):
        """Settling a negative timer clamps it to zero."""
        assert controller.settle(Phase.NORTH_SOUTH, -2.0) == (Phase.NORTH_SOUTH, 0.0, False)

    def test_full_cycle(self, controller):
        """Sixty unit ticks return to north-south with two switches."""
        phase, timer, switches = Phase.NORTH_SOUTH, 0.0, 0
        for _ in range(60):
            phase, timer, switched = controller.advance(phase, timer, 1.0)
            switches += int(switched)

        assert phase is Phase.NORTH_SOUTH
        assert timer == 0.0
        assert switches == 2

    def test_signal_state_for(self, controller):
        """Signal heads follow the phase."""
        state = controller.signal_state_for(Phase.EAST_WEST)

        assert state['east'] is SignalColor.GREEN
        assert state['north'] is SignalColor.RED


class TestCyclePosition:
    """Test cases for cycle position arithmetic."""

    def test_cycle_length(self, controller):
        assert controller.cycle_length == 60.0

    def test_cycle_position(self, controller):
        """North-south occupies the first half of the cycle."""
        assert controller.cycle_position(Phase.NORTH_SOUTH, 12.0) == 12.0
        assert controller.cycle_position(Phase.EAST_WEST, 12.0) == 42.0

    def test_cycle_offset_takes_short_way(self, controller):
        """Offsets wrap across the cycle boundary."""
        assert controller.cycle_offset(58.0, 2.0) == pytest.approx(4.0)
        assert controller.cycle_offset(2.0, 58.0) == pytest.approx(-4.0)
        assert controller.cycle_distance(10.0, 40.0) == pytest.approx(30.0)

    def test_shift_toward_limited_step(self, controller):
        """Shifts are capped at the maximum step."""
        phase, timer = controller.shift_toward(Phase.NORTH_SOUTH, 10.0, 20.0, 3.0)

        assert phase is Phase.NORTH_SOUTH
        assert timer == pytest.approx(13.0)

    def test_shift_toward_backward_holds_phase_start(self, controller):
        """A backward shift never crosses into the previous phase."""
        assert controller.shift_toward(Phase.NORTH_SOUTH, 0.0, 50.0, 3.0) == (Phase.NORTH_SOUTH, 0.0)
        assert controller.shift_toward(Phase.NORTH_SOUTH, 1.0, 55.0, 3.0) == (Phase.NORTH_SOUTH, 0.0)
        assert controller.shift_toward(Phase.EAST_WEST, 2.0, 20.0, 3.0) == (Phase.EAST_WEST, 0.0)

    def test_shift_toward_forward_switches_with_reset(self, controller):
        """A forward shift reaching the phase duration switches with a zero timer."""
        assert controller.shift_toward(Phase.NORTH_SOUTH, 28.5, 33.0, 3.0) == (Phase.EAST_WEST, 0.0)
        assert controller.shift_toward(Phase.EAST_WEST, 28.0, 5.0, 3.0) == (Phase.NORTH_SOUTH, 0.0)

    def test_shift_toward_reaches_close_target(self, controller):
        """Targets within one step are reached exactly."""
        phase, timer = controller.shift_toward(Phase.EAST_WEST, 5.0, 36.5, 3.0)

        assert phase is Phase.EAST_WEST
        assert timer == pytest.approx(6.5)
