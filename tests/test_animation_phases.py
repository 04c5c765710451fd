"""Tests for phase folding."""

import pytest

from trampsim.models.enums import Pose
from trampsim.services.animation_phases import Phase, PhaseState, advance, run_phases


@pytest.fixture
def start_state():
    return PhaseState(rotation=0.0, twist=0.0, elapsed=0.0, pose=Pose.STRAIGHT_ARMS_UP)


class TestPhase:
    """Test Phase descriptor."""

    def test_duration_scales_with_speed(self):
        """Test duration is rotation divided by angular speed."""
        assert Phase("Tucked", 0.5, 0.0, Pose.TUCK, speed=2.5).duration == pytest.approx(0.2)
        assert Phase("Straight", 0.5, 0.0, Pose.STRAIGHT_ARMS_DOWN).duration == pytest.approx(0.5)

    def test_non_positive_speed_rejected(self):
        """Test zero or negative speed raises."""
        with pytest.raises(ValueError):
            Phase("Broken", 0.5, 0.0, Pose.TUCK, speed=0)


class TestAdvance:
    """Test advance and run_phases."""

    def test_advance_accumulates(self, start_state):
        """Test advancing adds deltas and takes the phase pose."""
        state = advance(start_state, Phase("Stall", 0.1, 0.25, Pose.STRAIGHT_ARMS_DOWN))

        assert state.rotation == pytest.approx(0.1)
        assert state.twist == pytest.approx(0.25)
        assert state.elapsed == pytest.approx(0.1)
        assert state.pose == Pose.STRAIGHT_ARMS_DOWN

    def test_advance_does_not_mutate(self, start_state):
        """Test the input state is left untouched."""
        advance(start_state, Phase("Stall", 0.1, 0.0, Pose.STRAIGHT_ARMS_DOWN))
        assert start_state.rotation == 0.0

    def test_run_phases_one_state_per_phase(self, start_state):
        """Test one state is produced per phase, excluding the initial state."""
        phases = [
            Phase("Stall", 0.1, 0.0, Pose.STRAIGHT_ARMS_DOWN),
            Phase("Tuck", 0.4, 0.0, Pose.TUCK, speed=2.0),
            Phase("Land", 0.5, 0.5, Pose.STRAIGHT_ARMS_UP),
        ]

        states = run_phases(start_state, phases)

        assert len(states) == 3
        assert [s.pose for s in states] == [Pose.STRAIGHT_ARMS_DOWN, Pose.TUCK, Pose.STRAIGHT_ARMS_UP]
        assert states[-1].rotation == pytest.approx(1.0)
        assert states[-1].twist == pytest.approx(0.5)
        assert states[-1].elapsed == pytest.approx(0.1 + 0.2 + 0.5)

    def test_run_phases_empty(self, start_state):
        """Test no phases yields no states."""
        assert run_phases(start_state, []) == []
