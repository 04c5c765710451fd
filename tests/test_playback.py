"""Tests for routine playback sampling."""

import math

import pytest

from trampsim.models.animation import POSE_JOINTS, AthletePosition, SkillTimeline, lerp
from trampsim.models.enums import Pose
from trampsim.services.playback import (
    LEG_LENGTH,
    RoutinePlayback,
    interpolate_position,
)
from trampsim.services.skill_converter import convert_routine


@pytest.fixture
def straight_jump_timeline(skills_by_name, animation_config):
    return convert_routine([skills_by_name["Straight Jump"]], config=animation_config)[0]


@pytest.fixture
def playback(skills_by_name, animation_config):
    timelines = convert_routine(
        [skills_by_name["Barani"], skills_by_name["Front Flip"]], config=animation_config
    )
    return RoutinePlayback(timelines, jump_phase=2.0)


class TestInterpolatePosition:
    """Test interpolate_position."""

    def test_clamps_outside_range(self, straight_jump_timeline):
        """Test times outside [0, 1] clamp to the end keyframes."""
        positions = straight_jump_timeline.positions

        assert interpolate_position(straight_jump_timeline, -0.5) == positions[0]
        assert interpolate_position(straight_jump_timeline, 1.5) == positions[-1]

    def test_linear_between_keyframes(self, straight_jump_timeline):
        """Test joints are interpolated halfway between bracketing keyframes."""
        position = interpolate_position(straight_jump_timeline, 0.25)

        assert position.joints.left_shoulder == pytest.approx(1.5 * math.pi)
        assert position.rotation == 0.0

    def test_twist_interpolation(self, skills_by_name, animation_config):
        """Test twist grows linearly within a segment."""
        timeline = convert_routine([skills_by_name["1/2 Twist"]], config=animation_config)[0]
        assert interpolate_position(timeline, 0.25).twist == pytest.approx(0.125)

    def test_repeated_timestamp(self):
        """Test a repeated timestamp resolves to the later keyframe."""
        joints = POSE_JOINTS[Pose.STRAIGHT_ARMS_UP]
        timeline = SkillTimeline(
            positions=tuple(AthletePosition(rotation=r, twist=0.0, joints=joints) for r in (0, 1, 2, 3)),
            timestamps=(0.0, 0.5, 0.5, 1.0),
        )

        assert interpolate_position(timeline, 0.5).rotation == 2.0

    def test_scalar_and_joint_lerp_agree(self):
        """Test joint interpolation uses the same linear blend as scalars."""
        start = POSE_JOINTS[Pose.TUCK]
        end = POSE_JOINTS[Pose.STRAIGHT_ARMS_DOWN]
        blended = start.lerp(end, 0.25)

        assert lerp(2.0, 4.0, 0.25) == 2.5
        assert blended.left_thigh == pytest.approx(lerp(start.left_thigh, end.left_thigh, 0.25))
        assert blended.right_shin == pytest.approx(lerp(start.right_shin, end.right_shin, 0.25))


class TestRoutinePlayback:
    """Test RoutinePlayback timing and sampling."""

    def test_cycle_times(self, playback):
        """Test the bounce is a tenth of the jump."""
        assert playback.bounce_phase == pytest.approx(0.2)
        assert playback.skill_cycle_time == pytest.approx(2.2)
        assert playback.total_cycle_time == pytest.approx(4.4)

    def test_jump_height_is_ballistic(self, playback):
        """Test the jump leaves and returns to the bed with the apex midway."""
        assert playback.jump_height(0.0) == 0.0
        assert playback.jump_height(2.0) == pytest.approx(0.0)
        assert playback.jump_height(1.0) == pytest.approx(9.81 / 2)

    def test_bounce_dips_below_the_bed(self, playback):
        """Test the bed depresses during the bounce and recovers."""
        assert playback.bounce_height(0.0) == 0.0
        assert playback.bounce_height(0.1) < 0
        assert playback.bounce_height(0.2) == pytest.approx(0.0)

    def test_sample_in_jump(self, playback):
        """Test sampling at the start of the routine."""
        sample = playback.sample(0.0)

        assert sample.skill_index == 0
        assert sample.in_bounce is False
        assert sample.height == 0.0
        assert sample.root_height == pytest.approx(LEG_LENGTH)

    def test_sample_in_bounce(self, skills_by_name, animation_config):
        """Test joints ease from the landing pose back towards take-off."""
        timelines = convert_routine([skills_by_name["Seat Drop"]], config=animation_config)
        playback = RoutinePlayback(timelines, jump_phase=2.0)

        sample = playback.sample(2.1)

        first, last = timelines[0].positions[0], timelines[0].positions[-1]
        halfway = last.joints.lerp(first.joints, 0.5)
        assert sample.skill_index == 0
        assert sample.in_bounce is True
        assert sample.position.rotation == last.rotation
        assert sample.position.joints.left_thigh == pytest.approx(halfway.left_thigh)
        assert sample.position.joints.left_shoulder == pytest.approx(halfway.left_shoulder)

    def test_twist_offset_for_later_skills(self, playback):
        """Test twist completed by earlier skills is carried forward."""
        sample = playback.sample(playback.skill_cycle_time + 0.5)

        assert sample.skill_index == 1
        assert sample.position.twist == pytest.approx(0.5)

    def test_playback_loops(self, playback):
        """Test sampling past the end wraps around to the first skill."""
        sample = playback.sample(playback.total_cycle_time + 0.5)
        assert sample.skill_index == 0

    def test_empty_routine(self):
        """Test sampling nothing returns None."""
        assert RoutinePlayback([]).sample(1.0) is None

    def test_invalid_jump_phase(self):
        """Test a non-positive jump phase is rejected."""
        with pytest.raises(ValueError):
            RoutinePlayback([], jump_phase=0)

    def test_sample_to_dict(self, playback):
        """Test sample serialization."""
        data = playback.sample(0.5).to_dict()

        assert data["skillIndex"] == 0
        assert data["inBounce"] is False
        assert {"height", "rotation", "twist", "joints"} <= set(data)
