"""Tests for skill to keyframe conversion."""

import pytest

from trampsim.config.simulation_config_loader import AnimationConfig
from trampsim.models.animation import POSE_JOINTS
from trampsim.models.enums import BedPosition, Pose, Position
from trampsim.services.skill_converter import (
    RenderProperties,
    convert_routine,
    get_render_properties_for_skill,
    make_skill_frames,
    normalize_timestamps,
    skill_phases,
)


def _all_variants(pool):
    for skill in pool:
        for position in skill.positions:
            yield skill.with_position(position)


class TestNormalizeTimestamps:
    """Test normalize_timestamps."""

    def test_maps_onto_unit_interval(self):
        """Test first timestamp becomes 0 and last becomes 1."""
        assert normalize_timestamps([2.0, 3.0, 4.0]) == (0.0, 0.5, 1.0)

    def test_zero_duration(self):
        """Test a zero-length span maps everything to 0."""
        assert normalize_timestamps([1.0, 1.0, 1.0]) == (0.0, 0.0, 0.0)

    def test_empty(self):
        """Test empty input stays empty."""
        assert normalize_timestamps([]) == ()

    def test_uses_min_and_max(self):
        """Test out-of-order extremes still map onto [0, 1]."""
        assert normalize_timestamps([1.0, 3.0, 2.0, 5.0]) == (0.0, 0.5, 0.25, 1.0)


class TestRenderProperties:
    """Test get_render_properties_for_skill."""

    def test_default_budgets(self, skills_by_name, animation_config):
        """Test a plain somersault gets the default stall and kickout."""
        props = get_render_properties_for_skill(skills_by_name["Front Flip"], animation_config)

        assert props == RenderProperties(
            stall_rotation=0.1, kickout_rotation=0.5, position_transition_duration=0.15
        )

    def test_forward_skill_landing_on_back(self, skills_by_name, animation_config):
        """Test landing against the rotation shortens the kickout."""
        props = get_render_properties_for_skill(skills_by_name["3/4 Front Flip"], animation_config)

        assert props.stall_rotation == 0.1
        assert props.kickout_rotation == 0.25

    def test_forward_skill_from_back(self, skills_by_name, animation_config):
        """Test a forward take-off from the back gets a quarter-turn stall."""
        props = get_render_properties_for_skill(skills_by_name["Ball Out"], animation_config)
        assert props.stall_rotation == 0.25

    def test_back_skill_from_stomach(self, skills_by_name, animation_config):
        """Test a backward take-off from the stomach gets a quarter-turn stall."""
        props = get_render_properties_for_skill(skills_by_name["Cody"], animation_config)
        assert props.stall_rotation == 0.25

    def test_small_flip_budgets(self, skills_by_name, animation_config):
        """Test near-zero rotation gets small budgets."""
        props = get_render_properties_for_skill(skills_by_name["Back Drop"], animation_config)

        assert props.stall_rotation == 0.05
        assert props.kickout_rotation == 0.05

    def test_twisting_stall(self, make_skill, animation_config):
        """Test a twist in the first slot enlarges the stall."""
        skill = make_skill(twists=(0.5, 0.0))
        props = get_render_properties_for_skill(skill, animation_config)
        assert props.stall_rotation == 0.2


class TestNonFlipFrames:
    """Test keyframes of skills without an effective somersault."""

    def test_straight_jump(self, skills_by_name, animation_config):
        """Test a straight jump uses three keyframes."""
        timeline = make_skill_frames(skills_by_name["Straight Jump"], config=animation_config)

        assert timeline.timestamps == (0.0, 0.5, 1.0)
        assert timeline.positions[0].joints == POSE_JOINTS[Pose.STRAIGHT_ARMS_UP]
        assert timeline.positions[1].joints == POSE_JOINTS[Pose.STRAIGHT_ARMS_DOWN]

    def test_shaped_jump(self, skills_by_name, animation_config):
        """Test a shaped jump holds the take-off pose before the shape."""
        timeline = make_skill_frames(skills_by_name["Position Jump"], config=animation_config)

        assert timeline.timestamps == (0.0, 0.4, 0.5, 0.6, 1.0)
        assert timeline.positions[2].joints == POSE_JOINTS[Pose.TUCK]

    def test_half_twist_spreads_twist(self, skills_by_name, animation_config):
        """Test twist grows linearly over the keyframes."""
        timeline = make_skill_frames(skills_by_name["1/2 Twist"], config=animation_config)
        assert [p.twist for p in timeline.positions] == [0.0, 0.25, 0.5]

    def test_seat_drop_lands_in_pike(self, skills_by_name, animation_config):
        """Test landing pose follows the ending bed position."""
        timeline = make_skill_frames(skills_by_name["Seat Drop"], config=animation_config)
        assert timeline.positions[-1].joints == POSE_JOINTS[Pose.PIKE]


class TestFlipFrames:
    """Test keyframes of somersaulting skills."""

    def test_front_flip_tuck(self, skills_by_name, animation_config):
        """Test a front tuck rotates one turn forward without twist."""
        timeline = make_skill_frames(skills_by_name["Front Flip"], config=animation_config)

        assert len(timeline) == 6
        assert timeline.positions[0].rotation == 0.0
        assert timeline.positions[-1].rotation == pytest.approx(1.0)
        assert all(p.twist == 0.0 for p in timeline.positions)
        assert timeline.positions[-1].joints == POSE_JOINTS[Pose.STRAIGHT_ARMS_UP]

    def test_front_flip_phase_names(self, skills_by_name, animation_config):
        """Test phase order of a single tucked somersault."""
        _, phases = skill_phases(skills_by_name["Front Flip"], config=animation_config)

        assert [phase.name for phase in phases] == [
            "Stall Position",
            "Enter Position",
            "Final Position",
            "Kickout Position",
            "Landing Position",
        ]

    def test_enter_position_speed_is_blended(self, skills_by_name, animation_config):
        """Test entering a shape rotates at the mean of both pose speeds."""
        _, phases = skill_phases(skills_by_name["Front Flip"], config=animation_config)
        enter = phases[1]
        assert enter.speed == pytest.approx((2.5 + 1.0) / 2)

    def test_straight_skill_has_no_kickout(self, skills_by_name, animation_config):
        """Test a straight somersault rotates in one phase after the stall."""
        straight = skills_by_name["Back Flip"].with_position(Position.STRAIGHT)
        _, phases = skill_phases(straight, config=animation_config)

        assert [phase.name for phase in phases] == ["Stall Position", "Rotation Position"]

    def test_back_flip_rotates_backwards(self, skills_by_name, animation_config):
        """Test back skills rotate in the negative direction."""
        timeline = make_skill_frames(skills_by_name["Back Flip"], config=animation_config)
        assert timeline.positions[-1].rotation == pytest.approx(-1.0)

    def test_odd_half_twist_reverses_rotation(self, skills_by_name, animation_config):
        """Test an odd number of incoming half twists flips the visual direction."""
        timeline = make_skill_frames(
            skills_by_name["Back Flip"], incoming_cumulative_twist=0.5, config=animation_config
        )
        assert timeline.positions[-1].rotation == pytest.approx(1.0)

    def test_take_off_from_back(self, skills_by_name, animation_config):
        """Test the first keyframe carries the take-off rotation of a back start."""
        timeline = make_skill_frames(skills_by_name["Ball Out"], config=animation_config)

        assert timeline.positions[0].rotation == pytest.approx(-0.25)
        assert timeline.positions[-1].rotation == pytest.approx(1.0)

    def test_twist_lands_in_last_flip(self, skills_by_name, animation_config):
        """Test twist of a single twisting somersault is complete on landing."""
        timeline = make_skill_frames(skills_by_name["Rudy"], config=animation_config)
        assert timeline.final_twist == pytest.approx(1.5)

    def test_twist_slots_past_last_flip_are_absorbed(self, make_skill, animation_config):
        """Test extra twist slots fold into the final flip."""
        skill = make_skill(flips=1, twists=(0, 0.5, 0.5, 0.5))
        timeline = make_skill_frames(skill, config=animation_config)
        assert timeline.final_twist == pytest.approx(1.5)

    def test_nan_twist_slots_are_ignored(self, make_skill, animation_config):
        """Test NaN twist slots count as no twist."""
        skill = make_skill(flips=1, twists=(0, float("nan")))
        timeline = make_skill_frames(skill, config=animation_config)
        assert timeline.final_twist == 0.0

    def test_explicit_render_properties(self, skills_by_name, animation_config):
        """Test caller-supplied budgets override the derived ones."""
        props = RenderProperties(
            stall_rotation=0.3, kickout_rotation=0.2, position_transition_duration=0.15
        )
        _, phases = skill_phases(
            skills_by_name["Front Flip"], render_props=props, config=animation_config
        )

        assert phases[0].rotation_delta == pytest.approx(0.3)
        assert phases[-1].rotation_delta == pytest.approx(0.2)


class TestLibraryInvariants:
    """Test conversion invariants over every bundled skill and position."""

    def test_timestamps_are_normalized(self, skill_pool, animation_config):
        """Test timestamps start at 0, end at 1 and never decrease."""
        for skill in _all_variants(skill_pool):
            timestamps = make_skill_frames(skill, config=animation_config).timestamps

            assert timestamps[0] == 0.0, skill.key
            assert timestamps[-1] == pytest.approx(1.0), skill.key
            assert all(b >= a for a, b in zip(timestamps, timestamps[1:])), skill.key

    def test_final_twist_matches_definition(self, skill_pool, animation_config):
        """Test the last keyframe twist equals the total twist."""
        for skill in _all_variants(skill_pool):
            timeline = make_skill_frames(skill, config=animation_config)
            assert timeline.final_twist == pytest.approx(skill.total_twists), skill.key

    def test_rotation_span_matches_flips(self, skill_pool, animation_config):
        """Test first to last keyframe covers exactly the skill's flips."""
        for skill in _all_variants(skill_pool):
            positions = make_skill_frames(skill, config=animation_config).positions
            span = abs(positions[-1].rotation - positions[0].rotation)
            assert span == pytest.approx(skill.flips), skill.key

    def test_positions_and_timestamps_align(self, skill_pool, animation_config):
        """Test there is one timestamp per keyframe."""
        for skill in _all_variants(skill_pool):
            timeline = make_skill_frames(skill, config=animation_config)
            assert len(timeline.positions) == len(timeline.timestamps), skill.key

    def test_conversion_is_deterministic(self, skill_pool, animation_config):
        """Test converting twice yields identical timelines."""
        for skill in skill_pool:
            assert make_skill_frames(skill, config=animation_config) == make_skill_frames(
                skill, config=animation_config
            )


class TestConvertRoutine:
    """Test convert_routine."""

    def test_twist_carries_into_next_skill(self, skills_by_name, animation_config):
        """Test a barani reverses the visual direction of the following back flip."""
        timelines = convert_routine(
            [skills_by_name["Barani"], skills_by_name["Back Flip"]], config=animation_config
        )

        assert len(timelines) == 2
        assert timelines[1].positions[-1].rotation == pytest.approx(1.0)

    def test_full_twist_keeps_direction(self, skills_by_name, animation_config):
        """Test a whole twist leaves the following skill's direction unchanged."""
        timelines = convert_routine(
            [skills_by_name["Full"], skills_by_name["Back Flip"]], config=animation_config
        )
        assert timelines[1].positions[-1].rotation == pytest.approx(-1.0)

    def test_empty_routine(self, animation_config):
        """Test empty routine converts to no timelines."""
        assert convert_routine([], config=animation_config) == []

    def test_to_dict(self, skills_by_name, animation_config):
        """Test timeline serialization keys."""
        timeline = convert_routine([skills_by_name["Front Flip"]], config=animation_config)[0]
        data = timeline.to_dict()

        assert set(data) == {"positions", "timestamps"}
        assert set(data["positions"][0]) == {"rotation", "twist", "joints"}
        assert data["timestamps"][0] == 0.0


class TestOversizedBudgets:
    """Test budgets larger than the rotation they can occupy."""

    OVERSIZED = RenderProperties(
        stall_rotation=1.2, kickout_rotation=2.0, position_transition_duration=0.15
    )

    @staticmethod
    def _assert_timeline_invariants(timeline, skill):
        timestamps = timeline.timestamps
        assert timestamps[0] == 0.0, skill.key
        assert timestamps[-1] == pytest.approx(1.0), skill.key
        assert all(0.0 <= t <= 1.0 for t in timestamps), skill.key
        assert all(b >= a for a, b in zip(timestamps, timestamps[1:])), skill.key

        span = abs(timeline.positions[-1].rotation - timeline.positions[0].rotation)
        assert span == pytest.approx(skill.flips), skill.key
        assert timeline.final_twist == pytest.approx(skill.total_twists), skill.key

    def test_stall_stops_at_first_flip(self, skills_by_name, animation_config):
        """Test an oversized stall is cut at the end of the first flip."""
        skill = skills_by_name["Front Flip"]
        _, phases = skill_phases(skill, render_props=self.OVERSIZED, config=animation_config)
        timeline = make_skill_frames(skill, render_props=self.OVERSIZED, config=animation_config)

        assert phases[0].rotation_delta == pytest.approx(1.0)
        assert all(phase.rotation_delta >= 0 for phase in phases)
        assert timeline.timestamps == pytest.approx((0.0, 1.0, 1.0, 1.0, 1.0, 1.0))
        assert [p.rotation for p in timeline.positions] == pytest.approx(
            [0.0, 1.0, 1.0, 1.0, 1.0, 1.0]
        )

    def test_stall_from_back_covers_take_off_offset(self, skills_by_name, animation_config):
        """Test the stall budget counts rotation from a back take-off."""
        props = RenderProperties(
            stall_rotation=2.0, kickout_rotation=0.5, position_transition_duration=0.15
        )
        _, phases = skill_phases(
            skills_by_name["Ball Out"], render_props=props, config=animation_config
        )
        assert phases[0].rotation_delta == pytest.approx(1.25)

    def test_explicit_budgets_keep_invariants(self, skill_pool, animation_config):
        """Test oversized caller budgets still yield well-formed timelines."""
        for skill in _all_variants(skill_pool):
            timeline = make_skill_frames(
                skill, render_props=self.OVERSIZED, config=animation_config
            )
            self._assert_timeline_invariants(timeline, skill)

    def test_configured_budgets_keep_invariants(self, skill_pool):
        """Test oversized configured defaults still yield well-formed timelines."""
        config = AnimationConfig(
            default_stall_rotation=1.5,
            default_kickout_rotation=2.0,
            orientation_stall_rotation=1.5,
            twisting_stall_rotation=1.5,
        )
        for skill in _all_variants(skill_pool):
            self._assert_timeline_invariants(make_skill_frames(skill, config=config), skill)
