"""Skill to keyframe conversion.

Turns a ``SkillDefinition`` into a ``SkillTimeline``: a list of athlete
poses (rotation, twist, joint angles) with timestamps normalized to [0, 1].

Somersaulting skills are synthesized as an ordered list of phases (stall,
enter position, final position, kickout, landing) that are folded over a
``PhaseState``. Time advances by rotation divided by the angular speed of the
body position, so tucked segments take less time than straight ones.
Skills that do not somersault use a short fixed keyframe sequence instead.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

from trampsim.config.simulation_config_loader import AnimationConfig, get_simulation_config
from trampsim.models.animation import (
    BED_POSITION_POSES,
    AthletePosition,
    SkillTimeline,
    joints_for,
    pose_for_position,
)
from trampsim.models.enums import BedPosition, Pose, Position
from trampsim.models.skill import (
    SkillDefinition,
    flip_number,
    rotation_multiplier,
    starting_rotation,
    total_twists,
)
from trampsim.services.animation_phases import Phase, PhaseState, run_phases

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderProperties:
    """Presentation budgets for one skill (rotations in full turns)."""

    stall_rotation: float
    kickout_rotation: float
    position_transition_duration: float


def get_render_properties_for_skill(
    definition: SkillDefinition, config: AnimationConfig | None = None
) -> RenderProperties:
    """Derive stall and kickout budgets from the shape of a skill.

    Near-zero flips get small budgets. Take-offs and landings against the
    direction of rotation (back on a forward skill, stomach on a backward
    one) get a quarter turn. A twist during the stall enlarges the stall.
    """
    animation = config or get_simulation_config().animation

    stall = animation.default_stall_rotation
    kickout = animation.default_kickout_rotation

    if definition.flips <= animation.small_flip_threshold:
        stall = animation.small_flip_stall_rotation
        kickout = animation.small_flip_kickout_rotation

    if (definition.starting_position == BedPosition.BACK and not definition.is_back_skill) or (
        definition.starting_position == BedPosition.STOMACH and definition.is_back_skill
    ):
        stall = animation.orientation_stall_rotation

    if (definition.ending_position == BedPosition.BACK and not definition.is_back_skill) or (
        definition.ending_position == BedPosition.STOMACH and definition.is_back_skill
    ):
        kickout = animation.orientation_kickout_rotation

    if _twist_slot(definition.twists, 0) > 0:
        stall = animation.twisting_stall_rotation

    return RenderProperties(
        stall_rotation=stall,
        kickout_rotation=kickout,
        position_transition_duration=animation.position_transition_duration,
    )


def normalize_timestamps(timestamps: Sequence[float]) -> tuple[float, ...]:
    """Map timestamps onto [0, 1] by their min and max; a zero-length span maps everything to 0."""
    if not timestamps:
        return ()
    start = min(timestamps)
    duration = max(timestamps) - start
    if duration == 0:
        return tuple(0.0 for _ in timestamps)
    return tuple((t - start) / duration for t in timestamps)


def _twist_slot(twists: Sequence[float], index: int) -> float:
    if index >= len(twists) or math.isnan(twists[index]):
        return 0.0
    return twists[index]


def _remaining_twist(twists: Sequence[float], index: int) -> float:
    return sum(t for t in twists[index:] if not math.isnan(t))


def _make_non_flip_frames(
    definition: SkillDefinition, incoming_twist: float
) -> SkillTimeline:
    multiplier = rotation_multiplier(definition, incoming_twist)
    initial_rotation = starting_rotation(definition, incoming_twist)
    twist = total_twists(definition)
    start_pose = BED_POSITION_POSES[definition.starting_position]
    end_pose = BED_POSITION_POSES[definition.ending_position]
    shape_pose = pose_for_position(definition.position)

    if definition.position != Position.STRAIGHT:
        keyframes = [
            (start_pose, 0.0),
            (start_pose, 0.4),
            (shape_pose, 0.5),
            (end_pose, 0.6),
            (end_pose, 1.0),
        ]
    else:
        keyframes = [(start_pose, 0.0), (shape_pose, 0.5), (end_pose, 1.0)]

    positions = tuple(
        AthletePosition(
            rotation=definition.flips * t * multiplier + initial_rotation,
            twist=twist * t,
            joints=joints_for(pose),
        )
        for pose, t in keyframes
    )
    return SkillTimeline(positions=positions, timestamps=tuple(t for _, t in keyframes))


def _flip_phases(
    definition: SkillDefinition,
    flip_index: int,
    flip_start: float,
    final_rotation: float,
    previous_pose: Pose,
    render_props: RenderProperties,
    animation: AnimationConfig,
) -> tuple[list[Phase], Pose, bool]:
    """Phases of a single flip, the pose it ends the shaped segment in, and whether it is last.

    Entering a new shape rotates at the mean of the previous and the new pose
    speed, so a tuck entered from a straight stall is slower than the tuck itself.
    """
    flip_final = min(flip_index, abs(final_rotation))
    rotation_delta = max(0.0, flip_final - flip_start)
    is_last = flip_final >= abs(final_rotation)

    # The last flip absorbs any twist slots past the final flip index
    if is_last:
        twist = _remaining_twist(definition.twists, flip_index)
    else:
        twist = _twist_slot(definition.twists, flip_index)

    shape_pose = pose_for_position(definition.position)
    segment_pose = shape_pose
    if twist > 0 and not is_last:
        segment_pose = Pose.STRAIGHT_ARMS_DOWN
    speed = animation.speed_for(segment_pose.value)
    straight_speed = animation.speed_for(Pose.STRAIGHT_ARMS_DOWN.value)
    landing_pose = BED_POSITION_POSES[definition.ending_position]
    needs_kickout = is_last and segment_pose != Pose.STRAIGHT_ARMS_DOWN

    kickout = min(render_props.kickout_rotation, max(rotation_delta, 0.0)) if is_last else 0.0
    rotation_in_position = rotation_delta - kickout
    transition = max(0.0, min(animation.transition_rotation, rotation_in_position / 2))

    phases: list[Phase] = []
    entered = 0.0
    if segment_pose != previous_pose:
        previous_speed = animation.speed_for(previous_pose.value)
        entered = transition
        rotation_in_position -= transition
        phases.append(
            Phase("Enter Position", transition, 0.0, segment_pose, (speed + previous_speed) / 2)
        )

    if needs_kickout:
        rotation_in_position -= transition
        phases.append(Phase("Final Position", rotation_in_position, 0.0, shape_pose, speed))

        # Twist is spread over the kickout in proportion to time spent in each part
        kickout_speed = (speed + straight_speed) / 2
        kickout_time = transition / kickout_speed
        total_time = kickout_time + kickout / straight_speed
        twist_at_kickout = (kickout_time / total_time) * twist if total_time > 0 else 0.0

        phases.append(
            Phase("Kickout Position", transition, twist_at_kickout, Pose.STRAIGHT_ARMS_DOWN, kickout_speed)
        )
        phases.append(
            Phase("Landing Position", kickout, twist - twist_at_kickout, landing_pose, straight_speed)
        )
    else:
        phases.append(
            Phase(
                "Rotation Position",
                rotation_delta - entered,
                twist,
                landing_pose if is_last else segment_pose,
                speed,
            )
        )

    return phases, segment_pose, is_last


def skill_phases(
    definition: SkillDefinition,
    incoming_cumulative_twist: float = 0.0,
    render_props: RenderProperties | None = None,
    config: AnimationConfig | None = None,
) -> tuple[PhaseState, list[Phase]]:
    """Initial state and ordered phases of a somersaulting skill."""
    animation = config or get_simulation_config().animation
    props = render_props or get_render_properties_for_skill(definition, animation)

    multiplier = rotation_multiplier(definition, incoming_cumulative_twist)
    initial_rotation = starting_rotation(definition, incoming_cumulative_twist)

    initial = PhaseState(
        rotation=initial_rotation * multiplier,
        twist=0.0,
        elapsed=0.0,
        pose=BED_POSITION_POSES[definition.starting_position],
    )

    final_rotation = definition.flips + initial_rotation * multiplier
    # The stall may not run past the first flip boundary
    stall_budget = max(0.0, min(1.0, abs(final_rotation)) - initial.rotation)
    stall = Phase(
        "Stall Position",
        min(props.stall_rotation, stall_budget),
        _twist_slot(definition.twists, 0),
        Pose.STRAIGHT_ARMS_DOWN,
        animation.speed_for(Pose.STRAIGHT_ARMS_DOWN.value),
    )
    phases = [stall]

    flip_start = initial.rotation + stall.rotation_delta
    previous_pose = stall.pose
    flip_index = 1
    is_last = False
    while not is_last:
        flip, previous_pose, is_last = _flip_phases(
            definition, flip_index, flip_start, final_rotation, previous_pose, props, animation
        )
        phases.extend(flip)
        # Each flip's phases sum to the flip boundary
        flip_start = min(flip_index, abs(final_rotation))
        flip_index += 1

    return initial, phases


def make_skill_frames(
    definition: SkillDefinition,
    incoming_cumulative_twist: float = 0.0,
    render_props: RenderProperties | None = None,
    config: AnimationConfig | None = None,
) -> SkillTimeline:
    """Convert a skill definition into a normalized keyframe timeline.

    Args:
        definition: Skill to animate
        incoming_cumulative_twist: Twist completed by preceding skills; an odd
            half-twist count reverses the visual rotation direction
        render_props: Stall/kickout budgets, derived from the skill when omitted
        config: Animation configuration, the loaded simulation config when omitted

    Returns:
        SkillTimeline whose timestamps start at 0, end at 1 and never decrease
    """
    if flip_number(definition) == 0:
        return _make_non_flip_frames(definition, incoming_cumulative_twist)

    multiplier = rotation_multiplier(definition, incoming_cumulative_twist)
    initial, phases = skill_phases(
        definition, incoming_cumulative_twist, render_props, config
    )
    states = run_phases(initial, phases)

    # The first keyframe keeps the raw take-off rotation
    positions = [
        AthletePosition(
            rotation=starting_rotation(definition, incoming_cumulative_twist),
            twist=0.0,
            joints=joints_for(initial.pose),
        )
    ]
    positions.extend(
        AthletePosition(
            rotation=state.rotation * multiplier,
            twist=state.twist,
            joints=joints_for(state.pose),
        )
        for state in states
    )
    timestamps = normalize_timestamps([initial.elapsed] + [state.elapsed for state in states])

    logger.debug(
        f"Converted '{definition.name}' ({definition.position.value}) into "
        f"{len(positions)} keyframes"
    )
    return SkillTimeline(positions=tuple(positions), timestamps=timestamps)


def convert_routine(
    routine: Sequence[SkillDefinition], config: AnimationConfig | None = None
) -> list[SkillTimeline]:
    """Convert a routine, carrying the twist completed so far into each skill."""
    timelines: list[SkillTimeline] = []
    cumulative_twist = 0.0
    for definition in routine:
        timeline = make_skill_frames(definition, cumulative_twist, config=config)
        timelines.append(timeline)
        cumulative_twist += timeline.final_twist
    return timelines
