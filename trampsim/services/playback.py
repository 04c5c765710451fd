"""Sampling of converted routines over time.

Each skill occupies one cycle: a ballistic jump phase during which the
skill's keyframes play out, followed by a bounce phase (one tenth of the
jump) in contact with the bed where the joints ease from the landing pose
back to the take-off pose. Twist completed by earlier skills is carried into
later ones so the athlete keeps facing the right way.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np

from trampsim.models.animation import AthletePosition, SkillTimeline, lerp

GRAVITY = -9.81  # m/s^2
LEG_LENGTH = 2 * 0.48 + 0.1  # hip to feet, metres


def interpolate_position(timeline: SkillTimeline, t: float) -> AthletePosition:
    """Linear interpolation between the keyframes bracketing normalized time ``t``.

    Times outside [0, 1] clamp to the first or last keyframe.
    """
    positions = timeline.positions
    timestamps = np.asarray(timeline.timestamps, dtype=float)
    if len(positions) == 1 or t <= timestamps[0]:
        return positions[0]
    if t >= timestamps[-1]:
        return positions[-1]

    index = int(np.searchsorted(timestamps, t, side="right")) - 1
    index = min(max(index, 0), len(positions) - 2)
    start, end = timestamps[index], timestamps[index + 1]
    factor = (t - start) / (end - start) if end > start else 1.0

    current, following = positions[index], positions[index + 1]
    return AthletePosition(
        rotation=lerp(current.rotation, following.rotation, factor),
        twist=lerp(current.twist, following.twist, factor),
        joints=current.joints.lerp(following.joints, factor),
    )


@dataclass(frozen=True)
class PlaybackSample:
    skill_index: int
    height: float
    position: AthletePosition
    in_bounce: bool

    @property
    def root_height(self) -> float:
        """Hip height; feet go below the bed surface during the bounce."""
        return self.height + LEG_LENGTH

    def to_dict(self) -> dict[str, Any]:
        return {
            "skillIndex": self.skill_index,
            "height": self.root_height,
            "inBounce": self.in_bounce,
            **self.position.to_dict(),
        }


class RoutinePlayback:
    """Time-based sampler over a converted routine.

    Example:
        >>> playback = RoutinePlayback(convert_routine(routine))
        >>> sample = playback.sample(0.75)
        >>> sample.skill_index
        0
    """

    def __init__(
        self,
        timelines: Sequence[SkillTimeline],
        jump_phase: float = 2.0,
        gravity: float = GRAVITY,
    ):
        if jump_phase <= 0:
            raise ValueError(f"jump_phase must be > 0, got {jump_phase}")
        self.timelines = list(timelines)
        self.jump_phase = jump_phase
        self.gravity = gravity

        self._twist_offsets: list[float] = []
        completed = 0.0
        for timeline in self.timelines:
            self._twist_offsets.append(completed)
            completed += timeline.final_twist

    @property
    def bounce_phase(self) -> float:
        return self.jump_phase / 10

    @property
    def skill_cycle_time(self) -> float:
        return self.jump_phase + self.bounce_phase

    @property
    def total_cycle_time(self) -> float:
        return self.skill_cycle_time * len(self.timelines)

    def jump_height(self, t: float) -> float:
        """Feet height ``t`` seconds into the jump phase (zero at both ends)."""
        return 0.5 * self.gravity * t * t - (self.gravity * self.jump_phase / 2) * t

    def bounce_height(self, t: float) -> float:
        """Bed depression ``t`` seconds into the bounce phase."""
        landing_velocity = self.gravity * self.jump_phase * 0.5
        takeoff_velocity = -landing_velocity
        acceleration = (takeoff_velocity - landing_velocity) / self.bounce_phase
        return landing_velocity * t + 0.5 * acceleration * t * t

    def sample(self, elapsed: float) -> PlaybackSample | None:
        """Athlete state ``elapsed`` seconds after playback started; loops forever."""
        if not self.timelines:
            return None

        in_routine = elapsed % self.total_cycle_time
        index = min(int(in_routine // self.skill_cycle_time), len(self.timelines) - 1)
        cycle_time = in_routine - index * self.skill_cycle_time
        timeline = self.timelines[index]
        twist_offset = self._twist_offsets[index]

        if cycle_time <= self.jump_phase:
            position = interpolate_position(timeline, cycle_time / self.jump_phase)
            return PlaybackSample(
                skill_index=index,
                height=self.jump_height(cycle_time),
                position=AthletePosition(
                    rotation=position.rotation,
                    twist=position.twist + twist_offset,
                    joints=position.joints,
                ),
                in_bounce=False,
            )

        # Rotation and twist hold on the bed; only the joints move
        bounce_time = cycle_time - self.jump_phase
        progress = min(bounce_time / self.bounce_phase, 1.0)
        first, last = timeline.positions[0], timeline.positions[-1]
        return PlaybackSample(
            skill_index=index,
            height=self.bounce_height(bounce_time),
            position=AthletePosition(
                rotation=last.rotation,
                twist=last.twist + twist_offset,
                joints=last.joints.lerp(first.joints, progress),
            ),
            in_bounce=True,
        )
