"""Keyframe data produced by the skill converter.

Rotation and twist are in full turns, joint angles in radians.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields
from typing import Any

from trampsim.models.enums import BedPosition, Pose, Position


@dataclass(frozen=True)
class JointAngles:
    left_shoulder: float
    right_shoulder: float
    left_thigh: float
    right_thigh: float
    left_shin: float
    right_shin: float

    def lerp(self, other: JointAngles, factor: float) -> JointAngles:
        """Linear interpolation towards ``other``."""
        return JointAngles(
            **{
                f.name: lerp(getattr(self, f.name), getattr(other, f.name), factor)
                for f in fields(self)
            }
        )

    def to_dict(self) -> dict[str, float]:
        return {
            "leftShoulder": self.left_shoulder,
            "rightShoulder": self.right_shoulder,
            "leftThigh": self.left_thigh,
            "rightThigh": self.right_thigh,
            "leftShin": self.left_shin,
            "rightShin": self.right_shin,
        }


@dataclass(frozen=True)
class AthletePosition:
    """A single keyframe pose."""

    rotation: float
    twist: float
    joints: JointAngles

    def to_dict(self) -> dict[str, Any]:
        return {
            "rotation": self.rotation,
            "twist": self.twist,
            "joints": self.joints.to_dict(),
        }


@dataclass(frozen=True)
class SkillTimeline:
    """Animation of one skill: keyframes with normalized timestamps in [0, 1]."""

    positions: tuple[AthletePosition, ...]
    timestamps: tuple[float, ...]

    def __len__(self) -> int:
        return len(self.positions)

    @property
    def final_twist(self) -> float:
        return self.positions[-1].twist if self.positions else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "positions": [p.to_dict() for p in self.positions],
            "timestamps": list(self.timestamps),
        }


def lerp(start: float, end: float, factor: float) -> float:
    return start + (end - start) * factor


# Shoulders at 3*pi/2 rather than -pi/2 so interpolation from pi takes the short path
POSE_JOINTS: dict[Pose, JointAngles] = {
    Pose.TUCK: JointAngles(
        left_shoulder=3 * math.pi / 2,
        right_shoulder=3 * math.pi / 2,
        left_thigh=-3 * math.pi / 4,
        right_thigh=-3 * math.pi / 4,
        left_shin=3 * math.pi / 4,
        right_shin=3 * math.pi / 4,
    ),
    Pose.PIKE: JointAngles(
        left_shoulder=3 * math.pi / 2,
        right_shoulder=3 * math.pi / 2,
        left_thigh=-3 * math.pi / 4,
        right_thigh=-3 * math.pi / 4,
        left_shin=0.0,
        right_shin=0.0,
    ),
    Pose.STRADDLE: JointAngles(
        left_shoulder=3 * math.pi / 2,
        right_shoulder=3 * math.pi / 2,
        left_thigh=-math.pi / 2,
        right_thigh=-math.pi / 2,
        left_shin=0.0,
        right_shin=0.0,
    ),
    Pose.STRAIGHT_ARMS_UP: JointAngles(
        left_shoulder=math.pi,
        right_shoulder=math.pi,
        left_thigh=0.0,
        right_thigh=0.0,
        left_shin=0.0,
        right_shin=0.0,
    ),
    Pose.STRAIGHT_ARMS_DOWN: JointAngles(
        left_shoulder=2 * math.pi,
        right_shoulder=2 * math.pi,
        left_thigh=0.0,
        right_thigh=0.0,
        left_shin=0.0,
        right_shin=0.0,
    ),
    Pose.HANDS_AND_KNEES: JointAngles(
        left_shoulder=3 * math.pi / 2,
        right_shoulder=3 * math.pi / 2,
        left_thigh=-math.pi / 2,
        right_thigh=-math.pi / 2,
        left_shin=math.pi / 2,
        right_shin=math.pi / 2,
    ),
}

BED_POSITION_POSES: dict[BedPosition, Pose] = {
    BedPosition.STANDING: Pose.STRAIGHT_ARMS_UP,
    BedPosition.BACK: Pose.STRAIGHT_ARMS_DOWN,
    BedPosition.STOMACH: Pose.STRAIGHT_ARMS_UP,
    BedPosition.SEATED: Pose.PIKE,
    BedPosition.HANDS_AND_KNEES: Pose.HANDS_AND_KNEES,
}


def pose_for_position(position: Position) -> Pose:
    """Body position values double as pose names."""
    return Pose(position.value)


def joints_for(pose: Pose) -> JointAngles:
    return POSE_JOINTS[pose]
