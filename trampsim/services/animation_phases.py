"""Phase state folding for keyframe synthesis.

A skill animation is described as an ordered list of ``Phase`` descriptors
(rotation and twist deltas, a target pose and an angular speed). Folding them
over a ``PhaseState`` yields one state per keyframe, so each phase can be
tested in isolation.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from itertools import accumulate
from typing import Iterable

from trampsim.models.enums import Pose


@dataclass(frozen=True)
class PhaseState:
    """Accumulated motion after a phase.

    Attributes:
        rotation: Cumulative rotation in full turns, before the direction multiplier
        twist: Cumulative twist within the skill in full turns
        elapsed: Un-normalized time (rotation divided by angular speed)
        pose: Joint configuration held at the end of the phase
    """

    rotation: float
    twist: float
    elapsed: float
    pose: Pose


@dataclass(frozen=True)
class Phase:
    name: str
    rotation_delta: float
    twist_delta: float
    pose: Pose
    speed: float = 1.0

    def __post_init__(self) -> None:
        if self.speed <= 0:
            raise ValueError(f"Phase '{self.name}' needs a positive speed, got {self.speed}")

    @property
    def duration(self) -> float:
        return self.rotation_delta / self.speed


def advance(state: PhaseState, phase: Phase) -> PhaseState:
    """Apply one phase to a state."""
    return replace(
        state,
        rotation=state.rotation + phase.rotation_delta,
        twist=state.twist + phase.twist_delta,
        elapsed=state.elapsed + phase.duration,
        pose=phase.pose,
    )


def run_phases(initial: PhaseState, phases: Iterable[Phase]) -> list[PhaseState]:
    """Fold ``phases`` over ``initial``; returns the state after each phase."""
    return list(accumulate(phases, advance, initial=initial))[1:]
