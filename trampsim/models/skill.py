"""Skill definition model.

A skill definition describes what a skill is (bed positions, somersault and
twist amounts, body shape), never when anything happens. Timing is derived
later by the keyframe converter.
"""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass
from typing import Iterable, Sequence

from trampsim.core.exceptions import SkillContractError
from trampsim.models.enums import BedPosition, Position

# Rotational offset (full turns) of the body when leaving each bed position
STARTING_POSITION_ROTATIONS: dict[BedPosition, float] = {
    BedPosition.STANDING: 0.0,
    BedPosition.BACK: -0.25,
    BedPosition.STOMACH: 0.25,
    BedPosition.SEATED: 0.0,
    BedPosition.HANDS_AND_KNEES: 0.25,
}


@dataclass(frozen=True)
class SkillDefinition:
    """Immutable description of a trampoline skill.

    Attributes:
        name: Display name; ``(name, position)`` is the identity of a skill
        starting_position: Bed position the skill takes off from
        ending_position: Bed position the skill lands in
        flips: Somersault rotations, fractional values allowed
        twists: Twist per flip slot; index 0 is the stall/first-flip segment
        position: Body shape used for this instance
        possible_positions: Shapes the same named skill can be performed in
        is_back_skill: Backward somersault family (inverts rotation sign)
    """

    name: str
    starting_position: BedPosition
    ending_position: BedPosition
    flips: float
    twists: tuple[float, ...]
    position: Position
    possible_positions: tuple[Position, ...] | None = None
    is_back_skill: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "starting_position", BedPosition(self.starting_position))
        object.__setattr__(self, "ending_position", BedPosition(self.ending_position))
        object.__setattr__(self, "position", Position(self.position))
        object.__setattr__(self, "twists", tuple(float(t) for t in self.twists))
        object.__setattr__(self, "flips", float(self.flips))
        if self.possible_positions is not None:
            object.__setattr__(
                self,
                "possible_positions",
                tuple(Position(p) for p in self.possible_positions),
            )

        if self.flips < 0 or math.isnan(self.flips):
            raise SkillContractError("flips", f"'{self.name}' has flips={self.flips}, expected >= 0")
        if self.possible_positions is not None:
            if not self.possible_positions:
                raise SkillContractError(
                    "possible_positions", f"'{self.name}' declares an empty position set"
                )
            if self.position not in self.possible_positions:
                raise SkillContractError(
                    "position",
                    f"'{self.name}' uses {self.position.value} which is not one of "
                    f"{[p.value for p in self.possible_positions]}",
                )

    @property
    def key(self) -> tuple[str, Position]:
        """Identity used for de-duplication and "same skill" comparisons."""
        return (self.name, self.position)

    @property
    def total_twists(self) -> float:
        return total_twists(self)

    @property
    def positions(self) -> tuple[Position, ...]:
        """Positions this skill may be performed in (its own when none are declared)."""
        return self.possible_positions or (self.position,)

    def with_position(self, position: Position | str) -> SkillDefinition:
        """Return a copy performed in another body position."""
        return dataclasses.replace(self, position=Position(position))


def total_twists(definition: SkillDefinition) -> float:
    """Sum of all twist slots, ignoring NaN entries."""
    return sum(t for t in definition.twists if not math.isnan(t))


def starting_offset(definition: SkillDefinition) -> float:
    return STARTING_POSITION_ROTATIONS[definition.starting_position]


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def flip_number(definition: SkillDefinition) -> int:
    """Effective somersault count.

    Rotation spent leaving a back/stomach/hands-and-knees take-off does not
    count towards a somersault, so a back-to-feet (0.25 flips from Back) is 0
    while a 3/4 back (0.75 flips from Standing) counts as 1.
    """
    return _round_half_up(definition.flips - abs(starting_offset(definition)))


def is_odd_half_twist(cumulative_twist: float) -> bool:
    """Whether the athlete faces backwards after this much accumulated twist."""
    return _round_half_up(cumulative_twist * 2) % 2 == 1


def rotation_multiplier(definition: SkillDefinition, incoming_twist: float = 0.0) -> int:
    """Visual rotation direction: -1 for back skills, flipped again by odd half twists."""
    multiplier = -1 if definition.is_back_skill else 1
    if is_odd_half_twist(incoming_twist):
        multiplier *= -1
    return multiplier


def starting_rotation(definition: SkillDefinition, incoming_twist: float = 0.0) -> float:
    """Take-off rotation, adjusted for twist parity but not for rotation direction."""
    parity = -1 if is_odd_half_twist(incoming_twist) else 1
    return starting_offset(definition) * parity


def unique_skills(skills: Iterable[SkillDefinition]) -> list[SkillDefinition]:
    """De-duplicate on ``(name, position)`` keeping the first occurrence."""
    seen: set[tuple[str, Position]] = set()
    out: list[SkillDefinition] = []
    for skill in skills:
        if skill.key in seen:
            continue
        seen.add(skill.key)
        out.append(skill)
    return out


Routine = Sequence[SkillDefinition]
