"""Bed-position continuity checks for routines.

A routine is valid when every skill starts in the bed position the previous
skill ended in. Empty and single-skill routines are trivially valid.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from trampsim.models.enums import BedPosition
from trampsim.models.skill import SkillDefinition


def _adjacent_pairs(routine: Sequence[SkillDefinition]):
    return zip(routine, routine[1:])


def is_routine_valid(routine: Sequence[SkillDefinition]) -> bool:
    return all(
        previous.ending_position == current.starting_position
        for previous, current in _adjacent_pairs(routine)
    )


def get_routine_validation_errors(routine: Sequence[SkillDefinition]) -> list[str]:
    """One message per broken adjacency, naming both skills and both positions."""
    errors: list[str] = []
    for previous, current in _adjacent_pairs(routine):
        if previous.ending_position != current.starting_position:
            errors.append(
                f'"{current.name}" cannot follow "{previous.name}" - '
                f"{previous.name} ends in {previous.ending_position.value} position "
                f"but {current.name} starts from {current.starting_position.value} position"
            )
    return errors


def get_compatible_skills(
    skills: Iterable[SkillDefinition], required_starting_position: BedPosition | str
) -> list[SkillDefinition]:
    """Skills that can be performed from ``required_starting_position``."""
    bed = BedPosition(required_starting_position)
    return [skill for skill in skills if skill.starting_position == bed]
