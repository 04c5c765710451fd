"""Editable routine with derived validity, difficulty and requirement results.

Nothing derived is cached on the builder: validity, errors, difficulty and
requirement results are recomputed from the current skill list on every read.
"""

from __future__ import annotations

import random
from typing import Sequence

from trampsim.ml.scoring.difficulty_scorer import DifficultyScorer, routine_difficulty_score
from trampsim.ml.scoring.requirement_rules import (
    are_all_requirements_met,
    validate_routine_requirements,
)
from trampsim.models.enums import Position
from trampsim.models.requirements import (
    NO_REQUIREMENTS,
    RequirementValidationResult,
    RoutineRequirement,
)
from trampsim.models.skill import SkillDefinition
from trampsim.services.routine_generator import RoutineGenerator
from trampsim.services.routine_validation import (
    get_routine_validation_errors,
    is_routine_valid,
)


class RoutineBuilder:
    """Mutable routine assembled from a skill pool.

    Example:
        >>> builder = RoutineBuilder(pool)
        >>> builder.add(back_flip, Position.PIKE)
        >>> builder.is_valid
        True
    """

    def __init__(
        self,
        pool: Sequence[SkillDefinition] = (),
        requirement: RoutineRequirement = NO_REQUIREMENTS,
        generator: RoutineGenerator | None = None,
        scorer: DifficultyScorer | None = None,
        womens_scoring: bool = False,
    ):
        self.pool = list(pool)
        self.requirement = requirement
        self.womens_scoring = womens_scoring
        self._generator = generator
        self._scorer = scorer
        self._skills: list[SkillDefinition] = []
        self._selected_positions: dict[str, Position] = {}

    @property
    def skills(self) -> tuple[SkillDefinition, ...]:
        return tuple(self._skills)

    def __len__(self) -> int:
        return len(self._skills)

    # ============== Editing ==============

    def add(self, definition: SkillDefinition, position: Position | str | None = None) -> None:
        """Append a skill, in ``position`` or the position selected for its name."""
        chosen = position or self._selected_positions.get(definition.name)
        self._skills.append(definition.with_position(chosen) if chosen else definition)

    def remove(self, index: int) -> None:
        """Remove the skill at ``index``; out-of-range indices are ignored."""
        if 0 <= index < len(self._skills):
            del self._skills[index]

    def move(self, from_index: int, to_index: int) -> None:
        """Move a skill; no-op moves and out-of-range indices are ignored."""
        if (
            to_index < 0
            or to_index >= len(self._skills)
            or from_index < 0
            or from_index >= len(self._skills)
            or from_index == to_index
        ):
            return
        skill = self._skills.pop(from_index)
        self._skills.insert(to_index, skill)

    def clear(self) -> None:
        self._skills.clear()

    def randomize(self, rng: random.Random | None = None) -> None:
        """Replace the routine with an unconstrained random walk over the pool."""
        if not self.pool:
            return
        generator = self._generator or RoutineGenerator(rng=rng, scorer=self._scorer)
        self._skills = generator.random_routine(self.pool)

    def select_position(self, skill_name: str, position: Position | str) -> None:
        """Toggle the default position used when adding skills named ``skill_name``."""
        position = Position(position)
        if self._selected_positions.get(skill_name) == position:
            del self._selected_positions[skill_name]
        else:
            self._selected_positions[skill_name] = position

    def selected_position(self, skill_name: str) -> Position | None:
        return self._selected_positions.get(skill_name)

    # ============== Derived State ==============

    @property
    def is_valid(self) -> bool:
        return is_routine_valid(self._skills)

    @property
    def validation_errors(self) -> list[str]:
        return get_routine_validation_errors(self._skills)

    @property
    def difficulty(self) -> float:
        return routine_difficulty_score(self._skills, self.womens_scoring, self._scorer)

    @property
    def requirement_results(self) -> list[RequirementValidationResult]:
        return validate_routine_requirements(self._skills, self.requirement)

    @property
    def meets_requirement(self) -> bool:
        return are_all_requirements_met(self.requirement_results)
