"""
Routine Generation Service

Assembles routines from a skill pool, either as an unconstrained random walk
over bed-position-compatible skills or as a retry-until-compliant search
against a ``RoutineRequirement``.

Search strategy for requirements:
- Template: when the requirement places skills by index, those skills are
  placed directly and remaining slots are filled with chaining skills
- Strict: up to ``max_attempts`` randomized walks honouring the per-element
  difficulty cap, start/end bed positions and no-duplicates
- Relaxed: one more walk ignoring the difficulty cap

The generator never raises for an empty pool or an unsatisfiable
requirement. It returns a ``GenerationResult`` whose ``status`` tells the
caller whether the routine actually satisfies the requirement.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from trampsim.config.simulation_config_loader import GeneratorConfig, get_simulation_config
from trampsim.core.logging import get_logger
from trampsim.ml.scoring.difficulty_scorer import DifficultyScorer, get_difficulty_scorer
from trampsim.ml.scoring.requirement_rules import failed_rules
from trampsim.models.enums import (
    FREE_POSITION,
    BedPosition,
    GenerationStatus,
    Position,
    RuleKind,
)
from trampsim.models.requirements import RoutineRequirement
from trampsim.models.skill import SkillDefinition
from trampsim.services.routine_validation import get_compatible_skills

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationResult:
    """Routine produced by the generator and how far it meets the requirement."""

    routine: tuple[SkillDefinition, ...]
    status: GenerationStatus
    compliant: bool
    relaxed: bool = False
    attempts: int = 0
    failed_rules: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "routine": [f"{skill.name} ({skill.position.value})" for skill in self.routine],
            "status": self.status.value,
            "compliant": self.compliant,
            "relaxed": self.relaxed,
            "attempts": self.attempts,
            "failedRules": list(self.failed_rules),
        }


@dataclass(frozen=True)
class WalkConstraints:
    """Per-walk constraints read from a requirement's structured rule params."""

    length: int
    start_position: BedPosition | None = None
    end_position: BedPosition | None = None
    max_element_difficulty: float | None = None
    no_duplicates: bool = False

    @classmethod
    def from_requirement(
        cls, requirement: RoutineRequirement, default_length: int
    ) -> WalkConstraints:
        start = requirement.first_rule(RuleKind.START_POSITION)
        end = requirement.first_rule(RuleKind.END_POSITION)
        max_element = requirement.rules_of_kind(RuleKind.MAX_ELEMENT_DIFFICULTY)
        return cls(
            length=target_length(requirement, default_length),
            start_position=start.params["position"] if start else None,
            end_position=end.params["position"] if end else None,
            max_element_difficulty=(
                min(rule.params["max_difficulty"] for rule in max_element) if max_element else None
            ),
            no_duplicates=requirement.first_rule(RuleKind.NO_DUPLICATES) is not None,
        )


def target_length(requirement: RoutineRequirement, default_length: int) -> int:
    """Routine length implied by the requirement's count rules."""
    exact = requirement.first_rule(RuleKind.EXACT_SKILLS)
    if exact:
        return exact.params["count"]
    maximum = requirement.first_rule(RuleKind.MAX_SKILLS)
    if maximum:
        return maximum.params["count"]
    minimum = requirement.first_rule(RuleKind.MIN_SKILLS)
    if minimum:
        return max(default_length, minimum.params["count"])
    return default_length


def apply_random_position(
    skill: SkillDefinition,
    rng: random.Random,
    positions: Sequence[Position] | None = None,
) -> SkillDefinition:
    """Copy of ``skill`` in a position drawn from ``positions`` (its possible positions by default)."""
    choices = list(positions) if positions is not None else list(skill.positions)
    if not choices:
        return skill
    return skill.with_position(rng.choice(choices))


def generate_valid_random_routine(
    pool: Iterable[SkillDefinition],
    max_length: int,
    rng: random.Random | None = None,
) -> list[SkillDefinition]:
    """Random walk over bed-position-compatible skills.

    Starts from a Standing skill (any skill when none exist) and keeps picking
    skills that start where the previous one ended. Skills are removed from the
    candidates by name once used. Stops early when nothing compatible remains.
    """
    rng = rng or random.Random()
    available = list(pool)
    if not available or max_length <= 0:
        return []

    starters = get_compatible_skills(available, BedPosition.STANDING) or available
    first = rng.choice(starters)
    routine = [apply_random_position(first, rng)]
    available = [skill for skill in available if skill.name != first.name]

    while len(routine) < max_length and available:
        compatible = get_compatible_skills(available, routine[-1].ending_position)
        if not compatible:
            break
        chosen = rng.choice(compatible)
        routine.append(apply_random_position(chosen, rng))
        available = [skill for skill in available if skill.name != chosen.name]

    return routine


class RoutineGenerator:
    """Requirement-aware routine generator.

    Example:
        >>> generator = RoutineGenerator(rng=random.Random(7))
        >>> result = generator.generate(pool, requirement)
        >>> result.status
        <GenerationStatus.COMPLIANT: 'COMPLIANT'>
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        config: GeneratorConfig | None = None,
        scorer: DifficultyScorer | None = None,
    ):
        if rng is None:
            from trampsim.config.settings import get_settings

            rng = random.Random(get_settings().random_seed)
        self._rng = rng
        self._config = config or get_simulation_config().generator
        self._scorer = scorer or get_difficulty_scorer()
        self._log = get_logger(__name__)

    @property
    def config(self) -> GeneratorConfig:
        return self._config

    def random_routine(
        self, pool: Iterable[SkillDefinition], max_length: int | None = None
    ) -> list[SkillDefinition]:
        length = max_length if max_length is not None else self._config.max_routine_skills
        return generate_valid_random_routine(pool, length, self._rng)

    def generate(
        self,
        pool: Iterable[SkillDefinition],
        requirement: RoutineRequirement | None = None,
        max_attempts: int | None = None,
    ) -> GenerationResult:
        """Generate a routine, trying to satisfy ``requirement``.

        Args:
            pool: Available skills (one entry per name/position variant)
            requirement: Rules to satisfy; None or an empty rule set means unconstrained
            max_attempts: Strict walk budget, the configured default when omitted

        Returns:
            GenerationResult; callers should check ``compliant`` before trusting it
        """
        skills = list(pool)
        attempts_budget = max_attempts if max_attempts is not None else self._config.max_attempts

        if requirement is None or not requirement.rules:
            routine = self.random_routine(skills)
            return GenerationResult(
                routine=tuple(routine),
                status=GenerationStatus.UNCONSTRAINED,
                compliant=True,
                attempts=1,
            )

        if not skills:
            self._log.warning(
                "routine_generation_empty_pool", requirement_id=requirement.id
            )
            return self._result([], requirement, attempts=0, relaxed=False)

        if requirement.rules_of_kind(RuleKind.SKILL_AT_INDEX):
            routine = self._from_template(skills, requirement)
            return self._result(routine, requirement, attempts=1, relaxed=False)

        constraints = WalkConstraints.from_requirement(
            requirement, self._config.max_routine_skills
        )

        eligible = self._eligible(skills, constraints.max_element_difficulty)

        best: list[SkillDefinition] = []
        best_failures: int | None = None
        for attempt in range(1, attempts_budget + 1):
            routine = self._constrained_walk(eligible, constraints)
            failures = len(failed_rules(routine, requirement))
            if failures == 0:
                logger.info(
                    f"Generated compliant routine for '{requirement.id}' "
                    f"after {attempt} attempt(s)"
                )
                return self._result(routine, requirement, attempts=attempt, relaxed=False)
            if best_failures is None or failures < best_failures:
                best, best_failures = routine, failures

        if not self._config.relaxed_retry:
            return self._result(best, requirement, attempts=attempts_budget, relaxed=False)

        logger.info(f"No compliant routine for '{requirement.id}', retrying without the difficulty cap")
        routine = self._constrained_walk(self._eligible(skills, None), constraints)
        return self._result(routine, requirement, attempts=attempts_budget + 1, relaxed=True)

    # =========================================================================
    # Template placement
    # =========================================================================

    def _from_template(
        self, pool: list[SkillDefinition], requirement: RoutineRequirement
    ) -> list[SkillDefinition]:
        placements = {
            rule.params["index"]: rule.params
            for rule in requirement.rules_of_kind(RuleKind.SKILL_AT_INDEX)
        }
        length = max(
            target_length(requirement, self._config.max_routine_skills),
            max(placements) + 1,
        )

        slots: list[SkillDefinition | None] = [None] * length
        for index, params in placements.items():
            slots[index] = self._place(pool, params["skill_name"], params["position"])

        for index in range(length):
            if slots[index] is None:
                previous = slots[index - 1] if index > 0 else None
                following = slots[index + 1] if index + 1 < length else None
                slots[index] = self._fill_gap(pool, previous, following)

        routine = [skill for skill in slots if skill is not None]
        if len(routine) < length:
            self._log.warning(
                "routine_template_incomplete",
                requirement_id=requirement.id,
                placed=len(routine),
                expected=length,
            )
        return routine

    def _place(
        self,
        pool: list[SkillDefinition],
        skill_name: str,
        position: Position | str | None,
    ) -> SkillDefinition | None:
        matches = [skill for skill in pool if skill.name == skill_name]
        if not matches:
            logger.warning(f"Template skill '{skill_name}' is not in the skill pool")
            return None

        if position is None or position == FREE_POSITION:
            return apply_random_position(self._rng.choice(matches), self._rng)

        for skill in matches:
            if position in skill.positions:
                return skill.with_position(position)

        logger.warning(f"Template skill '{skill_name}' cannot be performed in {position}")
        return apply_random_position(matches[0], self._rng)

    def _fill_gap(
        self,
        pool: list[SkillDefinition],
        previous: SkillDefinition | None,
        following: SkillDefinition | None,
    ) -> SkillDefinition | None:
        candidates = pool
        if previous is not None:
            candidates = get_compatible_skills(candidates, previous.ending_position)
        chaining = [
            skill
            for skill in candidates
            if following is None or skill.ending_position == following.starting_position
        ]
        options = chaining or candidates
        if not options:
            return None
        return apply_random_position(self._rng.choice(options), self._rng)

    # =========================================================================
    # Constrained random walk
    # =========================================================================

    def _eligible(
        self, pool: list[SkillDefinition], max_element_difficulty: float | None
    ) -> list[tuple[SkillDefinition, tuple[Position, ...]]]:
        """Pool entries with the positions that stay under the per-element cap."""
        eligible = []
        for skill in pool:
            positions = tuple(
                position
                for position in skill.positions
                if max_element_difficulty is None
                or self._scorer.score(skill.with_position(position)) <= max_element_difficulty
            )
            if positions:
                eligible.append((skill, positions))
        return eligible

    def _constrained_walk(
        self,
        eligible: list[tuple[SkillDefinition, tuple[Position, ...]]],
        constraints: WalkConstraints,
    ) -> list[SkillDefinition]:
        routine: list[SkillDefinition] = []
        used: set[tuple[str, Position]] = set()

        while len(routine) < constraints.length:
            if routine:
                required = routine[-1].ending_position
            else:
                required = constraints.start_position or BedPosition.STANDING

            options: list[tuple[SkillDefinition, list[Position]]] = []
            for skill, positions in eligible:
                if skill.starting_position != required:
                    continue
                if constraints.no_duplicates:
                    positions = [p for p in positions if (skill.name, p) not in used]
                if positions:
                    options.append((skill, list(positions)))

            # Any opening skill will do when nothing starts from Standing
            if not routine and not options and constraints.start_position is None:
                options = [(skill, list(positions)) for skill, positions in eligible]

            is_final_slot = len(routine) == constraints.length - 1
            if is_final_slot and constraints.end_position is not None:
                landing = [
                    option
                    for option in options
                    if option[0].ending_position == constraints.end_position
                ]
                options = landing or options

            if not options:
                break

            skill, positions = self._rng.choice(options)
            chosen = apply_random_position(skill, self._rng, positions)
            routine.append(chosen)
            used.add(chosen.key)

        return routine

    def _result(
        self,
        routine: list[SkillDefinition],
        requirement: RoutineRequirement,
        attempts: int,
        relaxed: bool,
    ) -> GenerationResult:
        failures = tuple(rule.id for rule in failed_rules(routine, requirement))
        compliant = not failures
        if compliant:
            status = GenerationStatus.RELAXED_COMPLIANT if relaxed else GenerationStatus.COMPLIANT
        else:
            status = GenerationStatus.BEST_EFFORT
            self._log.warning(
                "routine_generation_degraded",
                requirement_id=requirement.id,
                attempts=attempts,
                relaxed=relaxed,
                length=len(routine),
                failed_rules=list(failures),
            )

        return GenerationResult(
            routine=tuple(routine),
            status=status,
            compliant=compliant,
            relaxed=relaxed,
            attempts=attempts,
            failed_rules=failures,
        )


def generate_requirement_compliant_routine(
    pool: Iterable[SkillDefinition],
    requirement: RoutineRequirement | None = None,
    max_attempts: int | None = None,
    rng: random.Random | None = None,
) -> GenerationResult:
    """Module-level entry point; see ``RoutineGenerator.generate``."""
    return RoutineGenerator(rng=rng).generate(pool, requirement, max_attempts)
