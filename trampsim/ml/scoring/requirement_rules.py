"""Routine rule factories and requirement validation helpers.

Every factory returns an immutable ``RoutineRule`` whose validator is a pure
predicate over an ordered routine. Factory arguments are preserved in
``rule.params`` so consumers (the generator, the catalog) never parse ids.

Empty routines fail rules that expect content and pass vacuous ones such as
``no_duplicates`` or the ``max_*`` counters.
"""

from __future__ import annotations

from typing import Callable, Iterable, Sequence

from trampsim.models.enums import FREE_POSITION, BedPosition, Position, RuleKind
from trampsim.models.requirements import (
    RequirementValidationResult,
    RoutineRequirement,
    RoutineRule,
)
from trampsim.models.skill import SkillDefinition, flip_number, total_twists

from .difficulty_scorer import (
    DifficultyScorer,
    calculate_difficulty_score,
    routine_difficulty_score,
)

Routine = Sequence[SkillDefinition]
PositionFilter = Position | str | None


def _num(value: float) -> str:
    """Render a threshold the way it reads in rule text (4 not 4.0)."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return f"{value:g}"


def _plural(count: float) -> str:
    return "" if count == 1 else "s"


def _position_filter(position: PositionFilter) -> Position | str | None:
    """Normalize an optional position argument; ``"Free"`` matches any position."""
    if position is None or position == FREE_POSITION:
        return position
    return Position(position)


def _matches_position(skill: SkillDefinition, position: Position | str | None) -> bool:
    return position is None or position == FREE_POSITION or skill.position == position


def _position_label(position: Position | str) -> str:
    return position.value if isinstance(position, Position) else str(position)


# =============================================================================
# Length Rules
# =============================================================================

def min_skills(count: int) -> RoutineRule:
    return RoutineRule(
        id=f"min-skills-{count}",
        description=f"At least {count} skill{_plural(count)}",
        validator=lambda routine: len(routine) >= count,
        kind=RuleKind.MIN_SKILLS,
        params={"count": count},
    )


def max_skills(count: int) -> RoutineRule:
    return RoutineRule(
        id=f"max-skills-{count}",
        description=f"No more than {count} skill{_plural(count)}",
        validator=lambda routine: len(routine) <= count,
        kind=RuleKind.MAX_SKILLS,
        params={"count": count},
    )


def exact_skills(count: int) -> RoutineRule:
    return RoutineRule(
        id=f"exact-skills-{count}",
        description=f"Exactly {count} skill{_plural(count)}",
        validator=lambda routine: len(routine) == count,
        kind=RuleKind.EXACT_SKILLS,
        params={"count": count},
    )


# =============================================================================
# Difficulty Rules
# =============================================================================

def min_difficulty(
    score: float,
    womens_scoring: bool = False,
    scorer: DifficultyScorer | None = None,
) -> RoutineRule:
    """Routine difficulty at least ``score`` (men's scoring unless told otherwise)."""
    return RoutineRule(
        id=f"min-difficulty-{_num(score)}",
        description=f"Minimum difficulty score of {_num(score)}",
        validator=lambda routine: routine_difficulty_score(routine, womens_scoring, scorer) >= score,
        kind=RuleKind.MIN_DIFFICULTY,
        params={"score": score, "womens_scoring": womens_scoring},
    )


def max_difficulty(
    score: float,
    womens_scoring: bool = False,
    scorer: DifficultyScorer | None = None,
) -> RoutineRule:
    """Routine difficulty at most ``score`` (men's scoring unless told otherwise)."""
    return RoutineRule(
        id=f"max-difficulty-{_num(score)}",
        description=f"Maximum difficulty score of {_num(score)}",
        validator=lambda routine: routine_difficulty_score(routine, womens_scoring, scorer) <= score,
        kind=RuleKind.MAX_DIFFICULTY,
        params={"score": score, "womens_scoring": womens_scoring},
    )


def max_element_difficulty(
    max_difficulty: float, scorer: DifficultyScorer | None = None
) -> RoutineRule:
    return RoutineRule(
        id=f"max-element-difficulty-{_num(max_difficulty)}",
        description=f"No individual skill may exceed {_num(max_difficulty)} DD",
        validator=lambda routine: all(
            calculate_difficulty_score(skill, scorer) <= max_difficulty for skill in routine
        ),
        kind=RuleKind.MAX_ELEMENT_DIFFICULTY,
        params={"max_difficulty": max_difficulty},
    )


# =============================================================================
# Element Rules
# =============================================================================

def min_flips(flips: float) -> RoutineRule:
    return RoutineRule(
        id=f"min-flips-{_num(flips)}",
        description=f"At least one skill with {_num(flips)}+ flip{_plural(flips)}",
        validator=lambda routine: any(skill.flips >= flips for skill in routine),
        kind=RuleKind.MIN_FLIPS,
        params={"flips": flips},
    )


def min_twists(twists: float) -> RoutineRule:
    """At least one skill whose largest single twist slot reaches ``twists``."""
    return RoutineRule(
        id=f"min-twists-{_num(twists)}",
        description=f"At least one skill with {_num(twists)}+ twist{_plural(twists)}",
        validator=lambda routine: any(max(skill.twists or (0.0,)) >= twists for skill in routine),
        kind=RuleKind.MIN_TWISTS,
        params={"twists": twists},
    )


def max_non_somersaults(max_count: int) -> RoutineRule:
    """Limit skills whose effective flip number is zero (drops, jumps, turntables)."""
    return RoutineRule(
        id=f"max-non-sommersaults-{max_count}",
        description=f"No more than {max_count} non-sommersault skills",
        validator=lambda routine: sum(1 for skill in routine if flip_number(skill) == 0) <= max_count,
        kind=RuleKind.MAX_NON_SOMERSAULTS,
        params={"max_count": max_count},
    )


def min_elements_with_min_rotation(count: int, min_rotation: float) -> RoutineRule:
    return RoutineRule(
        id=f"min-elements-with-min-rotation-{count}-count-{_num(min_rotation)}-minRotation",
        description=f"At least {count} elements with at least {_num(min_rotation)} rotation",
        validator=lambda routine: sum(1 for skill in routine if skill.flips >= min_rotation) >= count,
        kind=RuleKind.MIN_ELEMENTS_WITH_MIN_ROTATION,
        params={"count": count, "min_rotation": min_rotation},
    )


def max_elements_with_min_rotation(max_count: int, min_rotation: float) -> RoutineRule:
    return RoutineRule(
        id=f"max-elements-with-min-rotation-{max_count}-minRotation-{_num(min_rotation)}",
        description=f"No more than {max_count} elements with at least {_num(min_rotation)} rotation",
        validator=lambda routine: sum(1 for skill in routine if skill.flips >= min_rotation)
        <= max_count,
        kind=RuleKind.MAX_ELEMENTS_WITH_MIN_ROTATION,
        params={"max_count": max_count, "min_rotation": min_rotation},
    )


def min_element_flips_and_twists(count: int, min_flips: float, min_twists: float) -> RoutineRule:
    return RoutineRule(
        id=(
            f"min-elements-with-min-flips-{_num(min_flips)}"
            f"-min-twists-{_num(min_twists)}-count-{count}"
        ),
        description=(
            f"At least {count} elements with at least {_num(min_flips)} flips "
            f"and {_num(min_twists)} twists"
        ),
        validator=lambda routine: sum(
            1
            for skill in routine
            if skill.flips >= min_flips and total_twists(skill) >= min_twists
        )
        >= count,
        kind=RuleKind.MIN_ELEMENT_FLIPS_AND_TWISTS,
        params={"count": count, "min_flips": min_flips, "min_twists": min_twists},
    )


# =============================================================================
# Bed Position Rules
# =============================================================================

def start_position(position: BedPosition | str) -> RoutineRule:
    bed = BedPosition(position)
    return RoutineRule(
        id=f"start-position-{bed.value}",
        description=f"Must start from {bed.value} position",
        validator=lambda routine: len(routine) > 0 and routine[0].starting_position == bed,
        kind=RuleKind.START_POSITION,
        params={"position": bed},
    )


def end_position(position: BedPosition | str) -> RoutineRule:
    bed = BedPosition(position)
    return RoutineRule(
        id=f"end-position-{bed.value}",
        description=f"Must end in {bed.value} position",
        validator=lambda routine: len(routine) > 0 and routine[-1].ending_position == bed,
        kind=RuleKind.END_POSITION,
        params={"position": bed},
    )


def include_landing(bed_position: BedPosition | str, count: int = 1) -> RoutineRule:
    bed = BedPosition(bed_position)
    return RoutineRule(
        id=f"include-landing-{bed.value}-{count}",
        description=f"Must include at least {count} skill{_plural(count)} landing in {bed.value}",
        validator=lambda routine: sum(1 for skill in routine if skill.ending_position == bed) >= count,
        kind=RuleKind.INCLUDE_LANDING,
        params={"bed_position": bed, "count": count},
    )


# =============================================================================
# Skill Content Rules
# =============================================================================

def include_position(position: Position | str, count: int = 1) -> RoutineRule:
    shape = Position(position)
    return RoutineRule(
        id=f"include-position-{shape.value}-{count}",
        description=f"Include at least {count} skill{_plural(count)} in {shape.value} position",
        validator=lambda routine: sum(1 for skill in routine if skill.position == shape) >= count,
        kind=RuleKind.INCLUDE_POSITION,
        params={"position": shape, "count": count},
    )


def include_skill(skill_name: str, position: PositionFilter = None) -> RoutineRule:
    shape = _position_filter(position)
    suffix = f"-{_position_label(shape)}" if shape else ""
    in_position = (
        f" in {_position_label(shape)} position" if shape and shape != FREE_POSITION else ""
    )
    return RoutineRule(
        id=f"include-skill-{skill_name}{suffix}",
        description=f'Must include "{skill_name}"{in_position}',
        validator=lambda routine: any(
            skill.name == skill_name and _matches_position(skill, shape) for skill in routine
        ),
        kind=RuleKind.INCLUDE_SKILL,
        params={"skill_name": skill_name, "position": shape},
    )


def includes_sequence(
    skill_names: Sequence[str], positions: Sequence[Position | str]
) -> RoutineRule:
    """Contiguous run of named skills, each in the given position (or ``"Free"``).

    An empty sequence never matches.
    """
    names = tuple(skill_names)
    shapes = tuple(_position_filter(p) for p in positions)

    steps = []
    for name, shape in zip(names, shapes):
        steps.append(name if shape == FREE_POSITION else f"{name} ({_position_label(shape)})")

    def validator(routine: Routine) -> bool:
        if not names or len(names) != len(shapes):
            return False
        window = len(names)
        for start in range(len(routine) - window + 1):
            if all(
                routine[start + offset].name == names[offset]
                and _matches_position(routine[start + offset], shapes[offset])
                for offset in range(window)
            ):
                return True
        return False

    return RoutineRule(
        id=f"includes-sequence-{'-'.join(names)}",
        description=f"Must include the consecutive sequence: {' → '.join(steps)}",
        validator=validator,
        kind=RuleKind.INCLUDES_SEQUENCE,
        params={"skill_names": names, "positions": shapes},
    )


def skill_at_index(index: int, skill_name: str, position: PositionFilter = None) -> RoutineRule:
    """The skill at zero-based ``index`` must match; descriptions count from one."""
    shape = _position_filter(position)
    suffix = f"-{_position_label(shape)}" if shape else ""
    in_position = f" in {_position_label(shape)} position" if shape else ""

    def validator(routine: Routine) -> bool:
        if len(routine) <= index:
            return False
        skill = routine[index]
        return skill.name == skill_name and _matches_position(skill, shape)

    return RoutineRule(
        id=f"skill-at-index-{index}-{skill_name}{suffix}",
        description=f'Skill {index + 1} must be "{skill_name}"{in_position}',
        validator=validator,
        kind=RuleKind.SKILL_AT_INDEX,
        params={"index": index, "skill_name": skill_name, "position": shape},
    )


def no_duplicates() -> RoutineRule:
    def validator(routine: Routine) -> bool:
        keys = [skill.key for skill in routine]
        return len(keys) == len(set(keys))

    return RoutineRule(
        id="no-duplicates",
        description="No duplicate skills allowed",
        validator=validator,
        kind=RuleKind.NO_DUPLICATES,
    )


# =============================================================================
# Combinators
# =============================================================================

def or_(rules: Iterable[RoutineRule]) -> RoutineRule:
    """Passes when any of the wrapped rules passes."""
    children = tuple(rules)
    return RoutineRule(
        id=f"or-{'-'.join(rule.id for rule in children)}",
        description=f"Any of: {' OR '.join(rule.description for rule in children)}",
        validator=lambda routine: any(rule.validator(routine) for rule in children),
        kind=RuleKind.OR,
        params={"rules": children},
    )


RULE_FACTORIES: dict[RuleKind, Callable[..., RoutineRule]] = {
    RuleKind.EXACT_SKILLS: exact_skills,
    RuleKind.MIN_SKILLS: min_skills,
    RuleKind.MAX_SKILLS: max_skills,
    RuleKind.MIN_DIFFICULTY: min_difficulty,
    RuleKind.MAX_DIFFICULTY: max_difficulty,
    RuleKind.MIN_FLIPS: min_flips,
    RuleKind.MIN_TWISTS: min_twists,
    RuleKind.START_POSITION: start_position,
    RuleKind.END_POSITION: end_position,
    RuleKind.INCLUDE_POSITION: include_position,
    RuleKind.INCLUDE_SKILL: include_skill,
    RuleKind.INCLUDES_SEQUENCE: includes_sequence,
    RuleKind.SKILL_AT_INDEX: skill_at_index,
    RuleKind.INCLUDE_LANDING: include_landing,
    RuleKind.NO_DUPLICATES: no_duplicates,
    RuleKind.MAX_ELEMENT_DIFFICULTY: max_element_difficulty,
    RuleKind.MAX_NON_SOMERSAULTS: max_non_somersaults,
    RuleKind.MIN_ELEMENTS_WITH_MIN_ROTATION: min_elements_with_min_rotation,
    RuleKind.MAX_ELEMENTS_WITH_MIN_ROTATION: max_elements_with_min_rotation,
    RuleKind.MIN_ELEMENT_FLIPS_AND_TWISTS: min_element_flips_and_twists,
    RuleKind.OR: or_,
}


# =============================================================================
# Requirement Validation
# =============================================================================

def validate_routine_requirements(
    routine: Routine, requirement: RoutineRequirement
) -> list[RequirementValidationResult]:
    """Evaluate every rule of ``requirement`` against ``routine`` in declaration order."""
    return [rule.evaluate(routine) for rule in requirement.rules]


def are_all_requirements_met(results: Iterable[RequirementValidationResult]) -> bool:
    return all(result.passed for result in results)


def get_passed_requirements_count(results: Iterable[RequirementValidationResult]) -> int:
    return sum(1 for result in results if result.passed)


def failed_rules(routine: Routine, requirement: RoutineRequirement) -> list[RoutineRule]:
    """Rules of ``requirement`` that ``routine`` does not satisfy."""
    return [rule for rule in requirement.rules if not rule.validator(routine)]
