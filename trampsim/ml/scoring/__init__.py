"""Difficulty scoring and routine rule package.

Main exports:
    - DifficultyScorer: Memoized skill and routine difficulty scorer
    - DifficultyCache: Injectable, lock-protected score cache
    - calculate_difficulty_score: Score one skill with the shared scorer
    - routine_difficulty_score: Score a routine with the shared scorer
    - RULE_FACTORIES: Rule factory registry keyed by RuleKind
    - validate_routine_requirements: Evaluate a requirement against a routine
"""
from .difficulty_scorer import (
    DifficultyBreakdown,
    DifficultyCache,
    DifficultyScorer,
    calculate_difficulty_score,
    get_difficulty_cache,
    get_difficulty_scorer,
    round_half_up,
    routine_difficulty_score,
)

from .requirement_rules import (
    RULE_FACTORIES,
    are_all_requirements_met,
    end_position,
    exact_skills,
    failed_rules,
    get_passed_requirements_count,
    include_landing,
    include_position,
    include_skill,
    includes_sequence,
    max_difficulty,
    max_element_difficulty,
    max_elements_with_min_rotation,
    max_non_somersaults,
    max_skills,
    min_difficulty,
    min_element_flips_and_twists,
    min_elements_with_min_rotation,
    min_flips,
    min_skills,
    min_twists,
    no_duplicates,
    or_,
    skill_at_index,
    start_position,
    validate_routine_requirements,
)

__all__ = [
    "DifficultyBreakdown",
    "DifficultyCache",
    "DifficultyScorer",
    "RULE_FACTORIES",
    "are_all_requirements_met",
    "calculate_difficulty_score",
    "end_position",
    "exact_skills",
    "failed_rules",
    "get_difficulty_cache",
    "get_difficulty_scorer",
    "get_passed_requirements_count",
    "include_landing",
    "include_position",
    "include_skill",
    "includes_sequence",
    "max_difficulty",
    "max_element_difficulty",
    "max_elements_with_min_rotation",
    "max_non_somersaults",
    "max_skills",
    "min_difficulty",
    "min_element_flips_and_twists",
    "min_elements_with_min_rotation",
    "min_flips",
    "min_skills",
    "min_twists",
    "no_duplicates",
    "or_",
    "round_half_up",
    "routine_difficulty_score",
    "skill_at_index",
    "start_position",
    "validate_routine_requirements",
]
