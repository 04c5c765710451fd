"""Enumerated domains for skill definitions."""
from enum import Enum


class BedPosition(str, Enum):
    """Orientation on the trampoline bed before/after a skill."""

    STANDING = "Standing"
    BACK = "Back"
    STOMACH = "Stomach"
    SEATED = "Seated"
    HANDS_AND_KNEES = "HandsAndKnees"


class Position(str, Enum):
    """In-air body shape."""

    STRAIGHT = "StraightArmsDown"
    TUCK = "Tuck"
    PIKE = "Pike"
    STRADDLE = "Straddle"


class Pose(str, Enum):
    """Named joint configurations used for keyframes."""

    STRAIGHT_ARMS_UP = "StraightArmsUp"
    STRAIGHT_ARMS_DOWN = "StraightArmsDown"
    TUCK = "Tuck"
    PIKE = "Pike"
    STRADDLE = "Straddle"
    HANDS_AND_KNEES = "HandsAndKnees"


class RuleKind(str, Enum):
    """Routine rule families understood by the requirement engine."""

    EXACT_SKILLS = "exact_skills"
    MIN_SKILLS = "min_skills"
    MAX_SKILLS = "max_skills"
    MIN_DIFFICULTY = "min_difficulty"
    MAX_DIFFICULTY = "max_difficulty"
    MIN_FLIPS = "min_flips"
    MIN_TWISTS = "min_twists"
    START_POSITION = "start_position"
    END_POSITION = "end_position"
    INCLUDE_POSITION = "include_position"
    INCLUDE_SKILL = "include_skill"
    INCLUDES_SEQUENCE = "includes_sequence"
    SKILL_AT_INDEX = "skill_at_index"
    INCLUDE_LANDING = "include_landing"
    NO_DUPLICATES = "no_duplicates"
    MAX_ELEMENT_DIFFICULTY = "max_element_difficulty"
    MAX_NON_SOMERSAULTS = "max_non_somersaults"
    MIN_ELEMENTS_WITH_MIN_ROTATION = "min_elements_with_min_rotation"
    MAX_ELEMENTS_WITH_MIN_ROTATION = "max_elements_with_min_rotation"
    MIN_ELEMENT_FLIPS_AND_TWISTS = "min_element_flips_and_twists"
    OR = "or"


class RequirementDifficulty(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


# Requirement wildcard meaning "any body position"
FREE_POSITION = "Free"


class GenerationStatus(str, Enum):
    """Outcome of a requirement-driven routine generation."""

    COMPLIANT = "COMPLIANT"
    RELAXED_COMPLIANT = "RELAXED_COMPLIANT"
    BEST_EFFORT = "BEST_EFFORT"
    UNCONSTRAINED = "UNCONSTRAINED"
