from trampsim.models.animation import AthletePosition, JointAngles, SkillTimeline
from trampsim.models.enums import (
    FREE_POSITION,
    BedPosition,
    GenerationStatus,
    Pose,
    Position,
    RequirementDifficulty,
    RuleKind,
)
from trampsim.models.requirements import (
    NO_REQUIREMENTS,
    RequirementValidationResult,
    RoutineRequirement,
    RoutineRule,
)
from trampsim.models.skill import SkillDefinition, total_twists

__all__ = [
    "AthletePosition",
    "BedPosition",
    "FREE_POSITION",
    "GenerationStatus",
    "JointAngles",
    "NO_REQUIREMENTS",
    "Pose",
    "Position",
    "RequirementDifficulty",
    "RequirementValidationResult",
    "RoutineRequirement",
    "RoutineRule",
    "RuleKind",
    "SkillDefinition",
    "SkillTimeline",
    "total_twists",
]
