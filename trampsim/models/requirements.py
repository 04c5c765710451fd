"""Routine requirement models.

Rules are stateless predicates over an ordered routine. Their parameters are
kept as structured data in ``params`` so callers never need to parse ``id``,
which is an opaque display/grouping key.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping, Sequence

from trampsim.models.enums import RequirementDifficulty, RuleKind
from trampsim.models.skill import SkillDefinition

RoutineValidator = Callable[[Sequence[SkillDefinition]], bool]


@dataclass(frozen=True)
class RoutineRule:
    id: str
    description: str
    validator: RoutineValidator
    kind: RuleKind
    params: Mapping[str, Any] = field(default_factory=dict)
    details: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    def evaluate(self, routine: Sequence[SkillDefinition]) -> RequirementValidationResult:
        return RequirementValidationResult(
            rule_id=self.id,
            description=self.description,
            passed=bool(self.validator(routine)),
            details=self.details,
        )


@dataclass(frozen=True)
class RoutineRequirement:
    """Named, ordered collection of rules (e.g. a graded routine standard)."""

    id: str
    name: str
    description: str
    rules: tuple[RoutineRule, ...] = ()
    category: str | None = None
    difficulty: RequirementDifficulty | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "rules", tuple(self.rules))
        if self.difficulty is not None:
            object.__setattr__(self, "difficulty", RequirementDifficulty(self.difficulty))

    def rules_of_kind(self, kind: RuleKind) -> list[RoutineRule]:
        return [rule for rule in self.rules if rule.kind == kind]

    def first_rule(self, kind: RuleKind) -> RoutineRule | None:
        matches = self.rules_of_kind(kind)
        return matches[0] if matches else None


@dataclass(frozen=True)
class RequirementValidationResult:
    rule_id: str
    description: str
    passed: bool
    details: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "ruleId": self.rule_id,
            "description": self.description,
            "passed": self.passed,
            "details": self.details,
        }


NO_REQUIREMENTS = RoutineRequirement(
    id="none",
    name="No Requirements",
    description="Build any routine without restrictions",
)
