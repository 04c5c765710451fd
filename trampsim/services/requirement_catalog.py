"""
Requirement Catalog

Builds immutable ``RoutineRequirement`` objects from the declarative tables in
``data/requirements.yaml``. Rules are constructed through the rule factory
registry, so the YAML carries structured parameters rather than encoded ids.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping

import yaml

from trampsim.core.exceptions import RequirementConfigError
from trampsim.ml.scoring.requirement_rules import RULE_FACTORIES, exact_skills, skill_at_index
from trampsim.models.enums import RuleKind
from trampsim.models.requirements import NO_REQUIREMENTS, RoutineRequirement, RoutineRule

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "requirements.yaml"


class RequirementCatalog:
    """Requirements addressable by id, in declaration order."""

    def __init__(self, requirements: Iterable[RoutineRequirement] = ()):
        self._requirements: dict[str, RoutineRequirement] = {}
        for requirement in requirements:
            self.add(requirement)

    def add(self, requirement: RoutineRequirement) -> None:
        """Register a (custom) requirement; ids must be unique."""
        if requirement.id in self._requirements:
            raise RequirementConfigError(
                f"Duplicate requirement id '{requirement.id}'",
                code="CFG_REQ_002",
                details={"requirement_id": requirement.id},
            )
        self._requirements[requirement.id] = requirement

    def get(self, requirement_id: str) -> RoutineRequirement | None:
        return self._requirements.get(requirement_id)

    def __getitem__(self, requirement_id: str) -> RoutineRequirement:
        return self._requirements[requirement_id]

    def __contains__(self, requirement_id: object) -> bool:
        return requirement_id in self._requirements

    def __iter__(self) -> Iterator[RoutineRequirement]:
        return iter(self._requirements.values())

    def __len__(self) -> int:
        return len(self._requirements)

    @property
    def ids(self) -> list[str]:
        return list(self._requirements)

    def by_category(self) -> dict[str, list[RoutineRequirement]]:
        groups: dict[str, list[RoutineRequirement]] = {}
        for requirement in self:
            groups.setdefault(requirement.category or "Other", []).append(requirement)
        return groups


def build_rule(spec: Mapping[str, Any]) -> RoutineRule:
    """Build one rule from ``{kind: ..., <factory params>}``.

    Raises:
        RequirementConfigError: If the kind is unknown or the parameters do not fit.
    """
    if not isinstance(spec, Mapping) or "kind" not in spec:
        raise RequirementConfigError(f"Rule must be a mapping with a 'kind', got {spec!r}")

    try:
        kind = RuleKind(spec["kind"])
    except ValueError:
        raise RequirementConfigError(
            f"Unknown rule kind '{spec['kind']}'",
            details={"valid_kinds": [k.value for k in RuleKind]},
        )

    params = {key: value for key, value in spec.items() if key != "kind"}
    if kind == RuleKind.OR:
        params["rules"] = [build_rule(child) for child in params.get("rules", [])]

    try:
        return RULE_FACTORIES[kind](**params)
    except (TypeError, ValueError) as e:
        raise RequirementConfigError(
            f"Invalid parameters for rule '{kind.value}': {e}",
            details={"kind": kind.value, "params": dict(params)},
        )


def template_rules(template: Iterable[Iterable[str]]) -> list[RoutineRule]:
    """Exact-length rule plus one placement rule per ``[name, position]`` slot."""
    slots = [tuple(slot) for slot in template]
    rules = [exact_skills(len(slots))]
    for index, slot in enumerate(slots):
        if len(slot) != 2:
            raise RequirementConfigError(
                f"Template slot {index} must be [name, position], got {list(slot)}"
            )
        name, position = slot
        try:
            rules.append(skill_at_index(index, name, position))
        except ValueError as e:
            raise RequirementConfigError(f"Template slot {index} is invalid: {e}")
    return rules


def build_requirement(
    spec: Mapping[str, Any], presets: Mapping[str, list[RoutineRule]]
) -> RoutineRequirement:
    for key in ("id", "name"):
        if key not in spec:
            raise RequirementConfigError(f"Requirement is missing '{key}': {dict(spec)}")

    rules: list[RoutineRule] = []
    if "template" in spec:
        rules.extend(template_rules(spec["template"]))

    preset = spec.get("preset")
    if preset is not None:
        if preset not in presets:
            raise RequirementConfigError(
                f"Requirement '{spec['id']}' uses unknown preset '{preset}'",
                details={"presets": list(presets)},
            )
        rules.extend(presets[preset])

    rules.extend(build_rule(rule) for rule in spec.get("rules", []))

    try:
        return RoutineRequirement(
            id=str(spec["id"]),
            name=str(spec["name"]),
            description=str(spec.get("description", "")),
            rules=tuple(rules),
            category=spec.get("category"),
            difficulty=spec.get("difficulty"),
        )
    except ValueError as e:
        raise RequirementConfigError(f"Requirement '{spec['id']}' is invalid: {e}")


def parse_requirement_catalog(
    data: Mapping[str, Any], include_none: bool = True
) -> RequirementCatalog:
    """Parse decoded catalog YAML; ``include_none`` prepends the empty requirement."""
    presets = {
        name: [build_rule(rule) for rule in rules]
        for name, rules in (data.get("presets") or {}).items()
    }
    catalog = RequirementCatalog([NO_REQUIREMENTS] if include_none else [])
    for spec in data.get("requirements") or []:
        catalog.add(build_requirement(spec, presets))
    return catalog


def load_requirement_catalog(path: Path | str | None = None) -> RequirementCatalog:
    path = Path(path) if path is not None else DEFAULT_CATALOG_PATH
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise RequirementConfigError(
            f"Requirement catalog not found: {path}", code="CFG_REQ_404"
        )
    except yaml.YAMLError as e:
        raise RequirementConfigError(
            f"Failed to parse requirement catalog: {e}", details={"file_path": str(path)}
        )

    catalog = parse_requirement_catalog(data or {})
    logger.debug(f"Loaded {len(catalog)} requirements from {path}")
    return catalog


_catalog_instance: RequirementCatalog | None = None


def get_requirement_catalog() -> RequirementCatalog:
    """Get the bundled requirement catalog (loaded once)."""
    global _catalog_instance
    if _catalog_instance is None:
        _catalog_instance = load_requirement_catalog()
    return _catalog_instance
