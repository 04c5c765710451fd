"""
Skill Library

Loading boundary for skill definitions. Skill documents are JSON arrays of
camelCase entries; every entry is validated with ``SkillDefinitionSchema``
before it becomes a ``SkillDefinition``, so the core never sees malformed
data. Also provides the grouping and display helpers used by skill pickers.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Iterable, Sequence

from pydantic import ValidationError

from trampsim.core.exceptions import SkillDataError
from trampsim.ml.scoring.difficulty_scorer import DifficultyScorer, calculate_difficulty_score
from trampsim.models.enums import Position
from trampsim.models.skill import SkillDefinition, unique_skills
from trampsim.schemas.skill import SkillDefinitionSchema

logger = logging.getLogger(__name__)

DEFAULT_SKILL_FILES = ("skills.json", "usag.json", "nonflips.json", "extras.json")

BUNDLED_DATA_DIR = Path(__file__).resolve().parent.parent / "data"


def parse_skill_document(data: Any, source: str = "<memory>") -> list[SkillDefinition]:
    """Validate an already-decoded skill document.

    Raises:
        SkillDataError: If the document is not an array or an entry is malformed.
    """
    if not isinstance(data, list):
        raise SkillDataError(
            f"expected a JSON array of skills, got {type(data).__name__}", source=source
        )

    skills: list[SkillDefinition] = []
    for index, entry in enumerate(data):
        try:
            schema = SkillDefinitionSchema.model_validate(entry)
        except ValidationError as e:
            name = entry.get("name", "?") if isinstance(entry, dict) else "?"
            raise SkillDataError(
                f"entry {index} ('{name}') is invalid: {e.errors()[0]['msg']}",
                source=source,
                details={"source": source, "index": index, "errors": e.errors()},
            )
        skills.append(schema.to_definition())
    return skills


def load_skill_definitions(paths: Iterable[Path | str]) -> list[SkillDefinition]:
    """Load, validate and de-duplicate skills from one or more JSON documents.

    Duplicates on ``(name, position)`` keep the first occurrence in file order.
    """
    loaded: list[SkillDefinition] = []
    for path in paths:
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            raise SkillDataError("skill document not found", source=str(path))
        except json.JSONDecodeError as e:
            raise SkillDataError(f"invalid JSON: {e}", source=str(path))

        skills = parse_skill_document(data, source=str(path))
        logger.debug(f"Loaded {len(skills)} skills from {path.name}")
        loaded.extend(skills)

    unique = unique_skills(loaded)
    if len(unique) < len(loaded):
        logger.debug(f"Dropped {len(loaded) - len(unique)} duplicate skill entries")
    return unique


def load_default_skill_library(data_dir: Path | str | None = None) -> list[SkillDefinition]:
    """Load the bundled skill documents (or the ones in ``data_dir``/settings)."""
    if data_dir is None:
        from trampsim.config.settings import get_settings

        data_dir = get_settings().skill_data_dir or BUNDLED_DATA_DIR
    directory = Path(data_dir)
    skills = load_skill_definitions(directory / name for name in DEFAULT_SKILL_FILES)
    logger.info(f"Skill library ready: {len(skills)} unique skills from {directory}")
    return skills


# ============== Display Helpers ==============

POSITION_SYMBOLS = {
    Position.STRAIGHT: "/",
    Position.PIKE: "<",
    Position.TUCK: "o",
    Position.STRADDLE: "V",
}

FLIP_CATEGORY_ORDER = {
    "No Flips": -1,
    "Single Flips": 1,
    "Double Flips": 2,
    "Triple Flips": 3,
    "Quadruple Flips": 4,
}


def format_position_display(position: Position | str) -> str:
    """Competition shorthand for a body position."""
    try:
        return POSITION_SYMBOLS[Position(position)]
    except ValueError:
        return str(position)


def _format_flips(flips: float) -> str:
    return str(int(flips)) if float(flips).is_integer() else f"{flips:g}"


def get_flip_category(flips: float) -> str:
    if flips < 0.5:
        return "No Flips"
    elif flips < 1.5:
        return "Single Flips"
    elif flips < 2.5:
        return "Double Flips"
    elif flips < 3.5:
        return "Triple Flips"
    elif flips < 4.5:
        return "Quadruple Flips"
    return f"{_format_flips(flips)} Flips"


def group_skills_by_flips(
    skills: Iterable[SkillDefinition], scorer: DifficultyScorer | None = None
) -> dict[str, list[SkillDefinition]]:
    """Group skills by flip category, easiest first within each group."""
    groups: dict[str, list[SkillDefinition]] = {}
    for skill in skills:
        groups.setdefault(get_flip_category(skill.flips), []).append(skill)

    for members in groups.values():
        members.sort(key=lambda skill: calculate_difficulty_score(skill, scorer))
    return groups


def _category_rank(category: str) -> float:
    if category in FLIP_CATEGORY_ORDER:
        return FLIP_CATEGORY_ORDER[category]
    match = re.match(r"^(\d+(?:\.\d+)?) Flips$", category)
    return float(match.group(1)) if match else 999


def sort_flip_categories(
    categories: Iterable[tuple[str, Sequence[SkillDefinition]]],
) -> list[tuple[str, Sequence[SkillDefinition]]]:
    """Order ``(category, skills)`` pairs from no flips upwards."""
    return sorted(categories, key=lambda item: _category_rank(item[0]))
