"""Shared fixtures for the simulator test suite."""

import random

import pytest

from trampsim.config.simulation_config_loader import (
    AnimationConfig,
    GeneratorConfig,
    ScoringConfig,
    SimulationConfigLoader,
)
from trampsim.ml.scoring.difficulty_scorer import DifficultyCache, DifficultyScorer
from trampsim.models.enums import BedPosition, Position
from trampsim.models.skill import SkillDefinition
from trampsim.services.skill_library import BUNDLED_DATA_DIR, load_default_skill_library


def make_skill(
    name="Test Skill",
    starting_position=BedPosition.STANDING,
    ending_position=BedPosition.STANDING,
    flips=1.0,
    twists=(0.0, 0.0),
    position=Position.TUCK,
    possible_positions=None,
    is_back_skill=False,
):
    """Build a SkillDefinition with sensible defaults."""
    return SkillDefinition(
        name=name,
        starting_position=starting_position,
        ending_position=ending_position,
        flips=flips,
        twists=tuple(twists),
        position=position,
        possible_positions=possible_positions,
        is_back_skill=is_back_skill,
    )


@pytest.fixture(scope="session")
def skill_pool():
    """Bundled skill library (53 unique name/position entries)."""
    return load_default_skill_library(BUNDLED_DATA_DIR)


@pytest.fixture
def skills_by_name(skill_pool):
    """First pool entry for each skill name."""
    by_name = {}
    for skill in skill_pool:
        by_name.setdefault(skill.name, skill)
    return by_name


@pytest.fixture
def scorer():
    """Scorer with a private cache and default scoring constants."""
    return DifficultyScorer(cache=DifficultyCache(), config=ScoringConfig())


@pytest.fixture
def animation_config():
    return AnimationConfig()


@pytest.fixture
def generator_config():
    return GeneratorConfig(max_routine_skills=10, max_attempts=200, relaxed_retry=True)


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def fresh_config_loader():
    """Drop the config loader singletons before and after a test."""
    SimulationConfigLoader.reset_instance()
    yield
    SimulationConfigLoader.reset_instance()


@pytest.fixture(name="make_skill")
def make_skill_fixture():
    """Factory fixture for ad-hoc skill definitions."""
    return make_skill
