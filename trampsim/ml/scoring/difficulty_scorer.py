"""Difficulty (DD) scoring for skills and routines.

The score of a skill is the sum of three sub-scores (rotation, twist and
position), rounded half-up to two decimals and floored at the configured
minimum. Scores are memoized in an explicit ``DifficultyCache`` keyed by the
skill's structural signature; the cache is injected so tests can reset it.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from threading import Lock
from typing import Hashable, Sequence

from trampsim.config.simulation_config_loader import ScoringConfig, get_simulation_config
from trampsim.models.enums import Position
from trampsim.models.skill import SkillDefinition, total_twists

from .constants import (
    TRIPLE_FLIP_THRESHOLD,
    PositionScoring,
    RotationScoring,
    TwistScoring,
)

logger = logging.getLogger(__name__)

CacheKey = tuple[Hashable, ...]


def round_half_up(value: float, digits: int = 2) -> float:
    """Multiply-round-divide rounding with ties going up."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


class DifficultyCache:
    """Process-wide memo of per-skill scores.

    Unbounded and never invalidated: skill definitions are immutable once
    loaded. Guarded by a lock so generation can run off the main thread.
    """

    def __init__(self) -> None:
        self._scores: dict[CacheKey, float] = {}
        self._lock = Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: CacheKey) -> float | None:
        with self._lock:
            score = self._scores.get(key)
            if score is None:
                self.misses += 1
            else:
                self.hits += 1
            return score

    def set(self, key: CacheKey, score: float) -> None:
        with self._lock:
            self._scores[key] = score

    def clear(self) -> None:
        with self._lock:
            self._scores.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._scores)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._scores


@dataclass(frozen=True)
class DifficultyBreakdown:
    """Sub-scores of a single skill before rounding."""

    rotation: float
    twist: float
    position: float
    total: float


def skill_cache_key(skill: SkillDefinition) -> CacheKey:
    """Structural signature of a skill for memoization."""
    return (skill.name, skill.position.value, skill.flips, skill.twists, skill.is_back_skill)


def is_zero_difficulty(skill: SkillDefinition) -> bool:
    """Straight jumps with no rotation or twist score exactly zero."""
    return skill.flips == 0 and total_twists(skill) == 0 and skill.position == Position.STRAIGHT


def rotation_score(skill: SkillDefinition) -> float:
    score = 0.0
    remaining = skill.flips

    band = RotationScoring.band_for(skill.flips)
    if band is not None:
        completed, base, back_bonus = band
        score += base
        if skill.is_back_skill:
            score += back_bonus
        remaining -= completed

    # Partial flips beyond the last completed band
    score += math.floor(remaining / RotationScoring.QUARTER_FLIP) * RotationScoring.QUARTER_FLIP_SCORE
    return score


def twist_score(skill: SkillDefinition) -> float:
    half_twists = math.floor(total_twists(skill) / TwistScoring.HALF_TWIST)
    score = half_twists * TwistScoring.HALF_TWIST_SCORE
    extra_half_twists = max(0, half_twists - TwistScoring.FREE_HALF_TWISTS)

    if skill.flips >= 4:
        score *= TwistScoring.QUADRUPLE_MULTIPLIER
    elif skill.flips >= 3:
        score += extra_half_twists * TwistScoring.TRIPLE_BONUS
    elif skill.flips >= 2:
        score += extra_half_twists * TwistScoring.DOUBLE_BONUS
    return score


def position_score(skill: SkillDefinition) -> float:
    if skill.position == Position.TUCK:
        return 0.0

    flips = math.floor(skill.flips)
    if flips == 1 and total_twists(skill) != 0:
        # Single twisting somersaults earn no shape bonus
        return 0.0

    return flips * PositionScoring.PER_FLIP_SCORE


class DifficultyScorer:
    """Deterministic, memoized difficulty scorer.

    Example:
        >>> scorer = DifficultyScorer(cache=DifficultyCache())
        >>> scorer.score(front_flip_tuck)
        0.5
    """

    def __init__(
        self,
        cache: DifficultyCache | None = None,
        config: ScoringConfig | None = None,
    ) -> None:
        self.cache = cache if cache is not None else get_difficulty_cache()
        self._config = config

    @property
    def config(self) -> ScoringConfig:
        if self._config is None:
            self._config = get_simulation_config().scoring
        return self._config

    def breakdown(self, skill: SkillDefinition) -> DifficultyBreakdown:
        """Uncached sub-score breakdown of a skill."""
        rotation = rotation_score(skill)
        twist = twist_score(skill)
        position = position_score(skill)
        return DifficultyBreakdown(
            rotation=rotation,
            twist=twist,
            position=position,
            total=rotation + twist + position,
        )

    def score(self, skill: SkillDefinition) -> float:
        if is_zero_difficulty(skill):
            return 0.0

        key = skill_cache_key(skill)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        raw = self.breakdown(skill).total
        result = max(round_half_up(raw, self.config.round_digits), self.config.min_difficulty)
        self.cache.set(key, result)
        logger.debug(f"Scored '{skill.name}' ({skill.position.value}): {result}")
        return result

    def routine_score(
        self, routine: Sequence[SkillDefinition], womens_scoring: bool = False
    ) -> float:
        """Sum of skill scores plus the triple-flip adjustment for the scoring system."""
        total = sum(self.score(skill) for skill in routine)

        threshold = (
            self.config.triple_threshold_womens
            if womens_scoring
            else self.config.triple_threshold_mens
        )
        triple_count = sum(1 for skill in routine if skill.flips >= TRIPLE_FLIP_THRESHOLD)
        if triple_count > threshold:
            total += (triple_count - threshold) * self.config.triple_flip_adjustment

        return round_half_up(total, self.config.round_digits)


_cache_instance: DifficultyCache | None = None
_scorer_instance: DifficultyScorer | None = None


def get_difficulty_cache() -> DifficultyCache:
    """Get the process-wide difficulty cache."""
    global _cache_instance
    if _cache_instance is None:
        _cache_instance = DifficultyCache()
    return _cache_instance


def get_difficulty_scorer() -> DifficultyScorer:
    """Get the shared scorer bound to the process-wide cache."""
    global _scorer_instance
    if _scorer_instance is None:
        _scorer_instance = DifficultyScorer(cache=get_difficulty_cache())
    return _scorer_instance


def calculate_difficulty_score(
    skill: SkillDefinition, scorer: DifficultyScorer | None = None
) -> float:
    return (scorer or get_difficulty_scorer()).score(skill)


def routine_difficulty_score(
    routine: Sequence[SkillDefinition],
    womens_scoring: bool = False,
    scorer: DifficultyScorer | None = None,
) -> float:
    return (scorer or get_difficulty_scorer()).routine_score(routine, womens_scoring)
