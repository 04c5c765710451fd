"""Constants for difficulty scoring.

This module centralizes the fixed tables of the difficulty formula. Tunable
values (difficulty floor, triple-flip thresholds) live in
simulation_config.yaml instead.

Constants are organized by sub-score:
- Rotation: completed-flip bands, back-skill bonuses, quarter-flip increments
- Twist: half-twist value and multi-flip bonuses
- Position: per-flip shape bonus
"""

from __future__ import annotations


# =============================================================================
# Rotation Score Constants
# =============================================================================

class RotationScoring:
    """Tiered rotation score for completed flip bands.

    Each band is ``(completed_flips, base_score, back_skill_bonus)``; the
    highest band not exceeding the skill's flips applies.
    """

    BANDS: tuple[tuple[int, float, float], ...] = (
        (4, 2.2, 0.3),
        (3, 1.6, 0.2),
        (2, 1.0, 0.1),
        (1, 0.5, 0.0),
    )

    QUARTER_FLIP = 0.25
    QUARTER_FLIP_SCORE = 0.1

    @staticmethod
    def band_for(flips: float) -> tuple[int, float, float] | None:
        """Get the completed-flip band for a flip count.

        Args:
            flips: Somersault rotations of the skill

        Returns:
            The matching band, or None below one full flip
        """
        for band in RotationScoring.BANDS:
            if flips >= band[0]:
                return band
        return None


# =============================================================================
# Twist Score Constants
# =============================================================================

class TwistScoring:
    """Twist score constants."""

    HALF_TWIST = 0.5
    HALF_TWIST_SCORE = 0.1

    QUADRUPLE_MULTIPLIER = 3  # Whole twist score tripled on 4+ flips
    FREE_HALF_TWISTS = 2  # Half twists before multi-flip bonuses apply
    TRIPLE_BONUS = 0.2  # Per extra half twist on 3+ flips
    DOUBLE_BONUS = 0.1  # Per extra half twist on 2+ flips


# =============================================================================
# Position Score Constants
# =============================================================================

class PositionScoring:
    """Position score constants (tuck earns nothing)."""

    PER_FLIP_SCORE = 0.1


TRIPLE_FLIP_THRESHOLD = 3  # Flips counted as a triple (or more) for routine adjustments
