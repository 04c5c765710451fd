"""
Simulation Configuration Loader

This module provides a centralized, type-safe configuration loader for the
scoring engine, the keyframe converter and the routine generator.

Configuration is loaded from simulation_config.yaml and validated on
construction of each frozen section. Supports reloading without restart.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from threading import RLock
from typing import Any, Callable

import yaml

logger = logging.getLogger(__name__)


class SimulationConfigLoadError(Exception):
    """Raised when configuration cannot be loaded or is invalid."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.details = details or {}


class SimulationConfigValidationError(SimulationConfigLoadError):
    """Raised when configuration fails validation."""


@dataclass(frozen=True)
class ScoringConfig:
    """Difficulty scoring constants."""

    min_difficulty: float = 0.0
    triple_threshold_mens: int = 2
    triple_threshold_womens: int = 1
    triple_flip_adjustment: float = 0.3
    round_digits: int = 2

    def __post_init__(self):
        if self.min_difficulty < 0:
            raise SimulationConfigValidationError(
                f"min_difficulty ({self.min_difficulty}) must be >= 0"
            )
        if self.triple_threshold_mens < 0 or self.triple_threshold_womens < 0:
            raise SimulationConfigValidationError(
                "triple thresholds must be >= 0, got "
                f"mens={self.triple_threshold_mens}, womens={self.triple_threshold_womens}"
            )
        if self.round_digits < 0:
            raise SimulationConfigValidationError(
                f"round_digits ({self.round_digits}) must be >= 0"
            )


def _default_position_speeds() -> dict[str, float]:
    return {"StraightArmsDown": 1.0, "Tuck": 2.5, "Pike": 2.0, "Straddle": 2.0}


@dataclass(frozen=True)
class AnimationConfig:
    """Keyframe converter render heuristics (rotation budgets in full turns)."""

    default_stall_rotation: float = 0.1
    default_kickout_rotation: float = 0.5
    small_flip_threshold: float = 0.5
    small_flip_stall_rotation: float = 0.05
    small_flip_kickout_rotation: float = 0.05
    orientation_stall_rotation: float = 0.25
    orientation_kickout_rotation: float = 0.25
    twisting_stall_rotation: float = 0.2
    transition_rotation: float = 1 / 6.0
    position_transition_duration: float = 0.15
    position_speeds: dict[str, float] = field(default_factory=_default_position_speeds)

    def __post_init__(self):
        for field_name, value in [
            ("default_stall_rotation", self.default_stall_rotation),
            ("default_kickout_rotation", self.default_kickout_rotation),
            ("small_flip_stall_rotation", self.small_flip_stall_rotation),
            ("small_flip_kickout_rotation", self.small_flip_kickout_rotation),
            ("orientation_stall_rotation", self.orientation_stall_rotation),
            ("orientation_kickout_rotation", self.orientation_kickout_rotation),
            ("twisting_stall_rotation", self.twisting_stall_rotation),
            ("transition_rotation", self.transition_rotation),
        ]:
            if value < 0:
                raise SimulationConfigValidationError(
                    f"{field_name} must be >= 0, got {value}"
                )
        for position, speed in self.position_speeds.items():
            if speed <= 0:
                raise SimulationConfigValidationError(
                    f"position speed for {position} must be > 0, got {speed}"
                )

    def speed_for(self, position: str) -> float:
        """Relative angular speed of a body position; unknown poses rotate at baseline."""
        return self.position_speeds.get(position, 1.0)


@dataclass(frozen=True)
class GeneratorConfig:
    """Routine generator budgets."""

    max_routine_skills: int = 10
    max_attempts: int = 1000
    relaxed_retry: bool = True

    def __post_init__(self):
        if self.max_routine_skills <= 0:
            raise SimulationConfigValidationError(
                f"max_routine_skills ({self.max_routine_skills}) must be > 0"
            )
        if self.max_attempts <= 0:
            raise SimulationConfigValidationError(
                f"max_attempts ({self.max_attempts}) must be > 0"
            )


@dataclass(frozen=True)
class SimulationConfig:
    """Unified simulation configuration."""

    version: str
    last_updated: str
    scoring: ScoringConfig
    animation: AnimationConfig
    generator: GeneratorConfig


class SimulationConfigLoader:
    """Loader for the simulation configuration with reload support."""

    _instance: SimulationConfigLoader | None = None
    _lock = RLock()

    def __new__(cls, config_path: Path | None = None):
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
            return cls._instance

    def __init__(self, config_path: Path | None = None):
        if hasattr(self, "_initialized"):
            return

        self._lock = RLock()
        self._config: SimulationConfig | None = None
        self._config_path = config_path or self._default_config_path()
        self._reload_callbacks: list[Callable[[SimulationConfig], None]] = []
        self._reload_count = 0
        self._initialized = True

        self._load_config()

    @staticmethod
    def _default_config_path() -> Path:
        """Get default configuration file path."""
        return Path(__file__).parent / "simulation_config.yaml"

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        try:
            with open(self._config_path, "r") as f:
                data = yaml.safe_load(f)
        except FileNotFoundError:
            raise SimulationConfigLoadError(
                f"Configuration file not found: {self._config_path}"
            )
        except yaml.YAMLError as e:
            raise SimulationConfigLoadError(
                f"Failed to parse YAML configuration: {e}",
                details={"file_path": str(self._config_path)},
            )

        try:
            self._config = parse_simulation_config(data or {})
            self._reload_count += 1
            logger.debug(f"Loaded simulation config from {self._config_path}")
            self._notify_callbacks()
        except SimulationConfigValidationError:
            raise
        except Exception as e:
            raise SimulationConfigLoadError(
                f"Failed to parse configuration: {e}",
                details={"file_path": str(self._config_path)},
            )

    @property
    def config(self) -> SimulationConfig:
        """Get current configuration (thread-safe).

        Returns:
            Current SimulationConfig instance.
        """
        with self._lock:
            if self._config is None:
                self._load_config()
            return self._config

    def reload(self) -> None:
        """Force reload configuration from file."""
        with self._lock:
            self._load_config()

    def register_reload_callback(
        self, callback: Callable[[SimulationConfig], None]
    ) -> None:
        """Register a callback to be called on configuration reload."""
        self._reload_callbacks.append(callback)

    def _notify_callbacks(self) -> None:
        """Notify all registered callbacks of configuration reload."""
        if self._config is None:
            return
        for callback in self._reload_callbacks:
            try:
                callback(self._config)
            except Exception as e:
                logger.warning(f"Simulation config reload callback failed: {e}")

    @property
    def reload_count(self) -> int:
        """Get number of times configuration has been reloaded."""
        return self._reload_count

    @classmethod
    def reset_instance(cls) -> None:
        """Drop the singleton and the module loader so the next lookup reads a fresh path."""
        global _loader_instance
        with cls._lock:
            cls._instance = None
            _loader_instance = None


def parse_simulation_config(data: dict[str, Any]) -> SimulationConfig:
    """Parse raw YAML data into SimulationConfig.

    Args:
        data: Raw YAML data as dictionary.

    Returns:
        Parsed SimulationConfig.

    Raises:
        SimulationConfigValidationError: If validation fails.
        TypeError: If a section carries unknown keys.
    """
    scoring_config = ScoringConfig(**data.get("scoring", {}))

    animation_data = dict(data.get("animation", {}))
    speeds = animation_data.pop("position_speeds", None)
    if speeds is not None:
        merged_speeds = _default_position_speeds()
        merged_speeds.update({str(k): float(v) for k, v in speeds.items()})
        animation_config = AnimationConfig(position_speeds=merged_speeds, **animation_data)
    else:
        animation_config = AnimationConfig(**animation_data)

    generator_config = GeneratorConfig(**data.get("generator", {}))

    return SimulationConfig(
        version=str(data.get("version", "1.0.0")),
        last_updated=str(data.get("last_updated", "")),
        scoring=scoring_config,
        animation=animation_config,
        generator=generator_config,
    )


_loader_instance: SimulationConfigLoader | None = None


def get_simulation_config_loader(
    config_path: Path | None = None,
) -> SimulationConfigLoader:
    """Get or create the singleton SimulationConfigLoader instance.

    When no path is given, the path from settings is used, falling back to
    the bundled simulation_config.yaml.

    Example:
        >>> loader = get_simulation_config_loader()
        >>> stall = loader.config.animation.default_stall_rotation
    """
    global _loader_instance
    if _loader_instance is None:
        if config_path is None:
            from trampsim.config.settings import get_settings

            config_path = get_settings().simulation_config_path
        _loader_instance = SimulationConfigLoader(config_path)
    return _loader_instance


def get_simulation_config() -> SimulationConfig:
    """Get current simulation configuration.

    Example:
        >>> from trampsim.config.simulation_config_loader import get_simulation_config
        >>> config = get_simulation_config()
        >>> config.scoring.min_difficulty
        0.0
    """
    return get_simulation_config_loader().config


def reload_simulation_config() -> None:
    """Force reload simulation configuration from file."""
    get_simulation_config_loader().reload()
