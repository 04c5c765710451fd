"""Application configuration module.

This module organizes configuration into specialized files:

- **settings.py**: Environment-based settings (Pydantic BaseSettings)
  - Log level/format, data locations, generator seed
  - Loaded from .env file via pydantic-settings (``TRAMPSIM_`` prefix)

- **simulation_config.yaml**: Scoring, animation and generator tuning
  - Reloadable via SimulationConfigLoader
  - Difficulty floor and triple-flip thresholds, stall/kickout budgets,
    position speeds, routine length and attempt budget
"""
from trampsim.config.settings import Settings, get_settings

# Simulation config loader (lazy import to avoid circular dependencies)
# Use: from trampsim.config.simulation_config_loader import get_simulation_config

__all__ = ["Settings", "get_settings"]
