"""Application configuration settings."""
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Trampoline Simulator"
    debug: bool = False

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = True  # JSON lines; set False for console-friendly output

    # Data sources
    simulation_config_path: Path | None = None  # Defaults to the bundled simulation_config.yaml
    skill_data_dir: Path | None = None  # Defaults to the bundled trampsim/data directory

    # Routine generation
    random_seed: int | None = None  # Fixed seed makes generated routines reproducible

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "TRAMPSIM_"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
