"""
Configuration for the conversion pipeline.

Uses pydantic-settings so every option can come from OGM2SQLITE_* environment
variables or a .env file. Command line options take precedence.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Runtime settings: corpus location, output database and logger sink."""

    model_config = SettingsConfigDict(
        env_prefix="OGM2SQLITE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    ogm_path: Path = Path("./tmp/opengeometadata/")
    db_path: Path = Path("./tmp/ogm.db")
    schema_version: str = "Aardvark"
    log_file: Optional[Path] = None  # stderr when unset
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}")
        return level


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
