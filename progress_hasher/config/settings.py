"""Configuration settings using Pydantic."""

import os
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from progress_hasher.core.enumerator import SymlinkPolicy
from progress_hasher.utils.hash import DEFAULT_ALGORITHM, DEFAULT_CHUNK_SIZE, validate_algorithm


def default_max_concurrency() -> int:
    """Same rule ThreadPoolExecutor uses for its default worker count."""
    return min(32, (os.cpu_count() or 1) + 4)


class Settings(BaseSettings):
    """Hashing settings loaded from environment variables or a YAML file."""

    model_config = SettingsConfigDict(
        env_prefix="PROGRESS_HASHER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Hashing
    max_concurrency: int = Field(
        default_factory=default_max_concurrency,
        ge=1,
        description="Maximum number of files read at the same time",
    )
    hash_algorithm: str = Field(default=DEFAULT_ALGORITHM, description="hashlib algorithm name")
    symlink_policy: SymlinkPolicy = Field(
        default=SymlinkPolicy.SKIP,
        description="Whether symbolic links are followed during the walk",
    )
    max_file_size: int | None = Field(
        default=None,
        gt=0,
        description="Files larger than this many bytes abort the run",
    )
    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, gt=0, description="Read block size in bytes")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Path | None = Field(default=None, description="Optional JSONL log file")

    @field_validator("hash_algorithm")
    @classmethod
    def _check_algorithm(cls, value: str) -> str:
        return validate_algorithm(value)

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level


def load_settings_file(path: Path, **overrides) -> Settings:
    """
    Load settings from a YAML mapping.

    Environment variables still apply to keys the file leaves out;
    keyword overrides win over both.

    Args:
        path: YAML file with Settings field names as keys
        **overrides: Explicit values, None entries are ignored

    Returns:
        Settings instance
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Settings file must contain a mapping: {path}")

    data.update({key: value for key, value in overrides.items() if value is not None})
    return Settings(**data)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
