"""
Server settings loaded from environment variables.

These are the knobs of the process itself (bind address, logging, retry
budget). The application's validated runtime configuration lives in
``showcase.core.config``.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import dotenv_values
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Speech Showcase server settings."""

    model_config = SettingsConfigDict(env_prefix="SHOWCASE_", env_file=".env", extra="ignore")

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Logging
    log_level: str = "info"
    log_format: Literal["json", "text"] = "json"

    # Dotenv file merged under the process environment
    env_file: str = ".env.local"

    # Configuration-error display route
    error_path: str = "/env-error"

    # Session tokens
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60

    # Database connect retry
    db_connect_attempts: int = 3
    db_connect_base_delay_seconds: float = 1.0
    db_connect_max_delay_seconds: float = 10.0


@lru_cache
def get_settings() -> Settings:
    return Settings()


def read_environment(
    env_file: str | Path | None = None,
    environ: Mapping[str, str | None] | None = None,
) -> dict[str, str]:
    """Snapshot the ambient variables, dropping empty values.

    Values from ``env_file`` fill in only what the process environment does
    not already set.
    """
    if environ is None:
        environ = os.environ
    if env_file is None:
        env_file = get_settings().env_file

    merged: dict[str, str] = {}
    path = Path(env_file)
    if path.is_file():
        for key, value in dotenv_values(path).items():
            if value:
                merged[key] = value

    for key, value in environ.items():
        if value:
            merged[key] = value
    return merged
