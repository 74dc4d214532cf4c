from __future__ import annotations

from functools import lru_cache
import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_API_URL = "http://localhost:8080/api"


def resolve_env_file() -> str:
    override = os.getenv("HUAHUACUNA_ENV_FILE")
    if override:
        return override
    cwd = Path.cwd()
    for base in (cwd, *cwd.parents):
        candidate = base / ".env"
        if candidate.is_file():
            return str(candidate)
    return ".env"


class ApiSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="HUAHUACUNA_",
        extra="ignore",
    )

    api_url: str = DEFAULT_API_URL
    request_timeout_seconds: float = 10.0


def load_api_settings_uncached() -> ApiSettings:
    return ApiSettings(_env_file=resolve_env_file())  # pyright: ignore[reportCallIssue]


@lru_cache
def get_api_settings() -> ApiSettings:
    """Read the backend address and request timeout once per process."""
    return load_api_settings_uncached()
