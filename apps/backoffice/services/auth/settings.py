from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from services.api.settings import resolve_env_file


class AuthSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        extra="ignore",
    )

    storage_backend: Literal["memory", "redis"] = "memory"
    redis_url: Optional[str] = None
    storage_prefix: str = ""
    login_path: str = "/login"
    # Development only: echo the backend's password-reset token to the caller.
    expose_reset_token: bool = False


def _build_auth_settings() -> AuthSettings:
    return AuthSettings(_env_file=resolve_env_file())  # pyright: ignore[reportCallIssue]


@lru_cache
def get_auth_settings() -> AuthSettings:
    return _build_auth_settings()
