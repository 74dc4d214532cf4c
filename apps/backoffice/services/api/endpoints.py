from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from urllib import parse as urlparse

from .settings import get_api_settings


@dataclass(frozen=True)
class ApiEndpoints:
    base_url: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    @property
    def login(self) -> str:
        return self._url("/auth/login")

    @property
    def register(self) -> str:
        return self._url("/auth/register")

    @property
    def register_admin(self) -> str:
        return self._url("/auth/register-admin")

    @property
    def forgot_password(self) -> str:
        return self._url("/auth/forgot-password")

    @property
    def reset_password(self) -> str:
        return self._url("/auth/reset-password")

    def verify_token(self, token: str) -> str:
        return self._url(f"/auth/verify-token/{urlparse.quote(token, safe='')}")

    @property
    def ninos(self) -> str:
        return self._url("/v1/ninos")

    def nino(self, nino_id: int) -> str:
        return self._url(f"/v1/ninos/{int(nino_id)}")

    def nino_estado(self, nino_id: int) -> str:
        return self._url(f"/v1/ninos/{int(nino_id)}/estado")


@lru_cache(maxsize=1)
def get_api_endpoints() -> ApiEndpoints:
    return ApiEndpoints(base_url=get_api_settings().api_url)
