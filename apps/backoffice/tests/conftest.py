from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
import sys
from typing import Any, Callable, Optional

import jwt
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from services.api import endpoints as api_endpoints  # noqa: E402
from services.api import settings as api_settings  # noqa: E402
from services.api.endpoints import ApiEndpoints  # noqa: E402
from services.api.http import ApiResponse  # noqa: E402
from services.auth import settings as auth_settings  # noqa: E402
from services.auth.session import SessionStore  # noqa: E402
from services.auth.storage import InMemorySessionStorage  # noqa: E402

BASE_URL = "http://backend.test/api"
_SIGNING_KEY = "unit-test-signing-key-0123456789abcdef"


class FakeBackend:
    """Stands in for ``request_json``: canned responses keyed by method and URL."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self._routes: dict[tuple[str, str], ApiResponse | BaseException] = {}

    def respond(self, method: str, url: str, status: int = 200, data: Any = None) -> None:
        self._routes[(method, url)] = ApiResponse(status=status, data=data)

    def fail(self, method: str, url: str, exc: BaseException) -> None:
        self._routes[(method, url)] = exc

    def __call__(
        self,
        method: str,
        url: str,
        *,
        payload: Optional[Any] = None,
        headers: Optional[dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> ApiResponse:
        self.calls.append(
            {
                "method": method,
                "url": url,
                "payload": payload,
                "headers": dict(headers or {}),
                "timeout": timeout,
            }
        )
        outcome = self._routes.get((method, url))
        if outcome is None:
            return ApiResponse(status=404, data={"message": "no such route"})
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture(autouse=True)
def _isolate_cached_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HUAHUACUNA_ENV_FILE", str(ROOT / "tests" / "missing.env"))
    api_settings.get_api_settings.cache_clear()
    api_endpoints.get_api_endpoints.cache_clear()
    auth_settings.get_auth_settings.cache_clear()


@pytest.fixture
def endpoints() -> ApiEndpoints:
    return ApiEndpoints(base_url=BASE_URL)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def storage() -> InMemorySessionStorage:
    return InMemorySessionStorage()


@pytest.fixture
def store(storage: InMemorySessionStorage) -> SessionStore:
    return SessionStore(storage)


@pytest.fixture
def make_token() -> Callable[..., str]:
    def _make(
        *,
        expires_in: Optional[timedelta] = timedelta(hours=1),
        **claims: Any,
    ) -> str:
        payload: dict[str, Any] = {"sub": "a@b.com", **claims}
        if expires_in is not None:
            payload["exp"] = int((datetime.now(timezone.utc) + expires_in).timestamp())
        return jwt.encode(payload, _SIGNING_KEY, algorithm="HS256")

    return _make
