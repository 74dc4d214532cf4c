from __future__ import annotations

from threading import RLock
from typing import Any, Dict, Mapping, Optional, Protocol, cast

from redis import Redis

from .settings import AuthSettings, get_auth_settings


TOKEN_KEY = "auth_token"
USER_KEY = "auth_user"


class SessionStorage(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set_many(self, values: Mapping[str, str]) -> None: ...

    def delete(self, *keys: str) -> None: ...


class InMemorySessionStorage:
    def __init__(self) -> None:
        self._items: Dict[str, str] = {}
        self._lock = RLock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._items.get(key)

    def set_many(self, values: Mapping[str, str]) -> None:
        with self._lock:
            self._items.update(values)

    def delete(self, *keys: str) -> None:
        with self._lock:
            for key in keys:
                self._items.pop(key, None)


class RedisSessionStorage:
    def __init__(self, redis: Redis, *, prefix: str = "") -> None:
        self.redis = redis
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str) -> Optional[str]:
        raw = cast(Optional[bytes | str], self.redis.get(self._key(key)))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            return raw.decode("utf-8")
        return raw

    def set_many(self, values: Mapping[str, str]) -> None:
        if not values:
            return
        self.redis.mset({self._key(key): value for key, value in values.items()})

    def delete(self, *keys: str) -> None:
        if not keys:
            return
        self.redis.delete(*(self._key(key) for key in keys))


def build_session_storage(
    settings: Optional[AuthSettings] = None,
) -> InMemorySessionStorage | RedisSessionStorage:
    settings = settings or get_auth_settings()
    if settings.storage_backend == "redis":
        if not settings.redis_url:
            raise RuntimeError("AUTH_REDIS_URL must be set for the redis backend")
        redis_cls = cast(Any, Redis)
        client = cast(Redis, redis_cls.from_url(settings.redis_url))
        return RedisSessionStorage(client, prefix=settings.storage_prefix)
    return InMemorySessionStorage()
