from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
import json
import logging
from threading import RLock
from typing import Any, Callable, List, Literal, Optional, cast

from services.structured_log import log_event

from .storage import TOKEN_KEY, USER_KEY, SessionStorage
from .tokens import is_expired, try_token_expiry

logger = logging.getLogger("huahuacuna.auth.session")

Role = Literal["ADMIN", "USER"]
_ROLES = ("ADMIN", "USER")


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class UserInfo:
    id: str
    email: str
    name: str
    role: Optional[Role] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> "UserInfo":
        if not isinstance(data, dict):
            raise ValueError("user profile must be an object")
        payload = cast(dict[str, Any], data)
        user_id = payload.get("id")
        email = payload.get("email")
        name = payload.get("name")
        role = payload.get("role")
        if isinstance(user_id, int) and not isinstance(user_id, bool):
            user_id = str(user_id)
        if not isinstance(user_id, str) or not user_id:
            raise ValueError("user profile is missing id")
        if not isinstance(email, str) or not isinstance(name, str):
            raise ValueError("user profile is missing email or name")
        if role is not None and role not in _ROLES:
            raise ValueError(f"unknown role: {role!r}")
        return cls(id=user_id, email=email, name=name, role=cast(Optional[Role], role))


@dataclass(frozen=True)
class Session:
    user: UserInfo
    token: str
    expires_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return is_expired(self.expires_at, now=now)

    @property
    def authorization_header_value(self) -> str:
        return f"Bearer {self.token}"


SessionListener = Callable[[Optional[Session]], None]


class SessionStore:
    """The single live session of this process, written through to storage.

    Storage is read only by ``initialize``; every other read is answered from
    memory.
    """

    def __init__(
        self,
        storage: SessionStorage,
        *,
        clock: Callable[[], datetime] = _now,
    ) -> None:
        self._storage = storage
        self._clock = clock
        self._session: Optional[Session] = None
        self._loading = True
        self._initialized = False
        self._listeners: List[SessionListener] = []
        self._lock = RLock()

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def session(self) -> Optional[Session]:
        with self._lock:
            current = self._session
            if current is not None and current.is_expired(self._clock()):
                self._storage.delete(TOKEN_KEY, USER_KEY)
                self._replace(None)
                log_event(
                    logger,
                    event="session_discarded",
                    reason="expired_token",
                    user_id=current.user.id,
                )
                return None
            return current

    @property
    def user(self) -> Optional[UserInfo]:
        current = self.session
        return current.user if current else None

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    def initialize(self) -> Optional[Session]:
        with self._lock:
            if self._initialized:
                return self._session
            try:
                restored = self._restore()
            finally:
                self._initialized = True
                self._loading = False
            if restored is not None:
                self._replace(restored)
            return restored

    def _discard(self, reason: str) -> None:
        self._storage.delete(TOKEN_KEY, USER_KEY)
        log_event(logger, event="session_discarded", reason=reason)

    def _restore(self) -> Optional[Session]:
        token = self._storage.get(TOKEN_KEY)
        raw_user = self._storage.get(USER_KEY)
        if not token or not token.strip() or not raw_user:
            if token or raw_user:
                self._discard("incomplete")
            return None
        # Same rule as set_session: an undecodable token is opaque and never expires.
        expires_at = try_token_expiry(token)
        if is_expired(expires_at, now=self._clock()):
            self._discard("expired_token")
            return None
        try:
            user = UserInfo.from_dict(json.loads(raw_user))
        except ValueError:
            self._discard("corrupt_user")
            return None
        log_event(logger, event="session_restored", user_id=user.id, role=user.role)
        return Session(user=user, token=token, expires_at=expires_at)

    def set_session(self, user: UserInfo, token: str) -> Session:
        if not token or not token.strip():
            raise ValueError("token required")
        session = Session(user=user, token=token, expires_at=try_token_expiry(token))
        if session.is_expired(self._clock()):
            raise ValueError("token already expired")
        with self._lock:
            self._storage.set_many(
                {
                    USER_KEY: json.dumps(user.to_dict(), separators=(",", ":")),
                    TOKEN_KEY: token,
                }
            )
            self._initialized = True
            self._loading = False
            self._replace(session)
        log_event(logger, event="session_set", user_id=user.id, role=user.role)
        return session

    def clear_session(self) -> None:
        with self._lock:
            previous = self._session
            self._storage.delete(TOKEN_KEY, USER_KEY)
            self._initialized = True
            self._loading = False
            if previous is None:
                return
            self._replace(None)
        log_event(logger, event="session_cleared", user_id=previous.user.id)

    def get_authorization_header_value(self) -> Optional[str]:
        current = self.session
        if current is None:
            return None
        return current.authorization_header_value

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def _replace(self, session: Optional[Session]) -> None:
        self._session = session
        for listener in list(self._listeners):
            listener(session)
