from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
import logging
import re
from threading import Lock
from typing import Any, Callable, Iterable, Iterator, Literal, Optional, cast

from services.api.endpoints import ApiEndpoints, get_api_endpoints
from services.api.http import ApiResponse, TransportError, request_json
from services.structured_log import log_event

from .errors import (
    AuthError,
    AuthTransportError,
    AuthenticationFailedError,
    DuplicateSubmissionError,
    InvalidEmailError,
    MissingCredentialsError,
    WeakPasswordError,
)
from .session import Role, SessionStore, UserInfo

logger = logging.getLogger("huahuacuna.auth.client")

FlowStatus = Literal["idle", "submitting", "success", "failed"]
RequestFn = Callable[..., ApiResponse]

MIN_PASSWORD_LENGTH = 6
ADMIN_ROLE_MARKERS = frozenset({"ADMIN", "ROLE_ADMIN"})

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_LOGIN_FALLBACK = "Invalid email or password"
_REQUEST_FALLBACK = "request failed"


@dataclass(frozen=True)
class TokenCheck:
    valid: bool
    email: Optional[str] = None


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email))


def derive_role(value: Any) -> Role:
    """Collapse a backend role indicator (string or list) into one coarse role."""
    if isinstance(value, str):
        candidates: Iterable[Any] = [value]
    elif isinstance(value, (list, tuple, set)):
        candidates = cast(Iterable[Any], value)
    else:
        candidates = []
    for candidate in candidates:
        if isinstance(candidate, str) and candidate.strip().upper() in ADMIN_ROLE_MARKERS:
            return "ADMIN"
    return "USER"


def _require_email(email: str) -> str:
    normalized = (email or "").strip()
    if not normalized:
        raise MissingCredentialsError("Please enter your email address")
    if not is_valid_email(normalized):
        raise InvalidEmailError("Please enter a valid email address")
    return normalized


def _require_password(password: str) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise WeakPasswordError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    return password


class AuthClient:
    """Login, logout and password-recovery flows against the backend.

    Each submitting flow moves ``idle -> submitting -> success | failed``.
    Failures are kept in ``error`` until ``clear_error`` (or the next
    submission) and are also re-raised to the caller.
    """

    def __init__(
        self,
        session_store: SessionStore,
        *,
        endpoints: Optional[ApiEndpoints] = None,
        request: RequestFn = request_json,
    ) -> None:
        self.session_store = session_store
        self._endpoints = endpoints or get_api_endpoints()
        self._request = request
        self._status: FlowStatus = "idle"
        self._error: Optional[str] = None
        self._loading = False
        self._state_lock = Lock()

    @property
    def status(self) -> FlowStatus:
        return self._status

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> Optional[str]:
        return self._error

    def clear_error(self) -> None:
        self._error = None

    @contextmanager
    def _submitting(self, flow: str) -> Iterator[None]:
        with self._state_lock:
            if self._loading:
                raise DuplicateSubmissionError()
            self._loading = True
            self._status = "submitting"
            self._error = None
        try:
            yield
        except AuthError as exc:
            self._status = "failed"
            self._error = exc.message
            log_event(
                logger,
                event="auth_flow_failed",
                level=logging.WARNING if exc.category != "validation" else logging.INFO,
                flow=flow,
                category=exc.category,
                error_message=exc.message,
            )
            raise
        except Exception as exc:
            self._status = "failed"
            self._error = _REQUEST_FALLBACK
            log_event(
                logger,
                event="auth_flow_failed",
                level=logging.ERROR,
                flow=flow,
                category="internal",
                error_type=type(exc).__name__,
            )
            raise
        else:
            self._status = "success"
            log_event(logger, event="auth_flow_succeeded", flow=flow)
        finally:
            self._loading = False

    def _send(self, method: str, url: str, payload: Optional[dict[str, Any]] = None) -> ApiResponse:
        try:
            return self._request(method, url, payload=payload)
        except TransportError as exc:
            raise AuthTransportError(exc.message, timed_out=exc.timed_out) from exc

    @staticmethod
    def _require_success(response: ApiResponse, fallback: str) -> dict[str, Any]:
        body = cast(dict[str, Any], response.data) if isinstance(response.data, dict) else {}
        if not response.ok or body.get("success") is False:
            raise AuthenticationFailedError(
                response.error_message() or fallback,
                status_code=response.status,
            )
        return body

    def login(self, email: str, password: str) -> UserInfo:
        with self._submitting("login"):
            try:
                normalized = (email or "").strip()
                if not normalized or not password:
                    raise MissingCredentialsError("Please fill in all fields")
                response = self._send(
                    "POST",
                    self._endpoints.login,
                    {"email": normalized, "password": password},
                )
                user, token = self._parse_login(response, normalized)
                try:
                    self.session_store.set_session(user, token)
                except ValueError as exc:
                    raise AuthenticationFailedError(
                        "received an expired session token"
                    ) from exc
            except AuthError:
                self.session_store.clear_session()
                raise
        return user

    def _parse_login(self, response: ApiResponse, email: str) -> tuple[UserInfo, str]:
        body = self._require_success(response, _LOGIN_FALLBACK)
        data = body.get("data")
        if not isinstance(data, dict):
            raise AuthenticationFailedError(
                response.error_message() or _LOGIN_FALLBACK, status_code=response.status
            )
        profile = cast(dict[str, Any], data)
        token = profile.get("token")
        user_id = profile.get("userId")
        if not isinstance(token, str) or not token or user_id in (None, ""):
            raise AuthenticationFailedError(_LOGIN_FALLBACK, status_code=response.status)
        role_value = profile.get("roles", profile.get("role"))
        user = UserInfo(
            id=str(user_id),
            email=str(profile.get("email") or email),
            name=str(profile.get("fullName") or ""),
            role=derive_role(role_value),
        )
        return user, token

    def logout(self) -> None:
        self.session_store.clear_session()
        self._error = None
        self._status = "idle"

    def forgot_password(self, email: str) -> Optional[str]:
        """Ask the backend to start a password reset.

        Returns the reset token when the backend includes one in its
        response (development backends only).
        """
        with self._submitting("forgot_password"):
            normalized = _require_email(email)
            response = self._send(
                "POST", self._endpoints.forgot_password, {"email": normalized}
            )
            body = self._require_success(response, _REQUEST_FALLBACK)
            token = body.get("token")
        return token if isinstance(token, str) and token else None

    def verify_reset_token(self, token: str) -> TokenCheck:
        if not token:
            return TokenCheck(valid=False)
        try:
            response = self._request("GET", self._endpoints.verify_token(token))
        except TransportError as exc:
            log_event(
                logger,
                event="reset_token_check_failed",
                level=logging.WARNING,
                timed_out=exc.timed_out,
            )
            return TokenCheck(valid=False)
        if not response.ok or not isinstance(response.data, dict):
            return TokenCheck(valid=False)
        body = cast(dict[str, Any], response.data)
        if body.get("valid") is not True:
            return TokenCheck(valid=False)
        email = body.get("email")
        return TokenCheck(valid=True, email=email if isinstance(email, str) else None)

    def reset_password(self, token: str, new_password: str) -> None:
        with self._submitting("reset_password"):
            if not token:
                raise MissingCredentialsError("Reset link is missing its token")
            _require_password(new_password)
            response = self._send(
                "POST",
                self._endpoints.reset_password,
                {"token": token, "newPassword": new_password},
            )
            self._require_success(response, _REQUEST_FALLBACK)

    def register(self, name: str, email: str, password: str) -> Optional[str]:
        return self._register("register", self._endpoints.register, name, email, password)

    def register_admin(self, name: str, email: str, password: str) -> Optional[str]:
        return self._register(
            "register_admin", self._endpoints.register_admin, name, email, password
        )

    def _register(
        self, flow: str, url: str, name: str, email: str, password: str
    ) -> Optional[str]:
        with self._submitting(flow):
            clean_name = (name or "").strip()
            if not clean_name:
                raise MissingCredentialsError("Please fill in all fields")
            normalized = _require_email(email)
            _require_password(password)
            response = self._send(
                "POST",
                url,
                {"nombre": clean_name, "email": normalized, "password": password},
            )
            body = self._require_success(response, _REQUEST_FALLBACK)
            message = body.get("message")
        return message if isinstance(message, str) else None
