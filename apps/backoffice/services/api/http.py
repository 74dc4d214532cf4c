from __future__ import annotations

from dataclasses import dataclass
from http import client as httpclient
import json
import logging
import time
from typing import Any, Callable, Dict, Mapping, Optional, Protocol
from urllib import error as urlerror
from urllib import parse as urlparse
from urllib import request as urlrequest

from services.structured_log import log_event

from .settings import get_api_settings

logger = logging.getLogger("huahuacuna.api.http")

DEFAULT_HEADERS: Dict[str, str] = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


class TransportError(RuntimeError):
    """The backend could not be reached at all."""

    timed_out = False

    def __init__(self, message: str = "request failed") -> None:
        super().__init__(message)
        self.message = message


class RequestTimeoutError(TransportError):
    timed_out = True

    def __init__(self, message: str = "request timed out") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class ApiResponse:
    status: int
    data: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def error_message(self) -> Optional[str]:
        """Human-readable message carried by a backend error payload, if any."""
        if not isinstance(self.data, dict):
            return None
        for key in ("message", "error"):
            value = self.data.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
        return None


def _is_timeout(exc: BaseException) -> bool:
    if isinstance(exc, TimeoutError):
        return True
    return isinstance(getattr(exc, "reason", None), TimeoutError)


def _decode_body(body: str) -> Any:
    if not body.strip():
        return None
    try:
        return json.loads(body)
    except json.JSONDecodeError:
        return None


def _read_error_body(exc: urlerror.HTTPError) -> str:
    if not exc.fp:
        return ""
    try:
        return exc.read().decode("utf-8", errors="replace")
    except (OSError, httpclient.HTTPException):
        # The status is already known; a truncated error body only loses the message.
        return ""


def request_json(
    method: str,
    url: str,
    *,
    payload: Optional[Any] = None,
    headers: Optional[Mapping[str, str]] = None,
    timeout: Optional[float] = None,
) -> ApiResponse:
    """Perform one JSON request bounded by ``timeout`` seconds.

    Non-2xx statuses are returned, not raised, so callers can read the
    backend's error payload. Unreachable backends raise ``TransportError``
    and an exceeded timeout raises ``RequestTimeoutError``.
    """
    merged = {**DEFAULT_HEADERS, **(headers or {})}
    data = None
    if payload is not None:
        data = json.dumps(payload).encode("utf-8")
    if timeout is None:
        timeout = get_api_settings().request_timeout_seconds

    req = urlrequest.Request(url, data=data, headers=merged, method=method)
    path = urlparse.urlsplit(url).path
    start = time.monotonic()
    try:
        with urlrequest.urlopen(req, timeout=timeout) as resp:
            status = resp.status
            body = resp.read().decode("utf-8", errors="replace")
    except urlerror.HTTPError as exc:
        status = exc.code
        body = _read_error_body(exc)
    except (OSError, httpclient.HTTPException) as exc:
        timed_out = _is_timeout(exc)
        log_event(
            logger,
            event="api_request_failed",
            level=logging.WARNING,
            method=method,
            path=path,
            timed_out=timed_out,
            duration_ms=int((time.monotonic() - start) * 1000),
        )
        if timed_out:
            raise RequestTimeoutError() from exc
        raise TransportError() from exc

    log_event(
        logger,
        event="api_request",
        level=logging.DEBUG,
        method=method,
        path=path,
        status=status,
        duration_ms=int((time.monotonic() - start) * 1000),
    )
    return ApiResponse(status=status, data=_decode_body(body))


class AuthorizationSource(Protocol):
    def get_authorization_header_value(self) -> Optional[str]: ...


class AuthorizedHttpClient:
    """``request_json`` that attaches the live session's bearer token."""

    def __init__(
        self,
        source: AuthorizationSource,
        *,
        timeout: Optional[float] = None,
        request: Optional[Callable[..., ApiResponse]] = None,
    ) -> None:
        self._source = source
        self._timeout = timeout
        self._request = request or request_json

    def request_json(
        self,
        method: str,
        url: str,
        *,
        payload: Optional[Any] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> ApiResponse:
        merged = dict(headers or {})
        value = self._source.get_authorization_header_value()
        if value:
            merged["Authorization"] = value
        return self._request(
            method,
            url,
            payload=payload,
            headers=merged,
            timeout=self._timeout,
        )
