from __future__ import annotations

import json

from fastapi import HTTPException
from redis.exceptions import ConnectionError as RedisConnectionError
from starlette.requests import Request

from app.errors import (
    child_api_error_handler,
    http_exception_handler,
    redis_error_handler,
    transport_error_handler,
)
from services.api.http import RequestTimeoutError, TransportError
from services.ninos import ChildApiError, ChildNotFoundError


def _request() -> Request:
    return Request({"type": "http", "method": "GET", "path": "/", "headers": []})


def test_http_exception_handler_structured_detail_uses_safe_message() -> None:
    response = http_exception_handler(
        None,  # type: ignore[arg-type]
        HTTPException(status_code=400, detail={"reason": "invalid", "count": 2}),
    )

    body = json.loads(response.body.decode("utf-8"))
    assert response.status_code == 400
    assert body["error"]["message"] == "request failed"
    assert body["error"]["details"] == {"reason": "invalid", "count": 2}


def test_http_exception_handler_keeps_redirect_location() -> None:
    response = http_exception_handler(
        None,  # type: ignore[arg-type]
        HTTPException(
            status_code=303, detail="login required", headers={"Location": "/login"}
        ),
    )

    body = json.loads(response.body.decode("utf-8"))
    assert response.status_code == 303
    assert response.headers["location"] == "/login"
    assert body["error"] == {"code": "login_required", "message": "login required"}


def test_transport_error_handler_distinguishes_timeouts() -> None:
    timed_out = transport_error_handler(_request(), RequestTimeoutError())
    unreachable = transport_error_handler(_request(), TransportError())

    assert timed_out.status_code == 504
    assert json.loads(timed_out.body)["error"]["message"] == "request timed out"
    assert unreachable.status_code == 502
    assert json.loads(unreachable.body)["error"]["code"] == "bad_gateway"


def test_child_api_error_handler_passes_client_errors_through() -> None:
    not_found = child_api_error_handler(
        None,  # type: ignore[arg-type]
        ChildNotFoundError(404, "Niño no encontrado"),
    )
    upstream = child_api_error_handler(
        None,  # type: ignore[arg-type]
        ChildApiError(500, "boom"),
    )

    assert not_found.status_code == 404
    assert json.loads(not_found.body)["error"]["message"] == "Niño no encontrado"
    assert upstream.status_code == 502


def test_redis_error_handler_reports_unavailable_storage() -> None:
    response = redis_error_handler(_request(), RedisConnectionError("down"))

    body = json.loads(response.body.decode("utf-8"))
    assert response.status_code == 503
    assert body["error"]["message"] == "session storage unavailable"
