from __future__ import annotations

import logging
from typing import Any, Optional, cast

from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from app.middleware import get_request_id
from app.schemas.common import ErrorInfo, ErrorResponse
from services.api.http import TransportError
from services.ninos import ChildApiError
from services.structured_log import log_event


logger = logging.getLogger(__name__)

_STATUS_CODE_MAP = {
    303: "login_required",
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    409: "conflict",
    422: "validation_error",
    502: "bad_gateway",
    503: "service_unavailable",
    504: "gateway_timeout",
}


def _error_payload(
    *, status_code: int, message: str, details: Optional[Any] = None
) -> dict[str, Any]:
    code = _STATUS_CODE_MAP.get(status_code, "error")
    payload = ErrorResponse(
        error=ErrorInfo(code=code, message=message, details=details)
    )
    return payload.model_dump(by_alias=True, exclude_none=True)


def _sanitize_error_details(details: Any) -> Any:
    if isinstance(details, BaseException):
        return str(details)
    if isinstance(details, dict):
        return {
            key: _sanitize_error_details(value)
            for key, value in cast(dict[Any, Any], details).items()
        }
    if isinstance(details, list):
        return [_sanitize_error_details(value) for value in cast(list[Any], details)]
    return details


def http_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    http_exc = cast(HTTPException, exc)
    detail: Any = http_exc.detail
    message = detail if isinstance(detail, str) else "request failed"
    details: Any = (
        None
        if isinstance(detail, str)
        else jsonable_encoder(_sanitize_error_details(detail))
    )
    payload = _error_payload(
        status_code=http_exc.status_code,
        message=message,
        details=details,
    )
    return JSONResponse(
        status_code=http_exc.status_code,
        content=payload,
        headers=getattr(http_exc, "headers", None),
    )


def validation_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    validation_exc = cast(RequestValidationError, exc)
    details = jsonable_encoder(_sanitize_error_details(validation_exc.errors()))
    payload = _error_payload(
        status_code=422,
        message="validation error",
        details=details,
    )
    return JSONResponse(status_code=422, content=payload)


def value_error_handler(_: Request, exc: Exception) -> JSONResponse:
    payload = _error_payload(status_code=400, message=str(exc))
    return JSONResponse(status_code=400, content=payload)


def transport_error_handler(request: Request, exc: Exception) -> JSONResponse:
    transport_exc = cast(TransportError, exc)
    status_code = 504 if transport_exc.timed_out else 502
    log_event(
        logger,
        event="backend_unreachable",
        level=logging.WARNING,
        request_id=get_request_id(request),
        timed_out=transport_exc.timed_out,
    )
    payload = _error_payload(status_code=status_code, message=transport_exc.message)
    return JSONResponse(status_code=status_code, content=payload)


def child_api_error_handler(_: Request, exc: Exception) -> JSONResponse:
    child_exc = cast(ChildApiError, exc)
    # Backend auth failures are passed through; anything else is an upstream fault.
    status_code = child_exc.status_code if child_exc.status_code in {400, 401, 403, 404, 409} else 502
    payload = _error_payload(status_code=status_code, message=child_exc.message)
    return JSONResponse(status_code=status_code, content=payload)


def redis_error_handler(request: Request, exc: Exception) -> JSONResponse:
    redis_exc = cast(RedisError, exc)
    logger.error("Redis error", exc_info=redis_exc)
    log_event(
        logger,
        event="session_storage_error",
        level=logging.ERROR,
        request_id=get_request_id(request),
        error_message=str(redis_exc),
    )
    payload = _error_payload(status_code=503, message="session storage unavailable")
    return JSONResponse(status_code=503, content=payload)
