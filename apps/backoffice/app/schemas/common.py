from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict


def to_camel(value: str) -> str:
    parts = value.split("_")
    return parts[0] + "".join(word.capitalize() for word in parts[1:])


class ApiModel(BaseModel):
    """Request/response body of this service: camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class ErrorInfo(ApiModel):
    code: str
    message: str
    details: Optional[Any] = None


class ErrorResponse(ApiModel):
    error: ErrorInfo


class OkResponse(ApiModel):
    ok: bool = True
    message: Optional[str] = None


class HealthResponse(ApiModel):
    status: Literal["ok"] = "ok"
    session: Literal["loading", "active", "empty"]
