from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
from typing import Any
from uuid import uuid4


_REDACTED = "[redacted]"
_SENSITIVE_FIELDS = frozenset(
    {"token", "password", "new_password", "authorization", "reset_token"}
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_request_id() -> str:
    return uuid4().hex


def _redact(fields: dict[str, Any]) -> dict[str, Any]:
    return {
        key: (_REDACTED if key.lower() in _SENSITIVE_FIELDS and value else value)
        for key, value in fields.items()
    }


def log_event(
    logger: logging.Logger,
    *,
    event: str,
    level: int = logging.INFO,
    **fields: Any,
) -> None:
    """Emit one JSON line describing ``event``.

    Credential-bearing fields (tokens, passwords, authorization headers) are
    replaced with a placeholder before serialization.
    """
    if not logger.isEnabledFor(level):
        return
    payload = {"ts": _now_iso(), "event": event, **_redact(fields)}
    logger.log(
        level,
        json.dumps(payload, ensure_ascii=True, separators=(",", ":"), default=str),
    )
