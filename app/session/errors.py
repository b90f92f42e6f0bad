# app/session/errors.py
from __future__ import annotations

import re
from typing import Any, Iterable, Optional

from app import messages
from app.session.results import ApiResult, RateLimitWait

# "<minutes> M:<seconds> S", e.g. "0 M:8 S" or "2 M:30 S"
_WAIT_PATTERN = re.compile(r"^\s*(\d+)\s*M\s*:\s*(\d+)\s*S\s*$", re.IGNORECASE)

_GENERIC_KEYS = ("detail", "error", "message")


def _first(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _as_text(value: Any) -> Optional[str]:
    value = _first(value)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def backend_message(body: Any, fallback: str = messages.GENERIC_ERROR) -> str:
    """User-visible message for a failed response body.

    Prefers ``detail``, then ``error``, then ``message``; a plain string body
    is shown as-is; anything else falls back to the generic text.
    """
    if isinstance(body, dict):
        for key in _GENERIC_KEYS:
            text = _as_text(body.get(key))
            if text:
                return text
        return fallback
    if isinstance(body, str) and body.strip():
        return body.strip()
    return fallback


def field_message(body: Any, field_names: Iterable[str]) -> Optional[str]:
    if not isinstance(body, dict):
        return None
    for name in field_names:
        text = _as_text(body.get(name))
        if text:
            return text
    return None


def most_specific_message(result: ApiResult, field_names: Iterable[str], fallback: str) -> str:
    """Field errors win over generic ones; only validation failures expose either."""
    if result.kind != "VALIDATION":
        return fallback
    body = result.fields or result.data
    specific = field_message(body, field_names)
    if specific:
        return specific
    return backend_message(body, fallback=fallback)


def parse_wait(body: Any) -> Optional[RateLimitWait]:
    if not isinstance(body, dict):
        return None
    raw = _first(body.get("error_time_message"))
    if not isinstance(raw, str):
        return None
    m = _WAIT_PATTERN.match(raw)
    if not m:
        return None
    wait = RateLimitWait(minutes=int(m.group(1)), seconds=int(m.group(2)))
    if wait.total_seconds <= 0:
        return None
    return wait


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count > 1 else ''}"


def wait_message(wait: Optional[RateLimitWait]) -> str:
    if wait is None:
        return messages.RETRY_LATER
    parts = []
    if wait.minutes > 0:
        parts.append(_plural(wait.minutes, "minute"))
    if wait.seconds > 0:
        parts.append(_plural(wait.seconds, "seconde"))
    return f"Veuillez patienter {' et '.join(parts)} avant de réessayer."


def is_rate_limit_body(body: Any) -> bool:
    return isinstance(body, dict) and "error_time_message" in body
