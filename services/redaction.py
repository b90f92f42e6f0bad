from __future__ import annotations

import re
from typing import Any, Mapping


_EMAIL_RE = re.compile(r"\b([A-Za-z0-9._%+-])([A-Za-z0-9._%+-]*)(@[A-Za-z0-9.-]+\.[A-Za-z]{2,})\b")
# mobile-money numbers travel with or without the leading "+"
_PHONE_RE = re.compile(r"\+?\b\d{8,15}\b")
_BEARER_RE = re.compile(r"(?i)bearer\s+\S+")

_SENSITIVE_KEY_MARKERS = (
    "token",
    "authorization",
    "access",
    "refresh",
    "password",
    "withdriwal_code",
    "cookie",
)


def _mask_email(match: re.Match) -> str:
    return f"{match.group(1)}***{match.group(3)}"


def mask_phone(value: str) -> str:
    if len(value) <= 8:
        return value
    return f"{value[:5]}****{value[-2:]}"


def redact_text(value: str) -> str:
    masked = _BEARER_RE.sub("Bearer [REDACTED]", value)
    masked = _EMAIL_RE.sub(_mask_email, masked)
    return _PHONE_RE.sub(lambda m: mask_phone(m.group(0)), masked)


def _is_sensitive_key(key: str) -> bool:
    key_l = (key or "").lower()
    return any(marker in key_l for marker in _SENSITIVE_KEY_MARKERS)


def redact_value(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        return redact_text(value)
    if isinstance(value, Mapping):
        return redact_dict(value)
    if isinstance(value, (list, tuple)):
        return [redact_value(v) for v in value]
    return value


def redact_dict(payload: Mapping[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for k, v in payload.items():
        if _is_sensitive_key(str(k)):
            out[k] = "[REDACTED]"
        else:
            out[k] = redact_value(v)
    return out
