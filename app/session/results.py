# app/session/results.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Literal, Optional

from pydantic import BaseModel, ValidationError

from app import messages

logger = logging.getLogger("mobcash.session")

ResultKind = Literal["OK", "TRANSIENT", "VALIDATION", "RATE_LIMITED", "FATAL"]


@dataclass(frozen=True)
class RateLimitWait:
    minutes: int
    seconds: int

    @property
    def total_seconds(self) -> int:
        return self.minutes * 60 + self.seconds


@dataclass(frozen=True)
class ApiResult:
    kind: ResultKind
    data: Any = None
    http_status: Optional[int] = None
    # backend field errors, e.g. {"user_app_id": ["..."]}
    fields: dict[str, Any] = field(default_factory=dict)
    wait: Optional[RateLimitWait] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.kind == "OK"

    @property
    def is_fatal(self) -> bool:
        return self.kind == "FATAL"


def ok(data: Any, http_status: int = 200) -> ApiResult:
    return ApiResult(kind="OK", data=data, http_status=http_status)


def parsed(res: ApiResult, parser: Callable[[Any], Any]) -> ApiResult:
    """Replace a successful result's raw payload with ``parser(payload)``.

    A payload the parser rejects becomes a VALIDATION failure; failed results
    pass through untouched.
    """
    if not res.ok:
        return res
    try:
        return replace(res, data=parser(res.data))
    except (ValidationError, TypeError) as e:
        logger.warning("unexpected payload shape status=%s err=%s", res.http_status, type(e).__name__)
        return ApiResult(kind="VALIDATION", data=res.data, http_status=res.http_status, error=messages.GENERIC_ERROR)


def list_of(model: type[BaseModel]) -> Callable[[Any], list[Any]]:
    def _parse(payload: Any) -> list[Any]:
        # some list endpoints are paginated, others return a bare array
        if isinstance(payload, dict) and "results" in payload:
            payload = payload["results"]
        if not isinstance(payload, list):
            raise TypeError("expected a list payload")
        return [model.model_validate(item) for item in payload]

    return _parse
