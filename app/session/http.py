# app/session/http.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import httpx

from services.redaction import redact_dict, redact_text

logger = logging.getLogger("mobcash.http")


@dataclass
class HttpResponse:
    status_code: int
    json: Any
    text: str


class HttpClient:
    """Thin wrapper over an ``httpx.Client``.

    Any ``httpx.Client`` can be injected (``fastapi.testclient.TestClient``
    included), which is how the sandbox backend is wired in tests.
    """

    def __init__(
        self,
        timeout_s: float = 20.0,
        follow_redirects: bool = True,
        client: Optional[httpx.Client] = None,
        debug: bool = False,
    ):
        self._client = client or httpx.Client(timeout=timeout_s, follow_redirects=follow_redirects)
        self.debug = debug

    def send(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        params: Optional[Mapping[str, Any]] = None,
        json_body: Any = None,
    ) -> HttpResponse:
        r = self._client.request(method, url, headers=dict(headers), params=params, json=json_body)
        if self.debug:
            self._debug_dump(method, url, headers, json_body, r)
        return self._wrap(r)

    def close(self) -> None:
        self._client.close()

    @staticmethod
    def _wrap(r: httpx.Response) -> HttpResponse:
        try:
            payload = r.json()
        except ValueError:
            payload = None
        return HttpResponse(status_code=r.status_code, json=payload, text=r.text)

    @staticmethod
    def _debug_dump(
        method: str, url: str, headers: Mapping[str, str], json_body: Any, r: httpx.Response
    ) -> None:
        logger.debug("%s %s headers=%s", method, url, redact_dict(headers or {}))
        if json_body is not None:
            body = redact_dict(json_body) if isinstance(json_body, dict) else json_body
            logger.debug("%s %s json=%s", method, url, body)
        logger.debug("%s %s -> status=%s text=%s", method, url, r.status_code, redact_text(r.text[:300]))


def is_retryable_http(code: int) -> bool:
    # transient / gateway issues; 429 is classified separately as rate limiting
    return code in (408, 425) or code >= 500
