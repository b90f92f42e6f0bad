# app/session/client.py
from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from app import messages
from app.session.errors import backend_message, is_rate_limit_body, parse_wait, wait_message
from app.session.http import HttpClient, HttpResponse, is_retryable_http
from app.session.results import ApiResult, ok
from app.session.store import Session, TokenStore, default_store
from app.ui.base import Navigator, Notifier
from app.ui.headless import LoggingNotifier, RecordingNavigator
from schemas import RefreshResponse
from services.observability import get_action_id
from settings import base_url, settings

logger = logging.getLogger("mobcash.session")

REFRESH_PATH = "/auth/token/refresh/"

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


@dataclass
class PreparedRequest:
    method: str
    path: str
    params: dict[str, Any] = field(default_factory=dict)
    json_body: Any = None
    authenticated: bool = True
    # set once the refresh-and-retry protocol has been spent on this request
    retried: bool = False
    request_id: str = field(default_factory=lambda: get_action_id() or uuid.uuid4().hex)


class SessionClient:
    """Single access point for the REST API.

    Owns the session tokens: nothing else writes them. Every call returns an
    ``ApiResult``; HTTP and transport failures never raise.
    """

    def __init__(
        self,
        store: Optional[TokenStore] = None,
        *,
        http: Optional[HttpClient] = None,
        notifier: Optional[Notifier] = None,
        navigator: Optional[Navigator] = None,
        api_base_url: Optional[str] = None,
    ):
        self._store = store if store is not None else default_store(settings.SESSION_STORE_PATH)
        self._http = http or HttpClient(
            timeout_s=float(settings.MOBCASH_HTTP_TIMEOUT_S),
            debug=bool(settings.HTTP_DEBUG),
        )
        self.notifier = notifier or LoggingNotifier()
        self.navigator = navigator or RecordingNavigator()
        self._base_url = (api_base_url or base_url()).rstrip("/")

        self._lock = threading.Lock()
        self._last_stamp = 0
        # bumped on every token write; lets a late 401 see that a refresh already happened
        self._generation = 0

    # -----------------------
    # Read accessors
    # -----------------------
    @property
    def access_token(self) -> Optional[str]:
        session = self._store.load()
        return session.access_token if session else None

    @property
    def is_authenticated(self) -> bool:
        return self.access_token is not None

    @property
    def current_user(self) -> dict[str, Any]:
        session = self._store.load()
        return dict(session.user) if session else {}

    # -----------------------
    # Mutators
    # -----------------------
    def start_session(self, access_token: str, refresh_token: str, user: Optional[dict[str, Any]] = None) -> None:
        with self._lock:
            self._store.save(Session(access_token=access_token, refresh_token=refresh_token, user=user or {}))
            self._generation += 1
        logger.info("session started user_id=%s", (user or {}).get("id"))

    def end_session(self, *, redirect: bool = True) -> None:
        with self._lock:
            self._store.clear()
            self._generation += 1
        logger.info("session ended redirect=%s", redirect)
        if redirect:
            self.navigator.navigate(settings.LOGIN_PATH)

    # -----------------------
    # Requests
    # -----------------------
    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json_body: Any = None,
        authenticated: bool = True,
    ) -> ApiResult:
        prepared = PreparedRequest(
            method=method.upper(),
            path=path,
            params={k: v for k, v in (params or {}).items() if v is not None},
            json_body=json_body,
            authenticated=authenticated,
        )
        return self._execute(prepared)

    def get(self, path: str, *, params: Optional[dict[str, Any]] = None, authenticated: bool = True) -> ApiResult:
        return self.request("GET", path, params=params, authenticated=authenticated)

    def post(self, path: str, json_body: Any = None, *, authenticated: bool = True) -> ApiResult:
        return self.request("POST", path, json_body=json_body, authenticated=authenticated)

    def patch(self, path: str, json_body: Any = None) -> ApiResult:
        return self.request("PATCH", path, json_body=json_body)

    def delete(self, path: str) -> ApiResult:
        return self.request("DELETE", path)

    def close(self) -> None:
        self._http.close()

    def _execute(self, prepared: PreparedRequest) -> ApiResult:
        with self._lock:
            generation = self._generation
        token = self.access_token if prepared.authenticated else None

        try:
            resp = self._send(prepared, token)
        except httpx.HTTPError as e:
            logger.warning(
                "transport error method=%s path=%s request_id=%s err=%s",
                prepared.method,
                prepared.path,
                prepared.request_id,
                type(e).__name__,
            )
            return self._surface(ApiResult(kind="TRANSIENT", error=messages.NETWORK_ERROR))

        if resp.status_code == 401 and prepared.authenticated:
            if prepared.retried:
                logger.warning(
                    "replayed request rejected again method=%s path=%s request_id=%s",
                    prepared.method,
                    prepared.path,
                    prepared.request_id,
                )
                return self._teardown()

            prepared.retried = True
            if not self._refresh(generation, prepared.request_id):
                return self._teardown()

            # replay strictly after the new token is persisted
            return self._execute(prepared)

        return self._classify(prepared, resp)

    def _send(self, prepared: PreparedRequest, token: Optional[str]) -> HttpResponse:
        headers = {"Accept": "application/json", "X-Request-Id": prepared.request_id, **NO_CACHE_HEADERS}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        params = dict(prepared.params)
        if prepared.method == "GET":
            params["_t"] = self._next_stamp()

        return self._http.send(
            prepared.method,
            self._url(prepared.path),
            headers=headers,
            params=params or None,
            json_body=prepared.json_body,
        )

    def _refresh(self, seen_generation: int, request_id: str) -> bool:
        with self._lock:
            if self._generation != seen_generation and self._store.load() is not None:
                # another request already rotated the token; just replay with it
                logger.info("token already refreshed request_id=%s", request_id)
                return True

            session = self._store.load()
            refresh = (session.refresh_token if session else "") or ""
            if not refresh:
                logger.info("no refresh token available request_id=%s", request_id)
                return False

            try:
                resp = self._http.send(
                    "POST",
                    self._url(REFRESH_PATH),
                    headers={"Accept": "application/json", "X-Request-Id": request_id},
                    json_body={"refresh": refresh},
                )
            except httpx.HTTPError as e:
                logger.warning("token refresh transport error request_id=%s err=%s", request_id, type(e).__name__)
                return False

            if resp.status_code not in (200, 201):
                logger.warning("token refresh rejected status=%s request_id=%s", resp.status_code, request_id)
                return False

            try:
                parsed = RefreshResponse.model_validate(resp.json)
            except ValidationError:
                logger.warning("token refresh payload invalid request_id=%s", request_id)
                return False

            self._store.save(
                Session(
                    access_token=parsed.access,
                    refresh_token=parsed.refresh or refresh,
                    user=session.user if session else {},
                )
            )
            self._generation += 1

        logger.info("token refreshed request_id=%s", request_id)
        return True

    def _teardown(self) -> ApiResult:
        self.end_session(redirect=False)
        self.notifier.error(messages.SESSION_EXPIRED)
        self.navigator.navigate(settings.LOGIN_PATH)
        return ApiResult(kind="FATAL", http_status=401, error=messages.SESSION_EXPIRED)

    def _classify(self, prepared: PreparedRequest, resp: HttpResponse) -> ApiResult:
        status = resp.status_code
        if 200 <= status < 300:
            return ok(resp.json, http_status=status)

        body = resp.json if resp.json is not None else resp.text
        message = backend_message(body)
        fields = body if isinstance(body, dict) else {}

        logger.info(
            "request failed method=%s path=%s status=%s request_id=%s",
            prepared.method,
            prepared.path,
            status,
            prepared.request_id,
        )

        if status == 429 or is_rate_limit_body(body):
            wait = parse_wait(body)
            result = ApiResult(
                kind="RATE_LIMITED", data=body, http_status=status, fields=fields, wait=wait, error=wait_message(wait)
            )
        elif is_retryable_http(status):
            result = ApiResult(kind="TRANSIENT", data=body, http_status=status, error=message)
        else:
            result = ApiResult(kind="VALIDATION", data=body, http_status=status, fields=fields, error=message)
        return self._surface(result)

    def _surface(self, result: ApiResult) -> ApiResult:
        self.notifier.error(result.error or messages.GENERIC_ERROR)
        return result

    def _next_stamp(self) -> int:
        with self._lock:
            stamp = max(int(time.time() * 1000), self._last_stamp + 1)
            self._last_stamp = stamp
            return stamp

    def _url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"
