
# tests/conftest.py

from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from app.auth.service import AuthService
from app.session.client import SessionClient
from app.session.http import HttpClient, HttpResponse
from app.session.store import MemoryTokenStore, Session
from app.ui.headless import MemoryClipboard, NullDialer, RecordingNavigator
from main import create_app
from routes.mock_mobcash import SandboxState


DEMO_EMAIL = "demo@mobcash.test"
DEMO_PASSWORD = "secret123"


# ---------------------------
# Fakes
# ---------------------------

class RecordingNotifier:
    def __init__(self) -> None:
        self.errors: List[str] = []
        self.successes: List[str] = []

    def error(self, message: str) -> None:
        self.errors.append(message)

    def success(self, message: str) -> None:
        self.successes.append(message)


class RecordingLinkOpener:
    def __init__(self) -> None:
        self.opened: List[str] = []

    def open(self, url: str) -> None:
        self.opened.append(url)


class FakeHttp:
    """Scripted transport: each send() pops the next response (or raises it)."""

    def __init__(self, responses: List[Any]):
        self.responses = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def send(self, method, url, *, headers, params=None, json_body=None) -> HttpResponse:
        self.calls.append(
            {"method": method, "url": url, "headers": dict(headers), "params": dict(params or {}), "json": json_body}
        )
        if not self.responses:
            raise AssertionError(f"unexpected request {method} {url}")
        nxt = self.responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        return nxt

    def close(self) -> None:
        pass


# ---------------------------
# UI fixtures
# ---------------------------

@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def navigator() -> RecordingNavigator:
    return RecordingNavigator()


@pytest.fixture()
def dialer() -> NullDialer:
    return NullDialer()


@pytest.fixture()
def link_opener() -> RecordingLinkOpener:
    return RecordingLinkOpener()


@pytest.fixture()
def clipboard() -> MemoryClipboard:
    return MemoryClipboard()


# ---------------------------
# Scripted client
# ---------------------------

@pytest.fixture()
def make_client(notifier, navigator):
    def _make(*responses, session: Optional[Session] = Session("acc-1", "ref-1", {"id": "1"})):
        http = FakeHttp(list(responses))
        store = MemoryTokenStore(session)
        client = SessionClient(
            store,
            http=http,
            notifier=notifier,
            navigator=navigator,
            api_base_url="http://api.test",
        )
        return client, http, store

    return _make


# ---------------------------
# Sandbox-backed client
# ---------------------------

@pytest.fixture()
def sandbox() -> SandboxState:
    return SandboxState.seeded()


@pytest.fixture()
def sandbox_app(sandbox):
    return create_app(sandbox)


@pytest.fixture()
def api(sandbox_app, notifier, navigator):
    test_client = TestClient(sandbox_app, raise_server_exceptions=False)
    client = SessionClient(
        MemoryTokenStore(),
        http=HttpClient(client=test_client),
        notifier=notifier,
        navigator=navigator,
        api_base_url="http://testserver",
    )
    yield client
    client.close()


@pytest.fixture()
def logged_in(api, notifier) -> SessionClient:
    res = AuthService(api).login(DEMO_EMAIL, DEMO_PASSWORD)
    assert res.ok, f"Login failed: {res.kind} {res.error}"
    notifier.successes.clear()
    return api
