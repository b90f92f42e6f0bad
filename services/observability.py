from __future__ import annotations

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator


# correlation id shared by every request issued for one user action
# (original call, refresh and replay all carry the same X-Request-Id)
_action_id: ContextVar[str | None] = ContextVar("action_id", default=None)


def get_action_id() -> str | None:
    return _action_id.get()


def new_action_id() -> str:
    return uuid.uuid4().hex


@contextmanager
def user_action(action_id: str | None = None) -> Iterator[str]:
    value = action_id or new_action_id()
    token = _action_id.set(value)
    try:
        yield value
    finally:
        _action_id.reset(token)
