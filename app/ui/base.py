# app/ui/base.py
from __future__ import annotations

from typing import Protocol


class Notifier(Protocol):
    def error(self, message: str) -> None: ...
    def success(self, message: str) -> None: ...


class Navigator(Protocol):
    def navigate(self, path: str) -> None: ...


class Dialer(Protocol):
    # best effort; may silently do nothing on platforms without a dialer
    def invoke(self, ussd: str) -> None: ...


class LinkOpener(Protocol):
    # opens in a separate context (new tab / external browser)
    def open(self, url: str) -> None: ...


class Clipboard(Protocol):
    def copy(self, text: str) -> bool: ...
