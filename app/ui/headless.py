# app/ui/headless.py
from __future__ import annotations

import logging
from typing import Optional

from services.redaction import redact_text

logger = logging.getLogger("mobcash.ui")


class LoggingNotifier:
    """Default notifier outside a browser: user messages go to the log."""

    def error(self, message: str) -> None:
        logger.warning("user error: %s", redact_text(message))

    def success(self, message: str) -> None:
        logger.info("user success: %s", redact_text(message))


class RecordingNavigator:
    def __init__(self) -> None:
        self.history: list[str] = []

    @property
    def current(self) -> Optional[str]:
        return self.history[-1] if self.history else None

    def navigate(self, path: str) -> None:
        logger.info("navigate path=%s", path)
        self.history.append(path)


def tel_uri(ussd: str) -> str:
    # "#" must be percent-encoded or the dialer truncates the code
    return "tel:" + ussd.replace("#", "%23")


class NullDialer:
    def __init__(self) -> None:
        self.last_uri: Optional[str] = None

    def invoke(self, ussd: str) -> None:
        self.last_uri = tel_uri(ussd)
        logger.info("no dialer available uri=%s", self.last_uri)


class LoggingLinkOpener:
    def open(self, url: str) -> None:
        logger.info("open external link url=%s", url)


class MemoryClipboard:
    def __init__(self) -> None:
        self.content: Optional[str] = None

    def copy(self, text: str) -> bool:
        self.content = text
        return True
