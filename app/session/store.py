# app/session/store.py
from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional, Protocol

logger = logging.getLogger("mobcash.session")


@dataclass(frozen=True)
class Session:
    access_token: str
    refresh_token: str
    user: dict[str, Any] = field(default_factory=dict)


class TokenStore(Protocol):
    def load(self) -> Optional[Session]: ...
    def save(self, session: Session) -> None: ...
    def clear(self) -> None: ...


class MemoryTokenStore:
    def __init__(self, session: Optional[Session] = None) -> None:
        self._session = session

    def load(self) -> Optional[Session]:
        return self._session

    def save(self, session: Session) -> None:
        self._session = session

    def clear(self) -> None:
        self._session = None


class FileTokenStore:
    """Durable store: one JSON document, replaced atomically on every write."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)

    def load(self) -> Optional[Session]:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            # unreadable state is treated as logged out
            logger.warning("session store unreadable path=%s err=%s", self.path, e)
            return None

        if not isinstance(raw, dict):
            return None
        access = (raw.get("access_token") or "").strip()
        refresh = (raw.get("refresh_token") or "").strip()
        if not access:
            return None
        user = raw.get("user") if isinstance(raw.get("user"), dict) else {}
        return Session(access_token=access, refresh_token=refresh, user=user)

    def save(self, session: Session) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(asdict(session)), encoding="utf-8")
        os.replace(tmp, self.path)

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass


def default_store(path: str = "") -> TokenStore:
    if (path or "").strip():
        return FileTokenStore(path.strip())
    return MemoryTokenStore()
