# app/completion/router.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

from app import messages
from app.catalog.reference import ReferenceData
from app.completion.ussd import requires_ussd, ussd_code
from app.session.client import SessionClient
from app.ui.base import Clipboard, Dialer, LinkOpener
from app.ui.headless import LoggingLinkOpener, MemoryClipboard, NullDialer
from app.wizard.model import WizardState
from schemas import Transaction
from settings import settings

logger = logging.getLogger("mobcash.completion")


class CompletionClosed(Exception):
    pass


@dataclass(frozen=True)
class Landed:
    path: str
    reason: str = "done"


class LinkContinuation:
    """External continuation link, opened only on explicit ``continue_()``."""

    def __init__(self, router: "CompletionRouter", transaction: Transaction, state: WizardState):
        self._router = router
        self._state = state
        self.transaction = transaction
        self.link: str = transaction.transaction_link or ""
        self.resolved = False

    def continue_(self) -> "Completion":
        self._close()
        self._router.link_opener.open(self.link)
        logger.info("continuation link opened transaction_id=%s", self.transaction.id)
        return self._router.after_link(self.transaction, self._state)

    def cancel(self) -> Landed:
        self._close()
        return self._router.land("link_cancelled")

    def _close(self) -> None:
        if self.resolved:
            raise CompletionClosed("continuation already resolved")
        self.resolved = True


class UssdFallback:
    """Raw USSD code with a copy action; dismissal is the only way out."""

    def __init__(self, router: "CompletionRouter", code: str, transaction: Transaction):
        self._router = router
        self.code = code
        self.transaction = transaction
        self.dismissed = False

    def copy(self) -> bool:
        copied = self._router.clipboard.copy(self.code)
        if copied:
            self._router.client.notifier.success(messages.USSD_COPIED)
        return copied

    def dismiss(self) -> Landed:
        if self.dismissed:
            raise CompletionClosed("fallback panel already dismissed")
        self.dismissed = True
        return self._router.land("ussd_dismissed")


Completion = Union[Landed, LinkContinuation, UssdFallback]


class CompletionRouter:
    def __init__(
        self,
        client: SessionClient,
        reference: Optional[ReferenceData] = None,
        *,
        dialer: Optional[Dialer] = None,
        link_opener: Optional[LinkOpener] = None,
        clipboard: Optional[Clipboard] = None,
    ):
        self.client = client
        self.reference = reference or ReferenceData(client)
        self.dialer = dialer or NullDialer()
        self.link_opener = link_opener or LoggingLinkOpener()
        self.clipboard = clipboard or MemoryClipboard()

    def route(self, transaction: Transaction, state: WizardState) -> Completion:
        if transaction.transaction_link:
            logger.info("completion via continuation link transaction_id=%s", transaction.id)
            return LinkContinuation(self, transaction, state)
        return self.after_link(transaction, state)

    def after_link(self, transaction: Transaction, state: WizardState) -> Completion:
        if state.direction == "deposit" and requires_ussd(state.network):
            return self._ussd(transaction, state)
        return self.land()

    def land(self, reason: str = "done") -> Landed:
        self.client.navigator.navigate(settings.LANDING_PATH)
        return Landed(path=settings.LANDING_PATH, reason=reason)

    def _ussd(self, transaction: Transaction, state: WizardState) -> Completion:
        res = self.reference.merchant_settings()
        if res.is_fatal:
            # the session client already redirected to login
            return Landed(path=settings.LOGIN_PATH, reason="session_ended")
        if not res.ok:
            logger.warning("merchant settings unavailable kind=%s transaction_id=%s", res.kind, transaction.id)
            return self.land("merchant_settings_unavailable")

        merchant_phone = res.data.merchant_phone
        if not merchant_phone:
            logger.warning("merchant phone missing transaction_id=%s", transaction.id)
            return self.land("merchant_phone_missing")

        code = ussd_code(state.amount, merchant_phone)
        try:
            self.dialer.invoke(code)
        except Exception as e:
            # dialer hand-off is best effort; the fallback panel still carries the code
            logger.warning("dialer invocation failed transaction_id=%s err=%s", transaction.id, e)

        logger.info("completion via ussd fallback transaction_id=%s", transaction.id)
        return UssdFallback(self, code, transaction)
