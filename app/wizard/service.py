# app/wizard/service.py
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Optional

from app import messages
from app.catalog.reference import ReferenceData
from app.completion.router import Completion, CompletionRouter
from app.registries.identities import IdentityRegistry
from app.registries.phones import PhoneRegistry
from app.session.client import SessionClient
from app.session.errors import wait_message
from app.session.results import ApiResult, parsed
from app.wizard import state_machine as sm
from app.wizard.model import ConfirmationSummary, WizardState
from schemas import BetIdentity, Direction, Network, Platform, Transaction, UserPhone
from services.observability import user_action
from settings import settings

logger = logging.getLogger("mobcash.wizard")

SUBMIT_PATHS: dict[str, str] = {
    "deposit": "/mobcash/transaction-deposit",
    "withdrawal": "/mobcash/transaction-withdrawal",
}


@dataclass(frozen=True)
class SubmissionOutcome:
    transaction: Transaction
    # None when the wizard was discarded while the request was in flight
    completion: Optional[Completion]


def _wire_amount(amount: Decimal) -> Any:
    # backend expects a JSON number
    return int(amount) if amount == amount.to_integral_value() else float(amount)


def submission_payload(state: WizardState) -> dict[str, Any]:
    body: dict[str, Any] = {
        "amount": _wire_amount(state.amount),
        "phone_number": state.phone.phone,
        "app": state.platform.id,
        "user_app_id": state.identity.user_app_id,
        "network": state.network.id,
        "source": settings.TRANSACTION_SOURCE,
    }
    if state.direction == "withdrawal":
        # backend field name, misspelling included
        body["withdriwal_code"] = state.withdrawal_code
    return body


class TransactionWizard:
    """Drives one deposit or withdrawal from platform choice to completion.

    State lives only in memory; ``discard()`` (navigation away) drops it and
    any response still in flight is ignored when it lands.
    """

    def __init__(
        self,
        client: SessionClient,
        direction: Direction,
        *,
        reference: Optional[ReferenceData] = None,
        phones: Optional[PhoneRegistry] = None,
        identities: Optional[IdentityRegistry] = None,
        router: Optional[CompletionRouter] = None,
    ):
        if direction not in SUBMIT_PATHS:
            raise ValueError(f"unknown direction: {direction!r}")
        self.client = client
        self.direction: Direction = direction
        self.reference = reference or ReferenceData(client)
        self.phones = phones or PhoneRegistry(client)
        self.identities = identities or IdentityRegistry(client)
        self.router = router or CompletionRouter(client, self.reference)

        self._state = WizardState(direction=direction)
        self._generation = 0
        self._submitting = False

    # -----------------------
    # State
    # -----------------------
    @property
    def state(self) -> WizardState:
        return self._state

    @property
    def step(self) -> int:
        return self._state.step

    @property
    def can_confirm(self) -> bool:
        return sm.can_confirm(self._state)

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    def amount_error(self) -> Optional[str]:
        return sm.amount_error(self._state)

    def withdrawal_code_error(self) -> Optional[str]:
        return sm.withdrawal_code_error(self._state)

    def dispatch(self, event: sm.WizardEvent) -> WizardState:
        self._state = sm.transition(self._state, event)
        logger.debug("wizard %s event=%s step=%s", self.direction, type(event).__name__, self._state.step)
        return self._state

    # -----------------------
    # Options per step
    # -----------------------
    def available_platforms(self) -> ApiResult:
        return self.reference.platforms(enabled_only=True)

    def identities_for_platform(self) -> ApiResult:
        if self._state.platform is None:
            return ApiResult(kind="VALIDATION", error=messages.PLATFORM_MISSING)
        return self.identities.list_for_platform(self._state.platform.id)

    def available_networks(self) -> ApiResult:
        return self.reference.networks(self.direction)

    def phones_for_network(self) -> ApiResult:
        if self._state.network is None:
            return ApiResult(kind="VALIDATION", error=messages.MISSING_DATA)
        return self.phones.list_for_network(self._state.network.id)

    # -----------------------
    # Actions
    # -----------------------
    def select_platform(self, platform: Platform) -> WizardState:
        return self.dispatch(sm.PlatformSelected(platform))

    def select_identity(self, identity: BetIdentity) -> WizardState:
        return self.dispatch(sm.IdentitySelected(identity))

    def select_network(self, network: Network) -> WizardState:
        return self.dispatch(sm.NetworkSelected(network))

    def select_phone(self, phone: UserPhone) -> WizardState:
        return self.dispatch(sm.PhoneSelected(phone))

    def set_amount(self, amount: Any) -> WizardState:
        return self.dispatch(sm.AmountChanged(sm.to_amount(amount)))

    def set_withdrawal_code(self, code: str) -> WizardState:
        return self.dispatch(sm.WithdrawalCodeChanged(code))

    def back(self) -> WizardState:
        return self.dispatch(sm.Back())

    def identity_deleted(self, identity_id: int) -> WizardState:
        return self.dispatch(sm.IdentityRemoved(identity_id))

    def phone_deleted(self, phone_id: int) -> WizardState:
        return self.dispatch(sm.PhoneRemoved(phone_id))

    def open_confirmation(self) -> ConfirmationSummary:
        self.dispatch(sm.OpenConfirmation())
        return sm.summary(self._state)

    def cancel_confirmation(self) -> WizardState:
        return self.dispatch(sm.CancelConfirmation())

    def discard(self) -> None:
        self._generation += 1
        self._state = WizardState(direction=self.direction)
        logger.info("wizard %s discarded", self.direction)

    # -----------------------
    # Submission
    # -----------------------
    def submit(self) -> ApiResult:
        """Create the transaction from the confirmed state.

        Failures keep the state so the user can retry; success hands the
        created transaction to the completion router.
        """
        if self._submitting:
            self.client.notifier.error(messages.SUBMISSION_IN_PROGRESS)
            return ApiResult(kind="VALIDATION", error=messages.SUBMISSION_IN_PROGRESS)

        state = self._state
        if not state.confirming:
            raise sm.InvalidTransition("submission requires an open confirmation")
        if not sm.can_confirm(state):
            # bounds are re-checked before any network call
            msg = sm.amount_error(state) or sm.withdrawal_code_error(state) or messages.MISSING_DATA
            self.client.notifier.error(msg)
            return ApiResult(kind="VALIDATION", error=msg)

        generation = self._generation
        self._submitting = True
        try:
            with user_action() as action_id:
                logger.info(
                    "wizard %s submit platform=%s network=%s amount=%s action_id=%s",
                    self.direction,
                    state.platform.id,
                    state.network.id,
                    state.amount,
                    action_id,
                )
                res = parsed(
                    self.client.post(SUBMIT_PATHS[self.direction], submission_payload(state)),
                    Transaction.model_validate,
                )
        finally:
            self._submitting = False

        if not res.ok:
            return self._submission_failed(res)

        transaction: Transaction = res.data
        self.client.notifier.success(
            messages.DEPOSIT_STARTED if self.direction == "deposit" else messages.WITHDRAWAL_STARTED
        )

        if generation != self._generation:
            logger.info("wizard %s discarded during submission; completion skipped", self.direction)
            return replace(res, data=SubmissionOutcome(transaction=transaction, completion=None))

        self.discard()
        completion = self.router.route(transaction, state)
        return replace(res, data=SubmissionOutcome(transaction=transaction, completion=completion))

    def _submission_failed(self, res: ApiResult) -> ApiResult:
        if res.kind == "FATAL":
            return res

        logger.info("wizard %s submission failed kind=%s status=%s", self.direction, res.kind, res.http_status)
        if res.kind == "RATE_LIMITED":
            # the client already surfaced the wait instruction
            return replace(res, error=wait_message(res.wait))

        msg = messages.DEPOSIT_FAILED if self.direction == "deposit" else messages.WITHDRAWAL_FAILED
        self.client.notifier.error(msg)
        return replace(res, error=msg)
