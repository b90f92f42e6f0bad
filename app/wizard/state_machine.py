# app/wizard/state_machine.py
from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

from app import messages
from app.wizard.model import (
    STEP_AMOUNT,
    STEP_IDENTITY,
    STEP_NETWORK,
    STEP_PHONE,
    STEP_PLATFORM,
    ConfirmationSummary,
    WizardState,
)
from schemas import BetIdentity, Network, Platform, UserPhone
from settings import settings


class InvalidTransition(Exception):
    pass


# -----------------------
# Events
# -----------------------
@dataclass(frozen=True)
class PlatformSelected:
    platform: Platform


@dataclass(frozen=True)
class IdentitySelected:
    identity: BetIdentity


@dataclass(frozen=True)
class NetworkSelected:
    network: Network


@dataclass(frozen=True)
class PhoneSelected:
    phone: UserPhone


@dataclass(frozen=True)
class AmountChanged:
    amount: Decimal


@dataclass(frozen=True)
class WithdrawalCodeChanged:
    code: str


@dataclass(frozen=True)
class IdentityRemoved:
    identity_id: int


@dataclass(frozen=True)
class PhoneRemoved:
    phone_id: int


@dataclass(frozen=True)
class Back:
    pass


@dataclass(frozen=True)
class OpenConfirmation:
    pass


@dataclass(frozen=True)
class CancelConfirmation:
    pass


WizardEvent = Union[
    PlatformSelected,
    IdentitySelected,
    NetworkSelected,
    PhoneSelected,
    AmountChanged,
    WithdrawalCodeChanged,
    IdentityRemoved,
    PhoneRemoved,
    Back,
    OpenConfirmation,
    CancelConfirmation,
]


def to_amount(value: Any) -> Decimal:
    """Lenient amount parsing for form input: anything unparsable is 0."""
    if isinstance(value, Decimal):
        return value if value.is_finite() else Decimal(0)
    if value is None or isinstance(value, bool):
        return Decimal(0)
    try:
        amount = Decimal(str(value).strip().replace(" ", "").replace(",", "."))
    except InvalidOperation:
        return Decimal(0)
    return amount if amount.is_finite() else Decimal(0)


# -----------------------
# Predicates
# -----------------------
def amount_error(state: WizardState) -> Optional[str]:
    if state.platform is None:
        return messages.PLATFORM_MISSING
    if state.amount <= 0:
        return messages.AMOUNT_NOT_POSITIVE
    low, high = state.platform.bounds(state.direction)
    if state.amount < low:
        return messages.AMOUNT_BELOW_MIN.format(amount=_fmt(low))
    if state.amount > high:
        return messages.AMOUNT_ABOVE_MAX.format(amount=_fmt(high))
    return None


def withdrawal_code_error(state: WizardState) -> Optional[str]:
    if state.direction != "withdrawal":
        return None
    min_len = settings.WITHDRAWAL_CODE_MIN_LENGTH
    if len(state.withdrawal_code or "") < min_len:
        return messages.WITHDRAWAL_CODE_TOO_SHORT.format(length=min_len)
    return None


def step_valid(state: WizardState, step: int) -> bool:
    if step == STEP_PLATFORM:
        return state.platform is not None
    if step == STEP_IDENTITY:
        return (
            state.identity is not None
            and state.platform is not None
            and state.identity.app == state.platform.id
        )
    if step == STEP_NETWORK:
        return state.network is not None and state.network.is_active_for(state.direction)
    if step == STEP_PHONE:
        return state.phone is not None and state.network is not None and state.phone.network == state.network.id
    if step == STEP_AMOUNT:
        return amount_error(state) is None and withdrawal_code_error(state) is None
    return False


def can_confirm(state: WizardState) -> bool:
    return state.step == STEP_AMOUNT and all(step_valid(state, s) for s in range(STEP_PLATFORM, STEP_AMOUNT + 1))


def summary(state: WizardState) -> ConfirmationSummary:
    if not can_confirm(state):
        raise InvalidTransition("confirmation summary requires a complete, valid wizard")
    return ConfirmationSummary(
        direction=state.direction,
        platform_name=state.platform.name,
        identity=state.identity.user_app_id,
        network_name=state.network.label,
        phone=state.phone.phone,
        amount=state.amount,
        withdrawal_code=state.withdrawal_code if state.direction == "withdrawal" else None,
    )


# -----------------------
# Transition function
# -----------------------
def _require_step(state: WizardState, step: int, event: object) -> None:
    if state.confirming:
        raise InvalidTransition(f"{type(event).__name__} not allowed while confirmation is open")
    if state.step != step:
        raise InvalidTransition(f"{type(event).__name__} not allowed at step {state.step} ({state.step_name})")


def transition(state: WizardState, event: WizardEvent) -> WizardState:
    """Pure ``(state, event) -> state'``. Selections at steps 1-4 advance."""
    if isinstance(event, PlatformSelected):
        _require_step(state, STEP_PLATFORM, event)
        if not event.platform.enable:
            raise InvalidTransition(f"platform {event.platform.id} is disabled")
        same = state.platform is not None and state.platform.id == event.platform.id
        return replace(
            state,
            platform=event.platform,
            identity=state.identity if same else None,
            step=STEP_IDENTITY,
        )

    if isinstance(event, IdentitySelected):
        _require_step(state, STEP_IDENTITY, event)
        if state.platform is None or event.identity.app != state.platform.id:
            raise InvalidTransition(f"identity {event.identity.id} is not bound to the selected platform")
        return replace(state, identity=event.identity, step=STEP_NETWORK)

    if isinstance(event, NetworkSelected):
        _require_step(state, STEP_NETWORK, event)
        if not event.network.is_active_for(state.direction):
            raise InvalidTransition(f"network {event.network.id} is not active for {state.direction}")
        same = state.network is not None and state.network.id == event.network.id
        return replace(
            state,
            network=event.network,
            phone=state.phone if same else None,
            step=STEP_PHONE,
        )

    if isinstance(event, PhoneSelected):
        _require_step(state, STEP_PHONE, event)
        if state.network is None or event.phone.network != state.network.id:
            raise InvalidTransition(f"phone {event.phone.id} is not bound to the selected network")
        return replace(state, phone=event.phone, step=STEP_AMOUNT)

    if isinstance(event, AmountChanged):
        if state.step != STEP_AMOUNT:
            raise InvalidTransition(f"amount can only change at step {STEP_AMOUNT}")
        return replace(state, amount=to_amount(event.amount), confirming=False)

    if isinstance(event, WithdrawalCodeChanged):
        if state.step != STEP_AMOUNT or state.direction != "withdrawal":
            raise InvalidTransition("withdrawal code only applies at the amount step of a withdrawal")
        return replace(state, withdrawal_code=event.code or "", confirming=False)

    if isinstance(event, IdentityRemoved):
        if state.identity is None or state.identity.id != event.identity_id:
            return state
        return replace(state, identity=None, step=min(state.step, STEP_IDENTITY), confirming=False)

    if isinstance(event, PhoneRemoved):
        if state.phone is None or state.phone.id != event.phone_id:
            return state
        return replace(state, phone=None, step=min(state.step, STEP_PHONE), confirming=False)

    if isinstance(event, Back):
        if state.step <= STEP_PLATFORM:
            raise InvalidTransition("already at the first step")
        return replace(state, step=state.step - 1, confirming=False)

    if isinstance(event, OpenConfirmation):
        if not can_confirm(state):
            raise InvalidTransition("amount step is not valid; confirmation stays disabled")
        return replace(state, confirming=True)

    if isinstance(event, CancelConfirmation):
        return replace(state, confirming=False)

    raise InvalidTransition(f"unknown wizard event: {event!r}")


def _fmt(amount: Decimal) -> str:
    # 500000 -> "500 000", the way amounts are shown in FCFA
    return f"{amount:,.0f}".replace(",", " ")
