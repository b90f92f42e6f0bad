from __future__ import annotations

from decimal import Decimal

import pytest

from app import messages
from app.wizard import state_machine as sm
from app.wizard.model import STEP_AMOUNT, STEP_IDENTITY, STEP_NETWORK, STEP_PHONE, STEP_PLATFORM, WizardState
from schemas import BetIdentity, Network, Platform, UserPhone

PLATFORM = Platform(
    id="1xbet",
    name="1xBet",
    minimun_deposit=500,
    max_deposit=500000,
    minimun_with=1000,
    max_win=300000,
)
OTHER_PLATFORM = Platform(id="melbet", name="Melbet", minimun_deposit=200, max_deposit=1000, minimun_with=200, max_win=1000)
IDENTITY = BetIdentity(id=10, user_app_id="123456", app="1xbet")
MTN = Network(id=1, name="mtn", public_name="MTN", active_for_deposit=True, active_for_with=True)
CELTIS = Network(id=3, name="sbin", public_name="Celtis", active_for_deposit=False, active_for_with=True)
PHONE = UserPhone(id=20, phone="2290157455419", network=1)


def _at_amount(direction="deposit", amount=None) -> WizardState:
    state = WizardState(direction=direction)
    for event in (
        sm.PlatformSelected(PLATFORM),
        sm.IdentitySelected(IDENTITY),
        sm.NetworkSelected(MTN),
        sm.PhoneSelected(PHONE),
    ):
        state = sm.transition(state, event)
    if amount is not None:
        state = sm.transition(state, sm.AmountChanged(Decimal(amount)))
    return state


def test_selections_advance_one_step_each():
    state = WizardState(direction="deposit")
    assert state.step == STEP_PLATFORM

    state = sm.transition(state, sm.PlatformSelected(PLATFORM))
    assert state.step == STEP_IDENTITY
    state = sm.transition(state, sm.IdentitySelected(IDENTITY))
    assert state.step == STEP_NETWORK
    state = sm.transition(state, sm.NetworkSelected(MTN))
    assert state.step == STEP_PHONE
    state = sm.transition(state, sm.PhoneSelected(PHONE))
    assert state.step == STEP_AMOUNT
    assert state.step_name == "SetAmount"


def test_every_earlier_step_stays_valid():
    state = _at_amount(amount=1000)
    for step in range(STEP_PLATFORM, STEP_AMOUNT + 1):
        assert sm.step_valid(state, step)
    assert sm.can_confirm(state)


def test_back_keeps_selections_and_never_goes_below_one():
    state = _at_amount(amount=1000)
    state = sm.transition(state, sm.Back())
    assert state.step == STEP_PHONE
    assert state.phone == PHONE
    assert state.amount == Decimal(1000)

    for _ in range(3):
        state = sm.transition(state, sm.Back())
    assert state.step == STEP_PLATFORM
    with pytest.raises(sm.InvalidTransition):
        sm.transition(state, sm.Back())


def test_changing_platform_clears_identity():
    state = sm.transition(_at_amount(), sm.Back())
    state = sm.transition(state, sm.Back())
    state = sm.transition(state, sm.Back())
    state = sm.transition(state, sm.Back())

    same = sm.transition(state, sm.PlatformSelected(PLATFORM))
    assert same.identity == IDENTITY

    changed = sm.transition(state, sm.PlatformSelected(OTHER_PLATFORM))
    assert changed.identity is None
    assert not sm.step_valid(changed, STEP_IDENTITY)


def test_changing_network_clears_phone():
    state = sm.transition(_at_amount(direction="withdrawal"), sm.Back())
    state = sm.transition(state, sm.Back())

    changed = sm.transition(state, sm.NetworkSelected(CELTIS))
    assert changed.phone is None
    assert changed.step == STEP_PHONE


def test_selection_out_of_order_is_rejected():
    with pytest.raises(sm.InvalidTransition):
        sm.transition(WizardState(direction="deposit"), sm.NetworkSelected(MTN))


def test_identity_must_belong_to_platform():
    state = sm.transition(WizardState(direction="deposit"), sm.PlatformSelected(PLATFORM))
    with pytest.raises(sm.InvalidTransition):
        sm.transition(state, sm.IdentitySelected(BetIdentity(id=11, user_app_id="9", app="melbet")))


def test_disabled_platform_is_rejected():
    disabled = PLATFORM.model_copy(update={"enable": False})
    with pytest.raises(sm.InvalidTransition):
        sm.transition(WizardState(direction="deposit"), sm.PlatformSelected(disabled))


def test_network_must_be_active_for_direction():
    state = _at_amount()
    for _ in range(2):
        state = sm.transition(state, sm.Back())
    with pytest.raises(sm.InvalidTransition):
        sm.transition(state, sm.NetworkSelected(CELTIS))


def test_phone_must_belong_to_network():
    state = sm.transition(_at_amount(), sm.Back())
    with pytest.raises(sm.InvalidTransition):
        sm.transition(state, sm.PhoneSelected(UserPhone(id=21, phone="22997000000", network=2)))


@pytest.mark.parametrize(
    "direction, amount, valid",
    [
        ("deposit", 499, False),
        ("deposit", 500, True),
        ("deposit", 500000, True),
        ("deposit", 500001, False),
        ("withdrawal", 999, False),
        ("withdrawal", 1000, True),
        ("withdrawal", 300000, True),
        ("withdrawal", 300001, False),
    ],
)
def test_amount_bounds_are_inclusive(direction, amount, valid):
    state = _at_amount(direction=direction, amount=amount)
    if direction == "withdrawal":
        state = sm.transition(state, sm.WithdrawalCodeChanged("4821"))
    assert sm.can_confirm(state) is valid


def test_amount_errors():
    assert sm.amount_error(_at_amount(amount=0)) == messages.AMOUNT_NOT_POSITIVE
    assert sm.amount_error(_at_amount(amount=100)) == "Le montant minimum est 500 FCFA"
    assert sm.amount_error(_at_amount(amount=600000)) == "Le montant maximum est 500 000 FCFA"
    assert sm.amount_error(_at_amount(amount=1000)) is None


def test_withdrawal_code_minimum_length():
    state = _at_amount(direction="withdrawal", amount=5000)
    state = sm.transition(state, sm.WithdrawalCodeChanged("482"))
    assert sm.withdrawal_code_error(state) == "Le code de retrait doit contenir au moins 4 caractères"
    assert not sm.can_confirm(state)

    state = sm.transition(state, sm.WithdrawalCodeChanged("4821"))
    assert sm.withdrawal_code_error(state) is None
    assert sm.can_confirm(state)


def test_withdrawal_code_rejected_for_deposit():
    with pytest.raises(sm.InvalidTransition):
        sm.transition(_at_amount(), sm.WithdrawalCodeChanged("4821"))


def test_confirmation_requires_valid_amount_and_closes_on_edit():
    with pytest.raises(sm.InvalidTransition):
        sm.transition(_at_amount(amount=10), sm.OpenConfirmation())

    state = sm.transition(_at_amount(amount=1000), sm.OpenConfirmation())
    assert state.confirming

    with pytest.raises(sm.InvalidTransition):
        sm.transition(state, sm.PhoneSelected(PHONE))

    state = sm.transition(state, sm.AmountChanged(Decimal(2000)))
    assert not state.confirming


def test_summary_reflects_state():
    summary = sm.summary(_at_amount(amount=1000))
    assert summary.platform_name == "1xBet"
    assert summary.identity == "123456"
    assert summary.network_name == "MTN"
    assert summary.phone == "2290157455419"
    assert summary.amount == Decimal(1000)
    assert summary.withdrawal_code is None


def test_removed_identity_invalidates_step():
    state = sm.transition(_at_amount(amount=1000), sm.IdentityRemoved(IDENTITY.id))
    assert state.identity is None
    assert state.step == STEP_IDENTITY

    untouched = _at_amount(amount=1000)
    assert sm.transition(untouched, sm.IdentityRemoved(999)) == untouched


def test_removed_phone_invalidates_step():
    state = sm.transition(_at_amount(amount=1000), sm.PhoneRemoved(PHONE.id))
    assert state.phone is None
    assert state.step == STEP_PHONE


@pytest.mark.parametrize("raw, expected", [("1 000", 1000), ("12,5", Decimal("12.5")), ("abc", 0), (None, 0)])
def test_to_amount_is_lenient(raw, expected):
    assert sm.to_amount(raw) == Decimal(expected)
