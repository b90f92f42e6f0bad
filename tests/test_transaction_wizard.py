from __future__ import annotations

from decimal import Decimal

import pytest

from app import messages
from app.catalog.reference import ReferenceData
from app.completion.router import CompletionClosed, CompletionRouter, Landed, LinkContinuation, UssdFallback
from app.identities.registrar import IdentityRegistrar
from app.registries.identities import IdentityRegistry
from app.registries.phones import PhoneRegistry
from app.wizard.service import TransactionWizard, submission_payload
from app.wizard.state_machine import InvalidTransition

MTN, MOOV, CELTIS = 1, 2, 3


@pytest.fixture()
def resources(logged_in):
    phones = PhoneRegistry(logged_in)
    created = {}
    for network_id, number in ((MTN, "0161000000"), (MOOV, "0195000000"), (CELTIS, "0140000000")):
        created[network_id] = phones.create(number, network_id, country="bj").data

    registrar = IdentityRegistrar(IdentityRegistry(logged_in))
    identity = registrar.commit_identity(registrar.propose_identity(_platform(logged_in), "123456").data).data
    return {"phones": created, "identity": identity}


@pytest.fixture()
def make_wizard(logged_in, resources, dialer, link_opener, clipboard, notifier):
    def _make(direction="deposit"):
        notifier.successes.clear()
        router = CompletionRouter(logged_in, dialer=dialer, link_opener=link_opener, clipboard=clipboard)
        return TransactionWizard(logged_in, direction, router=router)

    return _make


def _platform(client):
    return ReferenceData(client).platforms().data[0]


def _fill(wizard: TransactionWizard, network_id: int, amount, code: str = "") -> None:
    platforms = wizard.available_platforms().data
    wizard.select_platform(platforms[0])
    wizard.select_identity(wizard.identities_for_platform().data[0])
    network = next(n for n in wizard.available_networks().data if n.id == network_id)
    wizard.select_network(network)
    wizard.select_phone(wizard.phones_for_network().data[0])
    wizard.set_amount(amount)
    if code:
        wizard.set_withdrawal_code(code)


def test_option_lists_follow_direction(make_wizard):
    deposit = make_wizard("deposit")
    withdrawal = make_wizard("withdrawal")

    assert [p.id for p in deposit.available_platforms().data] == ["1xbet"]
    assert [n.id for n in deposit.available_networks().data] == [MTN, MOOV]
    assert [n.id for n in withdrawal.available_networks().data] == [MTN, MOOV, CELTIS]


def test_moov_connect_deposit_ends_in_ussd_fallback(make_wizard, sandbox, dialer, clipboard, navigator, notifier):
    wizard = make_wizard("deposit")
    _fill(wizard, MOOV, "1000")

    summary = wizard.open_confirmation()
    assert summary.amount == Decimal(1000)
    assert summary.network_name == "Moov Money"

    res = wizard.submit()

    assert res.ok
    outcome = res.data
    assert outcome.transaction.type_trans == "deposit"
    assert notifier.successes == [messages.DEPOSIT_STARTED]

    fallback = outcome.completion
    assert isinstance(fallback, UssdFallback)
    assert fallback.code == "*155*2*1*22990000000*990#"
    assert dialer.last_uri == "tel:*155*2*1*22990000000*990%23"

    assert fallback.copy()
    assert clipboard.content == "*155*2*1*22990000000*990#"
    assert messages.USSD_COPIED in notifier.successes

    landed = fallback.dismiss()
    assert landed == Landed(path="/dashboard", reason="ussd_dismissed")
    assert navigator.current == "/dashboard"
    with pytest.raises(CompletionClosed):
        fallback.dismiss()

    # wizard state is dropped after a successful submission
    assert wizard.step == 1
    assert wizard.state.platform is None

    sent = sandbox.transactions[0]
    assert sent["amount"] == 1000
    assert sent["source"] == "web"
    assert sent["network"] == MOOV
    assert sent["phone_number"] == "+2290195000000"
    assert sent["withdriwal_code"] is None


def test_legacy_merchant_phone_key_is_used(make_wizard, sandbox):
    sandbox.merchant = {"moov_marchand_phone": "22991111111"}
    wizard = make_wizard("deposit")
    _fill(wizard, MOOV, 10000)
    wizard.open_confirmation()

    assert wizard.submit().data.completion.code == "*155*2*1*22991111111*9900#"


def test_missing_merchant_phone_lands(make_wizard, sandbox, dialer, navigator):
    sandbox.merchant = {}
    wizard = make_wizard("deposit")
    _fill(wizard, MOOV, 1000)
    wizard.open_confirmation()

    completion = wizard.submit().data.completion

    assert completion == Landed(path="/dashboard", reason="merchant_phone_missing")
    assert dialer.last_uri is None
    assert navigator.current == "/dashboard"


def test_mtn_deposit_lands_directly(make_wizard, dialer, navigator):
    wizard = make_wizard("deposit")
    _fill(wizard, MTN, 500)
    wizard.open_confirmation()

    completion = wizard.submit().data.completion

    assert isinstance(completion, Landed)
    assert dialer.last_uri is None
    assert navigator.history == ["/dashboard"]


def test_continuation_link_opens_only_on_continue(make_wizard, sandbox, link_opener, navigator):
    sandbox.transaction_link = "https://pay.example.test/c/abc"
    wizard = make_wizard("deposit")
    _fill(wizard, MTN, 1000)
    wizard.open_confirmation()

    continuation = wizard.submit().data.completion

    assert isinstance(continuation, LinkContinuation)
    assert continuation.link == "https://pay.example.test/c/abc"
    assert link_opener.opened == []
    assert navigator.history == []

    after = continuation.continue_()
    assert link_opener.opened == ["https://pay.example.test/c/abc"]
    assert isinstance(after, Landed)
    with pytest.raises(CompletionClosed):
        continuation.cancel()


def test_continuation_link_then_ussd_for_moov(make_wizard, sandbox, link_opener):
    sandbox.transaction_link = "https://pay.example.test/c/xyz"
    wizard = make_wizard("deposit")
    _fill(wizard, MOOV, 1000)
    wizard.open_confirmation()

    continuation = wizard.submit().data.completion
    after = continuation.continue_()

    assert isinstance(after, UssdFallback)
    assert link_opener.opened == ["https://pay.example.test/c/xyz"]


def test_cancelled_continuation_never_opens_link(make_wizard, sandbox, link_opener, navigator):
    sandbox.transaction_link = "https://pay.example.test/c/abc"
    wizard = make_wizard("deposit")
    _fill(wizard, MOOV, 1000)
    wizard.open_confirmation()

    landed = wizard.submit().data.completion.cancel()

    assert landed.reason == "link_cancelled"
    assert link_opener.opened == []
    assert navigator.current == "/dashboard"


def test_withdrawal_sends_code_and_never_uses_ussd(make_wizard, sandbox, dialer):
    wizard = make_wizard("withdrawal")
    _fill(wizard, MOOV, 1000, code="4821")
    wizard.open_confirmation()

    res = wizard.submit()

    assert res.ok
    assert isinstance(res.data.completion, Landed)
    assert dialer.last_uri is None
    assert sandbox.transactions[0]["withdriwal_code"] == "4821"
    assert sandbox.transactions[0]["type_trans"] == "withdrawal"


@pytest.mark.parametrize("amount", [999, 300001])
def test_withdrawal_out_of_bounds_never_reaches_backend(make_wizard, sandbox, amount):
    wizard = make_wizard("withdrawal")
    _fill(wizard, CELTIS, amount, code="4821")

    assert not wizard.can_confirm
    assert wizard.amount_error()
    with pytest.raises(InvalidTransition):
        wizard.open_confirmation()
    with pytest.raises(InvalidTransition):
        wizard.submit()
    assert sandbox.calls.get("withdrawal", 0) == 0


@pytest.mark.parametrize("amount", [1000, 300000])
def test_withdrawal_bounds_are_inclusive(make_wizard, sandbox, amount):
    wizard = make_wizard("withdrawal")
    _fill(wizard, CELTIS, amount, code="4821")
    wizard.open_confirmation()

    assert wizard.submit().ok
    assert sandbox.calls["withdrawal"] == 1


def test_short_withdrawal_code_blocks_confirmation(make_wizard):
    wizard = make_wizard("withdrawal")
    _fill(wizard, CELTIS, 5000, code="48")

    assert wizard.withdrawal_code_error() == "Le code de retrait doit contenir au moins 4 caractères"
    assert not wizard.can_confirm


def test_rate_limited_submission_keeps_state(make_wizard, sandbox, notifier):
    sandbox.rate_limit_message = "0 M:8 S"
    wizard = make_wizard("deposit")
    _fill(wizard, MTN, 1000)
    wizard.open_confirmation()

    res = wizard.submit()

    assert res.kind == "RATE_LIMITED"
    assert "8 secondes" in res.error
    assert "minute" not in res.error
    assert notifier.errors == [res.error]
    assert wizard.step == 5
    assert wizard.state.amount == Decimal(1000)

    sandbox.rate_limit_message = None
    assert wizard.submit().ok
    assert len(sandbox.transactions) == 1


@pytest.mark.parametrize("descriptor", ["0 M:0 S", "garbage"])
def test_unreadable_wait_asks_to_retry_later(make_wizard, sandbox, notifier, descriptor):
    sandbox.rate_limit_message = descriptor
    wizard = make_wizard("deposit")
    _fill(wizard, MTN, 1000)
    wizard.open_confirmation()

    res = wizard.submit()

    assert res.kind == "RATE_LIMITED"
    assert res.error == messages.RETRY_LATER
    assert notifier.errors == [messages.RETRY_LATER]


def test_plain_429_asks_to_retry_later(make_wizard, sandbox, notifier):
    sandbox.throttled = True
    wizard = make_wizard("withdrawal")
    _fill(wizard, CELTIS, 5000, code="4821")
    wizard.open_confirmation()

    res = wizard.submit()

    assert res.kind == "RATE_LIMITED"
    assert res.http_status == 429
    assert res.error == messages.RETRY_LATER
    assert notifier.errors == [messages.RETRY_LATER]
    assert wizard.step == 5
    assert sandbox.transactions == []


def test_submit_requires_open_confirmation(make_wizard, sandbox):
    wizard = make_wizard("deposit")
    _fill(wizard, MTN, 1000)

    with pytest.raises(InvalidTransition):
        wizard.submit()
    assert sandbox.calls.get("deposit", 0) == 0


def test_double_submit_is_ignored(make_wizard, sandbox, monkeypatch):
    wizard = make_wizard("deposit")
    _fill(wizard, MTN, 1000)
    wizard.open_confirmation()

    original_post = wizard.client.post
    nested = []

    def post(path, json_body=None, **kwargs):
        nested.append(wizard.submit())
        return original_post(path, json_body, **kwargs)

    monkeypatch.setattr(wizard.client, "post", post)

    assert wizard.submit().ok
    assert nested[0].error == messages.SUBMISSION_IN_PROGRESS
    assert sandbox.calls["deposit"] == 1


def test_discard_during_submission_skips_completion(make_wizard, sandbox, dialer, navigator, monkeypatch):
    wizard = make_wizard("deposit")
    _fill(wizard, MOOV, 1000)
    wizard.open_confirmation()

    original_post = wizard.client.post

    def post(path, json_body=None, **kwargs):
        res = original_post(path, json_body, **kwargs)
        wizard.discard()
        return res

    monkeypatch.setattr(wizard.client, "post", post)

    res = wizard.submit()

    assert res.ok
    assert res.data.completion is None
    assert dialer.last_uri is None
    assert navigator.history == []
    assert len(sandbox.transactions) == 1


def test_expired_session_during_submit_redirects_to_login(make_wizard, sandbox, navigator, notifier):
    wizard = make_wizard("deposit")
    _fill(wizard, MOOV, 1000)
    wizard.open_confirmation()
    notifier.errors.clear()

    sandbox.expire_access_tokens()
    sandbox.refresh_disabled = True
    res = wizard.submit()

    assert res.is_fatal
    assert sandbox.transactions == []
    assert navigator.history == ["/login"]
    assert notifier.errors == [messages.SESSION_EXPIRED]


def test_deleted_identity_sends_wizard_back(make_wizard, resources):
    wizard = make_wizard("deposit")
    _fill(wizard, MTN, 1000)

    wizard.identity_deleted(resources["identity"].id)

    assert wizard.step == 2
    assert wizard.state.identity is None


def test_submission_payload_shape(make_wizard):
    wizard = make_wizard("withdrawal")
    _fill(wizard, CELTIS, "2500.50", code="4821")

    payload = submission_payload(wizard.state)

    assert payload == {
        "amount": 2500.5,
        "phone_number": "+2290140000000",
        "app": "1xbet",
        "user_app_id": "123456",
        "network": CELTIS,
        "source": "web",
        "withdriwal_code": "4821",
    }


def test_unknown_direction_rejected(logged_in):
    with pytest.raises(ValueError):
        TransactionWizard(logged_in, "refund")
