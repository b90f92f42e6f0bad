"""End-to-end smoke run against a live backend (the sandbox in main.py or a real one).

    BASE_URL=http://127.0.0.1:8000 SMOKE_EMAIL=demo@mobcash.test SMOKE_PASSWORD=secret123 \
        python scripts/smoke_sandbox.py
"""
import os
import sys
import time
from pathlib import Path

import requests

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from services.redaction import redact_text  # noqa: E402


def die(message, code=1):
    print(message)
    sys.exit(code)


def step(message):
    print("\n==> " + message)


def request(method, url, headers=None, json_body=None, params=None, allow_failure=False):
    try:
        resp = requests.request(method, url, headers=headers, json=json_body, params=params, timeout=20)
    except requests.RequestException as exc:
        die("Request failed: %s" % exc)
    if resp.status_code < 200 or resp.status_code >= 300:
        if not allow_failure:
            print("HTTP %s %s" % (resp.status_code, resp.reason))
            print(redact_text(resp.text))
            sys.exit(1)
    return resp


def auth_headers(token):
    return {
        "Authorization": "Bearer %s" % token,
        "Cache-Control": "no-cache, no-store, must-revalidate",
        "Pragma": "no-cache",
        "Expires": "0",
    }


def _safe_json(resp):
    try:
        return resp.json()
    except ValueError:
        return {}


def _stamp():
    return {"_t": int(time.time() * 1000)}


def _first_enabled(items):
    for item in items:
        if item.get("enable", True):
            return item
    return None


def main():
    base_url = os.getenv("BASE_URL", "http://127.0.0.1:8000").rstrip("/")
    email = os.getenv("SMOKE_EMAIL")
    password = os.getenv("SMOKE_PASSWORD")
    bet_id = os.getenv("SMOKE_BET_ID", "123456")
    phone = os.getenv("SMOKE_PHONE", "+2290161000000")
    amount = int(os.getenv("SMOKE_AMOUNT", "1000"))

    missing = [name for name in ("SMOKE_EMAIL", "SMOKE_PASSWORD") if not os.getenv(name)]
    if missing:
        die("Missing env vars: %s" % ", ".join(missing), code=2)

    step("Login")
    r = request("POST", base_url + "/auth/login", json_body={"email_or_phone": email, "password": password})
    tokens = r.json()
    access, refresh = tokens.get("access"), tokens.get("refresh")
    if not access or not refresh:
        die("Missing access or refresh token after login.")

    step("Refresh access token")
    r = request("POST", base_url + "/auth/token/refresh/", json_body={"refresh": refresh})
    access = r.json().get("access") or die("Refresh returned no access token.")

    step("Pick platform and network")
    platforms = request("GET", base_url + "/mobcash/plateform", headers=auth_headers(access), params=_stamp()).json()
    platform = _first_enabled(platforms) or die("No enabled platform.")
    networks = request("GET", base_url + "/mobcash/network", headers=auth_headers(access), params=_stamp()).json()
    network = next((n for n in networks if n.get("active_for_deposit")), None) or die("No deposit network.")
    print("platform=%s network=%s" % (platform["id"], network["name"]))

    step("Look up bet identity")
    r = request(
        "GET",
        base_url + "/mobcash/search-user",
        headers=auth_headers(access),
        params={"app": platform["id"], "userid": bet_id, **_stamp()},
    )
    found = r.json()
    if not found.get("UserId"):
        die("Bet identity %s not found on %s." % (bet_id, platform["id"]))
    if found.get("CurrencyId") != 27:
        die("Bet identity %s is not an XOF account." % bet_id)

    step("Ensure bet identity and phone")
    r = request(
        "POST",
        base_url + "/mobcash/user-app-id/",
        headers=auth_headers(access),
        json_body={"user_app_id": bet_id, "app": platform["id"]},
        allow_failure=True,
    )
    if r.status_code not in (200, 201, 400):
        die("Identity creation failed (%s): %s" % (r.status_code, r.text))
    r = request(
        "POST",
        base_url + "/mobcash/user-phone/",
        headers=auth_headers(access),
        json_body={"phone": phone, "network": network["id"]},
        allow_failure=True,
    )
    if r.status_code not in (200, 201, 400):
        die("Phone creation failed (%s): %s" % (r.status_code, r.text))

    step("Create deposit of %s" % amount)
    r = request(
        "POST",
        base_url + "/mobcash/transaction-deposit",
        headers=auth_headers(access),
        json_body={
            "amount": amount,
            "phone_number": phone,
            "app": platform["id"],
            "user_app_id": bet_id,
            "network": network["id"],
            "source": "web",
        },
        allow_failure=True,
    )
    payload = _safe_json(r)
    if r.status_code == 400 and "error_time_message" in payload:
        die("Rate limited: %s" % payload["error_time_message"])
    if r.status_code not in (200, 201):
        die("Deposit failed (%s): %s" % (r.status_code, redact_text(r.text)))
    reference = payload.get("reference")

    step("Check history")
    r = request(
        "GET",
        base_url + "/mobcash/transaction-history",
        headers=auth_headers(access),
        params={"page": 1, "page_size": 5, **_stamp()},
    )
    refs = [t.get("reference") for t in r.json().get("results", [])]
    if reference not in refs:
        die("Deposit %s missing from history." % reference)

    step("Smoke test completed")
    print("reference=%s" % reference)
    print("transaction_link=%s" % payload.get("transaction_link"))


if __name__ == "__main__":
    main()
