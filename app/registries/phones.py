from __future__ import annotations

import logging
import re
from typing import Optional

from app import messages
from app.session.client import SessionClient
from app.session.results import ApiResult, list_of, parsed
from schemas import UserPhone
from services.redaction import mask_phone
from settings import settings

logger = logging.getLogger("mobcash.registries")

# country code -> international prefix, in the order the phone form lists them
COUNTRY_PREFIXES = {
    "bf": "+226",
    "sn": "+221",
    "bj": "+229",
    "ci": "+225",
}

PHONE_MIN_LENGTH = 8

_WHITESPACE = re.compile(r"\s+")


def normalize_phone(raw: str, country: Optional[str] = None) -> str:
    """International "+<prefix><local>" form stored by the backend.

    "07 12 34 56 78" -> "+2250712345678" (default country ci). A prefix the
    user already typed, with or without "+", is not repeated. Unknown
    countries leave the input trimmed but otherwise untouched.
    """
    prefix = COUNTRY_PREFIXES.get((country or settings.DEFAULT_PHONE_COUNTRY).lower())
    if prefix is None:
        return (raw or "").strip()

    local = _WHITESPACE.sub("", raw or "")
    if local.startswith(prefix):
        local = local[len(prefix):]
    elif local.startswith(prefix[1:]):
        local = local[len(prefix) - 1:]
    if local.startswith("+"):
        local = local[1:]
    return prefix + local


def split_phone(phone: str) -> tuple[Optional[str], str]:
    """(country, local number) for a stored phone, or (None, phone) when no known prefix matches."""
    compact = _WHITESPACE.sub("", phone or "")
    for country, prefix in COUNTRY_PREFIXES.items():
        if compact.startswith(prefix):
            return country, compact[len(prefix):]
    return None, compact


def display_phone(phone: str) -> str:
    if not phone:
        return phone
    return phone if phone.startswith("+") else f"+{phone}"


class PhoneRegistry:
    def __init__(self, client: SessionClient):
        self.client = client

    def list(self) -> ApiResult:
        return parsed(self.client.get("/mobcash/user-phone/"), list_of(UserPhone))

    def list_for_network(self, network_id: int) -> ApiResult:
        res = self.list()
        if not res.ok:
            return res
        return ApiResult(
            kind="OK",
            data=[p for p in res.data if p.network == network_id],
            http_status=res.http_status,
        )

    def _rejected(self, phone: str) -> Optional[ApiResult]:
        if len((phone or "").strip()) >= PHONE_MIN_LENGTH:
            return None
        self.client.notifier.error(messages.PHONE_INVALID)
        return ApiResult(kind="VALIDATION", fields={"phone": [messages.PHONE_INVALID]}, error=messages.PHONE_INVALID)

    def create(self, phone: str, network_id: int, *, country: Optional[str] = None) -> ApiResult:
        rejected = self._rejected(phone)
        if rejected is not None:
            return rejected
        number = normalize_phone(phone, country)
        res = parsed(
            self.client.post("/mobcash/user-phone/", {"phone": number, "network": network_id}),
            UserPhone.model_validate,
        )
        if res.ok:
            logger.info("phone created id=%s phone=%s network=%s", res.data.id, mask_phone(number), network_id)
            self.client.notifier.success(messages.PHONE_ADDED)
        return res

    def update(self, phone_id: int, phone: str, network_id: int, *, country: Optional[str] = None) -> ApiResult:
        rejected = self._rejected(phone)
        if rejected is not None:
            return rejected
        number = normalize_phone(phone, country)
        res = parsed(
            self.client.patch(f"/mobcash/user-phone/{phone_id}/", {"phone": number, "network": network_id}),
            UserPhone.model_validate,
        )
        if res.ok:
            self.client.notifier.success(messages.PHONE_UPDATED)
        return res

    def delete(self, phone_id: int) -> ApiResult:
        res = self.client.delete(f"/mobcash/user-phone/{phone_id}/")
        if res.ok:
            self.client.notifier.success(messages.PHONE_DELETED)
        return res
