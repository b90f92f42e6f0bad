# app/identities/registrar.py
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional

from app import messages
from app.registries.identities import IdentityRegistry
from app.session.errors import most_specific_message
from app.session.results import ApiResult
from schemas import BetIdentity, LookupResult, Platform
from settings import settings

logger = logging.getLogger("mobcash.identities")

# field errors checked before generic ones, most specific first
LOOKUP_ERROR_FIELDS = ("user_app_id", "app")
COMMIT_ERROR_FIELDS = ("user_app_id",)


class ProposalClosed(Exception):
    pass


@dataclass(frozen=True)
class Confirmation:
    display_name: str
    external_user_id: int
    currency_id: int


@dataclass
class PendingIdentity:
    platform_id: str
    external_id: str
    confirmation: Confirmation
    # set when the proposal replaces an existing identity
    target_id: Optional[int] = None
    closed: bool = False


class IdentityRegistrar:
    """Search-then-confirm binding of bet identities.

    Nothing is written until ``commit_identity`` is called on a proposal that
    passed the external lookup (account found, settlement currency matches).
    """

    def __init__(self, registry: IdentityRegistry):
        self.registry = registry
        self.notifier = registry.client.notifier

    def propose_identity(
        self, platform: Platform, external_id: str, *, target_id: Optional[int] = None
    ) -> ApiResult:
        ext = (external_id or "").strip()
        if not ext:
            return self._reject(messages.IDENTITY_EMPTY)

        res = self.registry.lookup(platform.id, ext)
        if not res.ok:
            if res.kind == "FATAL":
                return res
            if res.kind == "VALIDATION":
                msg = most_specific_message(res, LOOKUP_ERROR_FIELDS, messages.IDENTITY_SEARCH_FAILED)
            else:
                msg = messages.IDENTITY_SEARCH_UNAVAILABLE
            return replace(res, error=msg)

        lookup: LookupResult = res.data
        if not lookup.found:
            logger.info("identity lookup not found platform=%s", platform.id)
            return self._reject(messages.IDENTITY_NOT_FOUND)

        if lookup.currency_id != settings.REQUIRED_CURRENCY_ID:
            logger.info(
                "identity lookup wrong currency platform=%s currency_id=%s",
                platform.id,
                lookup.currency_id,
            )
            return self._reject(messages.IDENTITY_WRONG_CURRENCY.format(currency=settings.REQUIRED_CURRENCY_CODE))

        pending = PendingIdentity(
            platform_id=platform.id,
            external_id=ext,
            confirmation=Confirmation(
                display_name=lookup.name,
                external_user_id=lookup.user_id,
                currency_id=lookup.currency_id,
            ),
            target_id=target_id,
        )
        return ApiResult(kind="OK", data=pending, http_status=res.http_status)

    def commit_identity(self, pending: PendingIdentity) -> ApiResult:
        if pending.closed:
            raise ProposalClosed(f"proposal for {pending.external_id!r} already committed or discarded")
        pending.closed = True

        if pending.target_id is None:
            res = self.registry.create(pending.external_id, pending.platform_id)
            success, failure = messages.IDENTITY_ADDED, messages.IDENTITY_ADD_FAILED
        else:
            res = self.registry.update(pending.target_id, pending.external_id, pending.platform_id)
            success, failure = messages.IDENTITY_UPDATED, messages.IDENTITY_UPDATE_FAILED

        if res.ok:
            logger.info("identity committed id=%s platform=%s", res.data.id, pending.platform_id)
            self.notifier.success(success)
            return res
        if res.kind == "FATAL":
            return res
        return replace(res, error=most_specific_message(res, COMMIT_ERROR_FIELDS, failure))

    def discard(self, pending: PendingIdentity) -> None:
        pending.closed = True

    def edit_identity(self, existing: BetIdentity, platform: Platform, external_id: str) -> ApiResult:
        """Unchanged ids are updated directly (data is a ``BetIdentity``);
        changed ids go through the lookup (data is a ``PendingIdentity``)."""
        ext = (external_id or "").strip()
        if ext and ext == existing.user_app_id:
            res = self.registry.update(existing.id, ext, platform.id)
            if res.ok:
                self.notifier.success(messages.IDENTITY_UPDATED)
                return res
            if res.kind == "FATAL":
                return res
            return replace(res, error=messages.IDENTITY_UPDATE_FAILED)
        return self.propose_identity(platform, ext, target_id=existing.id)

    def _reject(self, message: str) -> ApiResult:
        self.notifier.error(message)
        return ApiResult(kind="VALIDATION", error=message)
