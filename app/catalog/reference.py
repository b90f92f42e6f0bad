from __future__ import annotations

from typing import Optional

from app.session.client import SessionClient
from app.session.results import ApiResult, list_of, parsed
from schemas import Advertisement, Direction, MerchantSettings, Network, Platform


class ReferenceData:
    """Read-only listings: platforms, networks, merchant settings, adverts."""

    def __init__(self, client: SessionClient):
        self.client = client

    def platforms(self, *, enabled_only: bool = True) -> ApiResult:
        res = parsed(self.client.get("/mobcash/plateform"), list_of(Platform))
        if res.ok and enabled_only:
            return ApiResult(kind="OK", data=[p for p in res.data if p.enable], http_status=res.http_status)
        return res

    def networks(self, direction: Optional[Direction] = None) -> ApiResult:
        res = parsed(self.client.get("/mobcash/network"), list_of(Network))
        if res.ok and direction is not None:
            return ApiResult(
                kind="OK",
                data=[n for n in res.data if n.is_active_for(direction)],
                http_status=res.http_status,
            )
        return res

    def merchant_settings(self) -> ApiResult:
        return parsed(self.client.get("/mobcash/setting"), MerchantSettings.model_validate)

    def advertisements(self) -> ApiResult:
        res = parsed(self.client.get("/mobcash/ann"), list_of(Advertisement))
        if res.ok:
            return ApiResult(kind="OK", data=[a for a in res.data if a.enable], http_status=res.http_status)
        return res
