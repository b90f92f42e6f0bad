from __future__ import annotations

from app import messages
from app.session.client import SessionClient
from app.session.results import ApiResult, list_of, parsed
from schemas import BetIdentity, LookupResult


class IdentityRegistry:
    """Bet-identity (user-app-id) CRUD plus the external account lookup.

    Creating identities goes through ``app.identities.registrar`` so that the
    lookup gate is never skipped.
    """

    def __init__(self, client: SessionClient):
        self.client = client

    def list(self) -> ApiResult:
        return parsed(self.client.get("/mobcash/user-app-id/"), list_of(BetIdentity))

    def list_for_platform(self, platform_id: str) -> ApiResult:
        return parsed(
            self.client.get("/mobcash/user-app-id", params={"bet_app": platform_id}),
            list_of(BetIdentity),
        )

    def lookup(self, platform_id: str, external_id: str) -> ApiResult:
        return parsed(
            self.client.get("/mobcash/search-user", params={"app": platform_id, "userid": external_id}),
            LookupResult.model_validate,
        )

    def create(self, external_id: str, platform_id: str) -> ApiResult:
        return parsed(
            self.client.post("/mobcash/user-app-id/", {"user_app_id": external_id, "app": platform_id}),
            BetIdentity.model_validate,
        )

    def update(self, identity_id: int, external_id: str, platform_id: str) -> ApiResult:
        return parsed(
            self.client.patch(
                f"/mobcash/user-app-id/{identity_id}/",
                {"user_app_id": external_id, "app": platform_id},
            ),
            BetIdentity.model_validate,
        )

    def delete(self, identity_id: int) -> ApiResult:
        res = self.client.delete(f"/mobcash/user-app-id/{identity_id}/")
        if res.ok:
            self.client.notifier.success(messages.IDENTITY_DELETED)
        return res
