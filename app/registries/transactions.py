from __future__ import annotations

from typing import Any, Optional

from app.session.client import SessionClient
from app.session.results import ApiResult, parsed
from schemas import Page, Transaction
from settings import settings

HISTORY_TYPES = {"deposit", "withdrawal"}
HISTORY_STATUSES = {"pending", "accept", "reject", "timeout"}


def _history_params(
    page: int,
    page_size: Optional[int],
    type_trans: Optional[str],
    status: Optional[str],
    search: Optional[str],
) -> dict[str, Any]:
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if type_trans is not None and type_trans not in HISTORY_TYPES:
        raise ValueError(f"unknown transaction type filter: {type_trans!r}")
    if status is not None and status not in HISTORY_STATUSES:
        raise ValueError(f"unknown status filter: {status!r}")

    params: dict[str, Any] = {"page": page, "page_size": page_size or settings.HISTORY_PAGE_SIZE}
    if type_trans:
        params["type_trans"] = type_trans
    if status:
        params["status"] = status
    if search and search.strip():
        params["search"] = search.strip()
    return params


class TransactionHistory:
    def __init__(self, client: SessionClient):
        self.client = client

    def page(
        self,
        page: int = 1,
        *,
        page_size: Optional[int] = None,
        type_trans: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> ApiResult:
        params = _history_params(page, page_size, type_trans, status, search)
        return parsed(
            self.client.get("/mobcash/transaction-history", params=params),
            Page[Transaction].model_validate,
        )

    def recent(self, limit: int = 5) -> ApiResult:
        return self.page(1, page_size=limit)
