# routes/mock_mobcash.py
from __future__ import annotations

import itertools
import re
import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from settings import settings

router = APIRouter(tags=["mock-mobcash"])

_INTERNATIONAL_PHONE = re.compile(r"^\+?\d{8,15}$")


@dataclass
class SandboxState:
    """In-memory stand-in for the remote REST API."""

    users: dict[str, dict[str, Any]] = field(default_factory=dict)
    access_tokens: dict[str, tuple[str, float]] = field(default_factory=dict)
    refresh_tokens: dict[str, str] = field(default_factory=dict)
    platforms: list[dict[str, Any]] = field(default_factory=list)
    networks: list[dict[str, Any]] = field(default_factory=list)
    merchant: dict[str, Any] = field(default_factory=dict)
    ads: list[dict[str, Any]] = field(default_factory=list)
    # (platform_id, external id) -> lookup payload
    external_accounts: dict[tuple[str, str], dict[str, Any]] = field(default_factory=dict)
    phones: dict[int, dict[str, Any]] = field(default_factory=dict)
    identities: dict[int, dict[str, Any]] = field(default_factory=dict)
    transactions: list[dict[str, Any]] = field(default_factory=list)

    access_ttl_s: int = 300
    # simulation switches
    rate_limit_message: Optional[str] = None
    # plain HTTP 429 on transaction creation, no wait descriptor
    throttled: bool = False
    transaction_link: Optional[str] = None
    refresh_disabled: bool = False

    calls: dict[str, int] = field(default_factory=dict)
    # (method, path, bearer token) of every authenticated route hit, recorded before the token is checked
    seen: list[tuple[str, str, str]] = field(default_factory=list)
    _ids: Any = field(default_factory=lambda: itertools.count(1))

    def next_id(self) -> int:
        return next(self._ids)

    def hit(self, name: str) -> None:
        self.calls[name] = self.calls.get(name, 0) + 1

    def issue_access(self, user_id: str) -> str:
        token = "acc-" + secrets.token_urlsafe(16)
        self.access_tokens[token] = (user_id, time.time() + self.access_ttl_s)
        return token

    def issue_refresh(self, user_id: str) -> str:
        token = "ref-" + secrets.token_urlsafe(24)
        self.refresh_tokens[token] = user_id
        return token

    def expire_access_tokens(self) -> None:
        self.access_tokens = {t: (uid, 0.0) for t, (uid, _) in self.access_tokens.items()}

    def user_for_access(self, token: str) -> Optional[dict[str, Any]]:
        entry = self.access_tokens.get(token)
        if not entry or entry[1] <= time.time():
            return None
        return next((u for u in self.users.values() if u["id"] == entry[0]), None)

    @classmethod
    def seeded(cls) -> "SandboxState":
        state = cls(access_ttl_s=int(settings.SANDBOX_ACCESS_TTL_S))
        state.users["demo@mobcash.test"] = {
            "id": "1",
            "first_name": "Ama",
            "last_name": "Kouassi",
            "email": "demo@mobcash.test",
            "phone": "2290157455419",
            "password": "secret123",
        }
        state.platforms = [
            {
                "id": "1xbet",
                "name": "1xBet",
                "enable": True,
                "minimun_deposit": 500,
                "max_deposit": 500000,
                "minimun_with": 1000,
                "max_win": 300000,
            },
            {
                "id": "melbet",
                "name": "Melbet",
                "enable": False,
                "minimun_deposit": 200,
                "max_deposit": 100000,
                "minimun_with": 500,
                "max_win": 100000,
            },
        ]
        state.networks = [
            {"id": 1, "name": "mtn", "public_name": "MTN", "active_for_deposit": True, "active_for_with": True},
            {
                "id": 2,
                "name": "moov",
                "public_name": "Moov Money",
                "active_for_deposit": True,
                "active_for_with": True,
                "deposit_api": "connect",
            },
            {"id": 3, "name": "sbin", "public_name": "Celtis", "active_for_deposit": False, "active_for_with": True},
        ]
        state.merchant = {"moov_merchant_phone": settings.SANDBOX_MERCHANT_PHONE}
        state.ads = [{"id": 1, "image": "/static/ads/welcome.png", "enable": True}]
        state.external_accounts = {
            ("1xbet", "123456"): {"UserId": 987654, "Name": "Koffi Mensah", "CurrencyId": 27},
            ("1xbet", "555000"): {"UserId": 4411, "Name": "Jean Dupont", "CurrencyId": 1},
        }
        return state


def get_sandbox(request: Request) -> SandboxState:
    return request.app.state.sandbox


def current_user(request: Request, sandbox: SandboxState = Depends(get_sandbox)) -> dict[str, Any]:
    auth = request.headers.get("authorization") or ""
    token = auth[7:] if auth.lower().startswith("bearer ") else ""
    sandbox.seen.append((request.method, request.url.path, token))
    user = sandbox.user_for_access(token) if token else None
    if user is None:
        raise HTTPException(status_code=401, detail="Given token not valid for any token type")
    return user


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _public_user(user: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in user.items() if k != "password"}


# -------- AUTH --------
class LoginBody(BaseModel):
    email_or_phone: str
    password: str


class RefreshBody(BaseModel):
    refresh: str = ""


class RegistrationBody(BaseModel):
    first_name: str
    last_name: str
    email: str
    phone: str
    password: str
    re_password: str


class PasswordBody(BaseModel):
    old_password: str
    new_password: str
    confirm_new_password: str


@router.post("/auth/login")
def login(body: LoginBody, sandbox: SandboxState = Depends(get_sandbox)):
    sandbox.hit("login")
    ident = body.email_or_phone.strip()
    user = sandbox.users.get(ident) or next((u for u in sandbox.users.values() if u.get("phone") == ident), None)
    if user is None or user["password"] != body.password:
        raise HTTPException(status_code=401, detail="Identifiants invalides")
    return {
        "access": sandbox.issue_access(user["id"]),
        "refresh": sandbox.issue_refresh(user["id"]),
        "data": _public_user(user),
    }


@router.post("/auth/registration", status_code=201)
def register(body: RegistrationBody, sandbox: SandboxState = Depends(get_sandbox)):
    if body.email in sandbox.users:
        return JSONResponse(status_code=400, content={"email": ["Un utilisateur avec cet email existe déjà."]})
    user = body.model_dump(exclude={"re_password"})
    user["id"] = str(sandbox.next_id() + 1000)
    sandbox.users[body.email] = user
    return _public_user(user)


@router.post("/auth/token/refresh/")
def refresh_token(body: RefreshBody, sandbox: SandboxState = Depends(get_sandbox)):
    sandbox.hit("refresh")
    user_id = sandbox.refresh_tokens.get(body.refresh)
    if sandbox.refresh_disabled or not user_id:
        raise HTTPException(status_code=401, detail="Token is invalid or expired")
    return {"access": sandbox.issue_access(user_id)}


@router.get("/auth/me")
def me(user: dict = Depends(current_user)):
    return _public_user(user)


@router.patch("/auth/edit")
async def edit_profile(request: Request, user: dict = Depends(current_user)):
    changes = await request.json()
    for key in ("first_name", "last_name", "phone"):
        if key in changes:
            user[key] = changes[key]
    return _public_user(user)


@router.post("/auth/change_password")
def change_password(body: PasswordBody, user: dict = Depends(current_user)):
    if body.old_password != user["password"]:
        return JSONResponse(status_code=400, content={"old_password": ["Mot de passe actuel incorrect."]})
    user["password"] = body.new_password
    return {"detail": "ok"}


# -------- REFERENCE DATA --------
@router.get("/mobcash/plateform")
def platforms(user: dict = Depends(current_user), sandbox: SandboxState = Depends(get_sandbox)):
    return sandbox.platforms


@router.get("/mobcash/network")
def networks(user: dict = Depends(current_user), sandbox: SandboxState = Depends(get_sandbox)):
    sandbox.hit("networks")
    return sandbox.networks


@router.get("/mobcash/setting")
def merchant_settings(user: dict = Depends(current_user), sandbox: SandboxState = Depends(get_sandbox)):
    sandbox.hit("settings")
    return sandbox.merchant


@router.get("/mobcash/ann")
def advertisements(user: dict = Depends(current_user), sandbox: SandboxState = Depends(get_sandbox)):
    return sandbox.ads


# -------- PHONES --------
class PhoneBody(BaseModel):
    phone: str
    network: int


def _owned(items: dict[int, dict[str, Any]], item_id: int, user: dict[str, Any]) -> dict[str, Any]:
    item = items.get(item_id)
    if item is None or item["user"] != user["id"]:
        raise HTTPException(status_code=404, detail="Introuvable.")
    return item


def _public(item: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in item.items() if k != "user"}


@router.get("/mobcash/user-phone/")
def list_phones(user: dict = Depends(current_user), sandbox: SandboxState = Depends(get_sandbox)):
    return [_public(p) for p in sandbox.phones.values() if p["user"] == user["id"]]


@router.post("/mobcash/user-phone/", status_code=201)
def create_phone(body: PhoneBody, user: dict = Depends(current_user), sandbox: SandboxState = Depends(get_sandbox)):
    sandbox.hit("phone_create")
    if not _INTERNATIONAL_PHONE.match(body.phone):
        return JSONResponse(status_code=400, content={"phone": ["Numéro invalide."]})
    if any(p["phone"] == body.phone and p["user"] == user["id"] for p in sandbox.phones.values()):
        return JSONResponse(status_code=400, content={"phone": ["Ce numéro existe déjà."]})
    phone_id = sandbox.next_id()
    sandbox.phones[phone_id] = {
        "id": phone_id,
        "phone": body.phone,
        "network": body.network,
        "created_at": _now(),
        "user": user["id"],
    }
    return _public(sandbox.phones[phone_id])


@router.patch("/mobcash/user-phone/{phone_id}/")
def update_phone(
    phone_id: int, body: PhoneBody, user: dict = Depends(current_user), sandbox: SandboxState = Depends(get_sandbox)
):
    item = _owned(sandbox.phones, phone_id, user)
    item.update(phone=body.phone, network=body.network)
    return _public(item)


@router.delete("/mobcash/user-phone/{phone_id}/", status_code=204)
def delete_phone(phone_id: int, user: dict = Depends(current_user), sandbox: SandboxState = Depends(get_sandbox)):
    _owned(sandbox.phones, phone_id, user)
    del sandbox.phones[phone_id]


# -------- BET IDENTITIES --------
class IdentityBody(BaseModel):
    user_app_id: str
    app: str


@router.get("/mobcash/user-app-id")
@router.get("/mobcash/user-app-id/")
def list_identities(
    bet_app: Optional[str] = None,
    user: dict = Depends(current_user),
    sandbox: SandboxState = Depends(get_sandbox),
):
    return [
        _public(i)
        for i in sandbox.identities.values()
        if i["user"] == user["id"] and (bet_app is None or i["app"] == bet_app)
    ]


@router.post("/mobcash/user-app-id/", status_code=201)
def create_identity(
    body: IdentityBody, user: dict = Depends(current_user), sandbox: SandboxState = Depends(get_sandbox)
):
    sandbox.hit("identity_create")
    if any(
        i["user_app_id"] == body.user_app_id and i["app"] == body.app and i["user"] == user["id"]
        for i in sandbox.identities.values()
    ):
        return JSONResponse(status_code=400, content={"user_app_id": ["Cet ID de pari existe déjà."]})
    identity_id = sandbox.next_id()
    sandbox.identities[identity_id] = {
        "id": identity_id,
        "user_app_id": body.user_app_id,
        "app": body.app,
        "created_at": _now(),
        "user": user["id"],
    }
    return _public(sandbox.identities[identity_id])


@router.patch("/mobcash/user-app-id/{identity_id}/")
def update_identity(
    identity_id: int,
    body: IdentityBody,
    user: dict = Depends(current_user),
    sandbox: SandboxState = Depends(get_sandbox),
):
    sandbox.hit("identity_update")
    item = _owned(sandbox.identities, identity_id, user)
    item.update(user_app_id=body.user_app_id, app=body.app)
    return _public(item)


@router.delete("/mobcash/user-app-id/{identity_id}/", status_code=204)
def delete_identity(
    identity_id: int, user: dict = Depends(current_user), sandbox: SandboxState = Depends(get_sandbox)
):
    _owned(sandbox.identities, identity_id, user)
    del sandbox.identities[identity_id]


@router.get("/mobcash/search-user")
def search_user(
    app: str, userid: str, user: dict = Depends(current_user), sandbox: SandboxState = Depends(get_sandbox)
):
    sandbox.hit("search_user")
    if not any(p["id"] == app for p in sandbox.platforms):
        return JSONResponse(status_code=400, content={"app": ["Plateforme inconnue."]})
    found = sandbox.external_accounts.get((app, userid.strip()))
    return found or {"UserId": 0, "Name": "", "CurrencyId": None}


# -------- TRANSACTIONS --------
class TransactionBody(BaseModel):
    amount: Decimal
    phone_number: str
    app: str
    user_app_id: str
    network: int
    source: str
    withdriwal_code: Optional[str] = None


def _create_transaction(body: TransactionBody, type_trans: str, user: dict, sandbox: SandboxState):
    sandbox.hit(type_trans)
    if sandbox.throttled:
        return JSONResponse(status_code=429, content={"detail": "Too many requests"})
    if sandbox.rate_limit_message:
        return JSONResponse(status_code=400, content={"error_time_message": [sandbox.rate_limit_message]})

    platform = next((p for p in sandbox.platforms if p["id"] == body.app), None)
    if platform is None:
        return JSONResponse(status_code=400, content={"app": ["Plateforme inconnue."]})
    if type_trans == "deposit":
        low, high = platform["minimun_deposit"], platform["max_deposit"]
    else:
        low, high = platform["minimun_with"], platform["max_win"]
        if len(body.withdriwal_code or "") < 4:
            return JSONResponse(status_code=400, content={"withdriwal_code": ["Code de retrait invalide."]})
    if not (low <= body.amount <= high):
        return JSONResponse(status_code=400, content={"amount": [f"Montant hors limites ({low} - {high})."]})

    txn_id = sandbox.next_id()
    txn = {
        "id": txn_id,
        "reference": f"{type_trans[:3].upper()}-{txn_id:06d}",
        "amount": float(body.amount),
        "status": "pending",
        "type_trans": type_trans,
        "app": body.app,
        "user_app_id": body.user_app_id,
        "phone_number": body.phone_number,
        "network": body.network,
        "source": body.source,
        "withdriwal_code": body.withdriwal_code,
        "transaction_link": sandbox.transaction_link if type_trans == "deposit" else None,
        "created_at": _now(),
        "user": user["id"],
    }
    sandbox.transactions.append(txn)
    return JSONResponse(status_code=201, content=_public(txn))


@router.post("/mobcash/transaction-deposit")
def create_deposit(
    body: TransactionBody, user: dict = Depends(current_user), sandbox: SandboxState = Depends(get_sandbox)
):
    return _create_transaction(body, "deposit", user, sandbox)


@router.post("/mobcash/transaction-withdrawal")
def create_withdrawal(
    body: TransactionBody, user: dict = Depends(current_user), sandbox: SandboxState = Depends(get_sandbox)
):
    return _create_transaction(body, "withdrawal", user, sandbox)


@router.get("/mobcash/transaction-history")
def transaction_history(
    page: int = 1,
    page_size: int = 10,
    type_trans: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    user: dict = Depends(current_user),
    sandbox: SandboxState = Depends(get_sandbox),
):
    rows = [t for t in reversed(sandbox.transactions) if t["user"] == user["id"]]
    if type_trans:
        rows = [t for t in rows if t["type_trans"] == type_trans]
    if status:
        rows = [t for t in rows if t["status"] == status]
    if search:
        needle = search.lower()
        rows = [t for t in rows if needle in t["reference"].lower() or needle in (t["user_app_id"] or "").lower()]

    start = (page - 1) * page_size
    chunk = rows[start : start + page_size]
    has_next = start + page_size < len(rows)
    return {
        "count": len(rows),
        "next": f"?page={page + 1}" if has_next else None,
        "previous": f"?page={page - 1}" if page > 1 else None,
        "results": [_public(t) for t in chunk],
    }
