# schemas.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

Direction = Literal["deposit", "withdrawal"]
TransactionStatus = Literal["pending", "accept", "reject", "timeout", "error", "init_payment"]

T = TypeVar("T")


class _Wire(BaseModel):
    # backend payloads carry more fields than the client reads
    model_config = ConfigDict(extra="ignore", populate_by_name=True, coerce_numbers_to_str=True)


# -------- AUTH --------
class User(_Wire):
    id: str
    first_name: str = ""
    last_name: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None


class AuthResponse(_Wire):
    access: str
    refresh: str
    data: Optional[User] = None


class RefreshResponse(_Wire):
    access: str
    # present only when the backend rotates refresh tokens
    refresh: Optional[str] = None


class RegisterRequest(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: str
    phone: str = Field(min_length=5)
    password: str = Field(min_length=6)
    re_password: str


class PasswordChangeRequest(BaseModel):
    old_password: str
    new_password: str = Field(min_length=6)
    confirm_new_password: str


# -------- REFERENCE DATA --------
class Platform(_Wire):
    id: str
    name: str
    enable: bool = True
    image: Optional[str] = None
    min_deposit: Decimal = Field(alias="minimun_deposit")
    max_deposit: Decimal
    min_withdrawal: Decimal = Field(alias="minimun_with")
    max_withdrawal: Decimal = Field(alias="max_win")

    def bounds(self, direction: Direction) -> tuple[Decimal, Decimal]:
        if direction == "deposit":
            return self.min_deposit, self.max_deposit
        return self.min_withdrawal, self.max_withdrawal


class Network(_Wire):
    id: int
    name: str
    public_name: str = ""
    active_for_deposit: bool = False
    active_for_with: bool = False
    deposit_api: Optional[str] = None
    image: Optional[str] = None

    def is_active_for(self, direction: Direction) -> bool:
        if direction == "deposit":
            return self.active_for_deposit
        return self.active_for_with

    @property
    def label(self) -> str:
        return self.public_name or self.name


class MerchantSettings(_Wire):
    moov_merchant_phone: Optional[str] = None
    moov_marchand_phone: Optional[str] = None

    @property
    def merchant_phone(self) -> Optional[str]:
        phone = (self.moov_merchant_phone or self.moov_marchand_phone or "").strip()
        return phone or None


class Advertisement(_Wire):
    id: int
    image: Optional[str] = None
    enable: bool = True


# -------- USER RESOURCES --------
class UserPhone(_Wire):
    id: int
    phone: str
    network: int
    created_at: Optional[datetime] = None


class BetIdentity(_Wire):
    id: int
    user_app_id: str
    app: str
    created_at: Optional[datetime] = None


class LookupResult(_Wire):
    user_id: int = Field(default=0, alias="UserId")
    name: str = Field(default="", alias="Name")
    currency_id: Optional[int] = Field(default=None, alias="CurrencyId")

    @property
    def found(self) -> bool:
        return self.user_id != 0


# -------- TRANSACTIONS --------
class Transaction(_Wire):
    id: int
    reference: str = ""
    amount: Decimal
    status: str = "pending"
    type_trans: Optional[str] = None
    app: Optional[str] = None
    user_app_id: Optional[str] = None
    phone_number: Optional[str] = None
    withdriwal_code: Optional[str] = None
    transaction_link: Optional[str] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None


class Page(_Wire, Generic[T]):
    count: int = 0
    next: Optional[str] = None
    previous: Optional[str] = None
    results: List[T] = Field(default_factory=list)
