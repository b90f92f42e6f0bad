# settings.py
from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # -----------------------
    # Backend
    # -----------------------
    MOBCASH_BASE_URL: str = Field(default="http://127.0.0.1:8000")
    MOBCASH_HTTP_TIMEOUT_S: float = 20.0
    HTTP_DEBUG: bool = False

    # -----------------------
    # Session persistence
    # -----------------------
    # empty => in-memory store
    SESSION_STORE_PATH: str = ""

    # -----------------------
    # Business rules
    # -----------------------
    REQUIRED_CURRENCY_ID: int = 27
    REQUIRED_CURRENCY_CODE: str = "XOF"
    WITHDRAWAL_CODE_MIN_LENGTH: int = 4
    TRANSACTION_SOURCE: str = "web"

    # network requiring USSD settlement for deposits
    USSD_NETWORK_NAME: str = "moov"
    USSD_DEPOSIT_API: str = "connect"

    # bf, sn, bj or ci
    DEFAULT_PHONE_COUNTRY: str = "ci"
    HISTORY_PAGE_SIZE: int = 10

    # -----------------------
    # Navigation targets
    # -----------------------
    LOGIN_PATH: str = "/login"
    LANDING_PATH: str = "/dashboard"

    # -----------------------
    # Sandbox backend (main.py)
    # -----------------------
    SANDBOX_ACCESS_TTL_S: int = 300
    SANDBOX_MERCHANT_PHONE: str = "22990000000"


settings = Settings()


def base_url() -> str:
    return (settings.MOBCASH_BASE_URL or "").strip().rstrip("/")


def validate_client_settings() -> None:
    if not base_url():
        raise RuntimeError("Client settings validation failed. MOBCASH_BASE_URL is empty.")
    if settings.MOBCASH_HTTP_TIMEOUT_S <= 0:
        raise RuntimeError(
            "Client settings validation failed. "
            f"MOBCASH_HTTP_TIMEOUT_S must be > 0, got {settings.MOBCASH_HTTP_TIMEOUT_S!r}"
        )
    if settings.WITHDRAWAL_CODE_MIN_LENGTH < 1:
        raise RuntimeError(
            "Client settings validation failed. WITHDRAWAL_CODE_MIN_LENGTH must be >= 1"
        )
    if not (settings.TRANSACTION_SOURCE or "").strip():
        raise RuntimeError("Client settings validation failed. TRANSACTION_SOURCE is empty.")
    if settings.DEFAULT_PHONE_COUNTRY.lower() not in ("bf", "sn", "bj", "ci"):
        raise RuntimeError(
            "Client settings validation failed. "
            f"DEFAULT_PHONE_COUNTRY must be one of bf, sn, bj, ci, got {settings.DEFAULT_PHONE_COUNTRY!r}"
        )
