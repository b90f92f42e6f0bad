# app/auth/service.py
from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import ValidationError

from app import messages
from app.session.client import SessionClient
from app.session.results import ApiResult, parsed
from schemas import AuthResponse, PasswordChangeRequest, RegisterRequest, User

logger = logging.getLogger("mobcash.auth")


class AuthService:
    def __init__(self, client: SessionClient):
        self.client = client

    def login(self, email_or_phone: str, password: str) -> ApiResult:
        res = self.client.post(
            "/auth/login",
            {"email_or_phone": (email_or_phone or "").strip(), "password": password},
            authenticated=False,
        )
        if not res.ok:
            return res

        try:
            auth = AuthResponse.model_validate(res.data)
        except ValidationError:
            logger.warning("login payload invalid")
            self.client.notifier.error(messages.GENERIC_ERROR)
            return ApiResult(kind="VALIDATION", http_status=res.http_status, error=messages.GENERIC_ERROR)

        user = auth.data.model_dump() if auth.data else {}
        self.client.start_session(auth.access, auth.refresh, user)
        self.client.notifier.success(messages.LOGIN_OK)
        return ApiResult(kind="OK", data=auth.data, http_status=res.http_status)

    def register(self, payload: RegisterRequest) -> ApiResult:
        if payload.password != payload.re_password:
            self.client.notifier.error(messages.PASSWORD_MISMATCH)
            return ApiResult(
                kind="VALIDATION",
                fields={"re_password": [messages.PASSWORD_MISMATCH]},
                error=messages.PASSWORD_MISMATCH,
            )
        return self.client.post("/auth/registration", payload.model_dump(), authenticated=False)

    def profile(self) -> ApiResult:
        return parsed(self.client.get("/auth/me"), User.model_validate)

    def update_profile(self, changes: dict[str, Any]) -> ApiResult:
        res = self.client.patch("/auth/edit", changes)
        if res.ok:
            self.client.notifier.success(messages.PROFILE_UPDATED)
        return res

    def change_password(self, payload: PasswordChangeRequest) -> ApiResult:
        if payload.new_password != payload.confirm_new_password:
            self.client.notifier.error(messages.PASSWORD_MISMATCH)
            return ApiResult(
                kind="VALIDATION",
                fields={"confirm_new_password": [messages.PASSWORD_MISMATCH]},
                error=messages.PASSWORD_MISMATCH,
            )
        res = self.client.post("/auth/change_password", payload.model_dump())
        if res.ok:
            self.client.notifier.success(messages.PASSWORD_CHANGED)
        return res

    def logout(self) -> None:
        self.client.end_session(redirect=True)

    @property
    def user(self) -> Optional[dict[str, Any]]:
        return self.client.current_user or None
