# storefront/app/api/routes_auth.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field, model_validator

from storefront.app.api.deps import get_api, get_notifier, get_session, render
from storefront.app.core.errors import ApiError
from storefront.app.integrations.api.client import ApiClient
from storefront.app.models.resources import as_dict
from storefront.app.models.session import USER_TYPES, SessionView, landing_page, local_path
from storefront.app.services.notices import Notifier
from storefront.app.services.session_store import SessionStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


# ---------- Schemas ----------

class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1, description="Email or username")
    password: str = Field(..., min_length=1)
    return_url: Optional[str] = Field(None, alias="returnUrl")

    model_config = ConfigDict(populate_by_name=True)


class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)
    confirm_password: Optional[str] = None
    username: Optional[str] = None

    @model_validator(mode="after")
    def _passwords_match(self) -> "RegisterRequest":
        if self.confirm_password is not None and self.confirm_password != self.password:
            raise ValueError("Passwords must be identical.")
        return self


class VerifyEmailRequest(BaseModel):
    email: str
    code: str = Field(..., min_length=1)
    return_url: Optional[str] = Field(None, alias="returnUrl")

    model_config = ConfigDict(populate_by_name=True)


class ForgotPasswordRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    email: str
    code: str
    new_password: str = Field(..., min_length=1)


# ---------- Helpers ----------

def _session_view(session: SessionStore, return_url: Optional[str] = None) -> SessionView:
    auth = session.get_auth()
    return SessionView(
        authenticated=auth.authenticated,
        user_type=auth.user_type,
        user=auth.user,
        landing=landing_page(auth.user_type, return_url),
    )


def _store_credential(session: SessionStore, data: dict, default_type: str = "client") -> bool:
    token = data.get("token")
    if not token:
        return False
    user_type = data.get("user_type") or default_type
    if user_type not in USER_TYPES:
        logger.warning("auth: unknown user_type %r from server; treating as %s", user_type, default_type)
        user_type = default_type
    session.set_auth(token, user_type, data.get("user"))
    return True


# ---------- Routes ----------

@router.get("/login")
async def login_page(
    return_url: Optional[str] = Query(None, alias="returnUrl"),
    session: SessionStore = Depends(get_session),
):
    return render("login", session=_session_view(session, return_url), return_url=local_path(return_url))


@router.get("/register")
async def register_page(session: SessionStore = Depends(get_session)):
    return render("register", session=_session_view(session))


@router.post("/login")
async def login(
    body: LoginRequest,
    api: ApiClient = Depends(get_api),
    session: SessionStore = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
):
    """Credential login for clients and resellers; the server says which one this is."""
    try:
        data = as_dict(await api.post("/auth/client/login", json={"email": body.email, "password": body.password}))
    except ApiError as e:
        if "account not verified" in e.message.lower():
            notifier.info("Verification Required", "Check your mailbox for the code.")
            return render("login", notifier, 403, verification_required=True, email=body.email)
        notifier.error("Access Denied", e.message or "Verification failed.")
        return render("login", notifier, 401 if e.status_code == 401 else 502, error=e.message)

    if not _store_credential(session, data):
        notifier.error("Access Denied", "No token returned")
        return render("login", notifier, 502, error="No token returned")
    view = _session_view(session, body.return_url)
    return render("login", notifier, session=view, redirect_to=view.landing)


@router.post("/register")
async def register(
    body: RegisterRequest,
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        await api.post(
            "/auth/client/register",
            json={"email": body.email, "password": body.password, "username": body.username},
        )
    except ApiError as e:
        notifier.error("Failed", e.message or "Failed to create account.")
        return render("register", notifier, 502, error=e.message, form={"email": body.email, "username": body.username})
    notifier.info("Code Sent", "Check your email for the verification code.")
    return render("register", notifier, 201, verification_required=True, email=body.email)


@router.post("/register/verify")
async def verify_email(
    body: VerifyEmailRequest,
    api: ApiClient = Depends(get_api),
    session: SessionStore = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        data = as_dict(await api.post("/auth/client/verify", json={"email": body.email, "code": body.code}))
    except ApiError as e:
        notifier.error("Verification Failed", e.message or "Code invalid or expired.")
        return render("register", notifier, 400, error=e.message, email=body.email)
    if not _store_credential(session, {**data, "user_type": "client"}):
        notifier.error("Verification Failed", "No token returned")
        return render("register", notifier, 502, error="No token returned")
    notifier.success("Verified", "Identity confirmed. Access granted.")
    view = _session_view(session, body.return_url)
    return render("register", notifier, session=view, redirect_to=view.landing)


@router.post("/password/forgot")
async def forgot_password(
    body: ForgotPasswordRequest,
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        await api.post("/auth/client/forgot-password", json={"email": body.email})
    except ApiError as e:
        notifier.error("Error", e.message or "Failed to send code.")
        return render("login", notifier, 502, error=e.message)
    notifier.info("Code Sent", "If the email exists, a code has been sent.")
    return render("login", notifier, reset_step=2, email=body.email)


@router.post("/password/reset")
async def reset_password(
    body: ResetPasswordRequest,
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        await api.post("/auth/client/reset-password", json=body.model_dump())
    except ApiError as e:
        notifier.error("Error", e.message or "Failed to reset password.")
        return render("login", notifier, 502, error=e.message)
    notifier.success("Success", "Password reset successfully. Please login.")
    return render("login", notifier, reset_step=None)


@router.post("/logout")
async def logout(session: SessionStore = Depends(get_session), notifier: Notifier = Depends(get_notifier)):
    session.clear_auth()
    notifier.info("Signed out")
    return render("login", notifier, session=_session_view(session), redirect_to="/")


@router.get("/session")
async def current_session(session: SessionStore = Depends(get_session)):
    return render("session", session=_session_view(session))
