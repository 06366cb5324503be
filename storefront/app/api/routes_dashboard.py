# storefront/app/api/routes_dashboard.py
from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from storefront.app.api.deps import GuardRedirect, get_api, get_notifier, get_session, guard_page, render
from storefront.app.core.errors import ApiError, SessionExpired
from storefront.app.integrations.api.client import ApiClient
from storefront.app.models.resources import LogEntry, as_dict, parse_list
from storefront.app.models.session import Session
from storefront.app.services import dashboards
from storefront.app.services.guard import login_redirect
from storefront.app.services.notices import Notifier
from storefront.app.services.session_store import SessionStore

router = APIRouter(tags=["dashboard"])

# Where each role reads and edits its own account.
PROFILE_ENDPOINTS = {
    "admin": "/admin/profile",
    "reseller": "/reseller/profile",
    "client": "/auth/client/me",
}


# ---------- Schemas ----------

class ProfileUpdate(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None


class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


# ---------- Admin dashboard ----------

@router.get("/dashboard")
async def admin_dashboard(
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
    _auth=Depends(guard_page("/dashboard")),
):
    try:
        (data, errors), now = await asyncio.gather(
            dashboards.fetch_many(api, {"stats": "/admin/stats", "logs": "/admin/logs/"}),
            dashboards.server_time(api),
        )
    except SessionExpired:
        raise GuardRedirect(login_redirect("/dashboard"))
    for part, message in errors.items():
        notifier.error(f"Failed to load {part}", message)
    return render(
        "dashboard", notifier,
        stats=as_dict(data["stats"]),
        recent_logs=parse_list(LogEntry, data["logs"])[:10],
        server_time=now,
        errors=errors,
    )


# ---------- Profile (any signed-in user) ----------

@router.get("/profile")
async def profile(
    api: ApiClient = Depends(get_api),
    session: SessionStore = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
    auth: Session = Depends(guard_page("/profile")),
):
    endpoint = PROFILE_ENDPOINTS[auth.user_type or "client"]
    try:
        data = as_dict(await api.get(endpoint))
    except SessionExpired:
        raise GuardRedirect(login_redirect("/profile"))
    except ApiError as e:
        notifier.error("Failed to load profile", e.message)
        return render("profile", notifier, user_type=auth.user_type, profile=auth.user, error=e.message)
    if auth.user_type == "admin" and data:
        session.update_user(data)
    return render("profile", notifier, user_type=auth.user_type, profile=data or auth.user)


@router.patch("/profile")
async def update_profile(
    body: ProfileUpdate,
    api: ApiClient = Depends(get_api),
    session: SessionStore = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
    auth: Session = Depends(guard_page("/profile")),
):
    changes: Dict[str, Any] = body.model_dump(exclude_none=True)
    if auth.user_type != "admin":
        notifier.error("Not supported", "Only administrators can edit profile details here.")
        return render("profile", notifier, 400, error="Profile edits are admin-only")
    try:
        data = as_dict(await api.patch("/admin/profile", json=changes))
    except SessionExpired:
        raise GuardRedirect(login_redirect("/profile"))
    except ApiError as e:
        notifier.error("Failed to update profile", e.message)
        return render("profile", notifier, 502, error=e.message, form=changes)
    session.update_user(data or changes)
    notifier.success("Profile updated")
    return render("profile", notifier, user_type=auth.user_type, profile=session.get_auth().user)


@router.post("/profile/password")
async def change_password(
    body: PasswordChange,
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
    auth: Session = Depends(guard_page("/profile")),
):
    if auth.user_type == "admin":
        method, endpoint = "PATCH", "/admin/password"
        payload = {"current_password": body.current_password, "new_password": body.new_password}
    elif auth.user_type == "reseller":
        method, endpoint = "PUT", "/reseller/profile/password"
        payload = {"old_password": body.current_password, "new_password": body.new_password}
    else:
        method, endpoint = "PUT", "/auth/client/password"
        payload = {"old_password": body.current_password, "new_password": body.new_password}
    try:
        await api.request(method, endpoint, json=payload)
    except SessionExpired:
        raise GuardRedirect(login_redirect("/profile"))
    except ApiError as e:
        notifier.error("Failed to change password", e.message)
        return render("profile", notifier, 502, error=e.message)
    notifier.success("Password updated")
    return render("profile", notifier, user_type=auth.user_type)


# ---------- System status ----------

@router.get("/status")
async def status(
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
    _auth=Depends(guard_page("/status")),
):
    health, now = await asyncio.gather(dashboards.health(api), dashboards.server_time(api))
    return render("status", notifier, health=health, server_time=now)
