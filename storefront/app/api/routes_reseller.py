# storefront/app/api/routes_reseller.py
from __future__ import annotations

from typing import List, Literal, Optional, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from storefront.app.api.deps import GuardRedirect, get_api, get_notifier, guard_page, render
from storefront.app.api.resource_router import resource_router, upstream_failure
from storefront.app.core.errors import ApiError, SessionExpired
from storefront.app.integrations.api.client import ApiClient
from storefront.app.models.resources import (
    Application,
    AppUser,
    License,
    ResellerPlan,
    ResellerTransaction,
    as_dict,
    parse_list,
)
from storefront.app.services import dashboards
from storefront.app.services.guard import login_redirect
from storefront.app.services.notices import Notifier
from storefront.app.services.resource_pages import RESELLER_PAGES

router = APIRouter(tags=["reseller"])


class ResetHwidRequest(BaseModel):
    license_key: str


class AssignRequest(BaseModel):
    plan_id: Optional[int] = None
    duration_days: Optional[int] = Field(default=None, ge=1)


@router.get("/reseller/dashboard")
async def reseller_dashboard(
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
    _auth=Depends(guard_page("/reseller/dashboard")),
):
    try:
        data, errors = await dashboards.fetch_many(api, {
            "profile": "/reseller/profile",
            "apps": "/reseller/apps",
            "licenses": "/reseller/licenses/",
            "transactions": "/reseller/transactions",
        })
    except SessionExpired:
        raise GuardRedirect(login_redirect("/reseller/dashboard"))
    for part, message in errors.items():
        notifier.error(f"Failed to load {part}", message)

    profile = as_dict(data["profile"])
    licenses = parse_list(License, data["licenses"])
    return render(
        "reseller-dashboard", notifier,
        profile=profile,
        credits=profile.get("credits", 0),
        apps=parse_list(Application, data["apps"]),
        licenses=licenses[:10],
        license_count=len(licenses),
        transactions=parse_list(ResellerTransaction, data["transactions"])[:10],
        errors=errors,
    )


@router.get("/reseller/profile")
async def reseller_profile(
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
    _auth=Depends(guard_page("/reseller/profile")),
):
    try:
        data = as_dict(await api.get("/reseller/profile"))
    except SessionExpired:
        raise GuardRedirect(login_redirect("/reseller/profile"))
    except ApiError as e:
        notifier.error("Failed to load profile", e.message)
        return upstream_failure("reseller-profile", notifier, e)
    return render("reseller-profile", notifier, profile=data)


@router.post("/reseller/licenses/reset-hwid")
async def reseller_reset_hwid(
    body: ResetHwidRequest,
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
    _auth=Depends(guard_page("/reseller/licenses")),
):
    try:
        result = await api.post("/reseller/licenses/reset-hwid", json=body.model_dump())
    except SessionExpired:
        raise GuardRedirect(login_redirect("/reseller/licenses"))
    except ApiError as e:
        notifier.error("Failed to reset HWID", e.message)
        return upstream_failure("reseller-licenses", notifier, e, form=body.model_dump())
    notifier.success("HWID reset")
    return render("reseller-licenses", notifier, result=result)


# ---------- Users ----------

def filter_users(users: List[AppUser], q: Optional[str], status: str) -> List[AppUser]:
    """Search username / license key, then narrow to active or banned."""
    needle = (q or "").strip().casefold()
    out = []
    for u in users:
        if needle and needle not in u.username.casefold() and needle not in (u.license_key or "").casefold():
            continue
        if status == "active" and u.is_banned:
            continue
        if status == "banned" and not u.is_banned:
            continue
        out.append(u)
    return out


async def _users_page(api: ApiClient, notifier: Notifier, q: Optional[str] = None, status: str = "all"):
    try:
        data, errors = await dashboards.fetch_many(api, {
            "users": "/reseller/users",
            "apps": "/reseller/apps",
            "plans": "/reseller/subscriptions",
        })
    except SessionExpired:
        raise GuardRedirect(login_redirect("/reseller/users"))
    # apps and plans only feed the assign dialog
    if "users" in errors:
        notifier.error("Failed to load users", errors["users"])

    users = parse_list(AppUser, data["users"])
    return users, {
        "items": filter_users(users, q, status),
        "total": len(users),
        "apps": parse_list(Application, data["apps"]),
        "plans": parse_list(ResellerPlan, data["plans"]),
        "filters": {"q": q, "status": status},
        "errors": errors,
    }


@router.get("/reseller/users")
async def reseller_users(
    q: Optional[str] = None,
    status: Literal["all", "active", "banned"] = "all",
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
    _auth=Depends(guard_page("/reseller/users")),
):
    _, page = await _users_page(api, notifier, q, status)
    return render("reseller-users", notifier, **page)


@router.post("/reseller/users/{user_id}/subscriptions")
async def reseller_assign_subscription(
    user_id: str,
    body: AssignRequest,
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
    _auth=Depends(guard_page("/reseller/users")),
):
    if body.plan_id is None:
        notifier.error("Missing Information", "Please select a plan.")
        return render("reseller-users", notifier, 422, errors={"plan_id": "Please select a plan."})

    uid: Union[int, str] = int(user_id) if user_id.isdigit() else user_id
    payload = {"user_id": uid, "plan_id": body.plan_id, "duration_days": body.duration_days or 30}
    try:
        await api.post("/reseller/subscriptions/assign", json=payload)
    except SessionExpired:
        raise GuardRedirect(login_redirect("/reseller/users"))
    except ApiError as e:
        notifier.error("Assignment Failed", e.message)
        return upstream_failure("reseller-users", notifier, e, form=payload)

    users, page = await _users_page(api, notifier)
    who = next((u.username for u in users if str(u.id) == user_id), user_id)
    notifier.success("Subscription Assigned", f"Subscription active for {who}")
    return render("reseller-users", notifier, **page)


for _spec in RESELLER_PAGES:
    router.include_router(resource_router(_spec))
