# storefront/app/api/routes_admin.py
from __future__ import annotations

from typing import Any, Literal, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from storefront.app.api.deps import GuardRedirect, get_api, get_notifier, get_session, guard_page, render
from storefront.app.api.resource_router import resource_router, upstream_failure
from storefront.app.core.errors import ApiError, SessionExpired
from storefront.app.integrations.api.client import ApiClient
from storefront.app.models.resources import Application, Order, ResellerTransaction, Ticket, as_dict, parse_list
from storefront.app.services import resource_pages as pages
from storefront.app.services import revenue
from storefront.app.services.guard import login_redirect
from storefront.app.services.notices import Notifier
from storefront.app.services.session_store import SessionStore

router = APIRouter(tags=["admin"])

for _spec in pages.ADMIN_PAGES:
    router.include_router(resource_router(_spec))


# ---------- Schemas ----------

class AmountRequest(BaseModel):
    amount: float = Field(..., gt=0)


class ResetHwidRequest(BaseModel):
    license_key: str
    hwid: Optional[str] = None


class ReplyRequest(BaseModel):
    content: str = Field(..., min_length=1)


class BanRequest(BaseModel):
    reason: Optional[str] = None


class ExtendRequest(BaseModel):
    subscription_id: int
    add_days: Optional[int] = Field(default=None, ge=1)


class PauseRequest(BaseModel):
    subscription_id: int
    pause_until: Optional[str] = None


class ResumeRequest(BaseModel):
    subscription_id: int


# ---------- Helpers ----------

def _seg(value: str) -> str:
    return quote(value, safe="")


async def _action(
    api: ApiClient,
    notifier: Notifier,
    page: str,
    method: str,
    endpoint: str,
    success: str,
    failure: str,
    json: Any = None,
    params: Optional[dict] = None,
):
    """Run one page action: success notice + result, or 502 with the server message."""
    try:
        result = await api.request(method, endpoint, json=json, params=params)
    except SessionExpired as e:
        notifier.error(failure, e.message)
        raise GuardRedirect(login_redirect(f"/{page}"))
    except ApiError as e:
        notifier.error(failure, e.message)
        return upstream_failure(page, notifier, e, form=json)
    notifier.success(success)
    return render(page, notifier, result=result)


async def _fetch(api: ApiClient, notifier: Notifier, page: str, endpoint: str, failure: str):
    try:
        return await api.get(endpoint), None
    except SessionExpired:
        raise GuardRedirect(login_redirect(f"/{page}"))
    except ApiError as e:
        notifier.error(failure, e.message)
        return None, upstream_failure(page, notifier, e)


# ---------- Resellers ----------

@router.post("/resellers/{reseller_id}/add-balance")
async def reseller_add_balance(
    reseller_id: str,
    body: AmountRequest,
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
    _auth=Depends(guard_page("/resellers")),
):
    return await _action(
        api, notifier, "resellers", "POST", f"/admin/resellers/{_seg(reseller_id)}/add-balance",
        "Balance added", "Failed to add balance", json={"amount": body.amount},
    )


@router.post("/resellers/{reseller_id}/deduct-balance")
async def reseller_deduct_balance(
    reseller_id: str,
    body: AmountRequest,
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
    _auth=Depends(guard_page("/resellers")),
):
    return await _action(
        api, notifier, "resellers", "POST", f"/admin/resellers/{_seg(reseller_id)}/deduct-balance",
        "Balance deducted", "Failed to deduct balance", json={"amount": body.amount},
    )


@router.get("/resellers/{reseller_id}/transactions")
async def reseller_transactions(
    reseller_id: str,
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
    _auth=Depends(guard_page("/resellers")),
):
    data, failed = await _fetch(
        api, notifier, "resellers", f"/admin/resellers/{_seg(reseller_id)}/transactions", "Failed to load transactions"
    )
    if failed is not None:
        return failed
    return render("reseller-transactions", notifier, reseller_id=reseller_id,
                  items=parse_list(ResellerTransaction, data))


@router.get("/resellers/{reseller_id}/apps")
async def reseller_apps(
    reseller_id: str,
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
    _auth=Depends(guard_page("/resellers")),
):
    data, failed = await _fetch(
        api, notifier, "resellers", f"/admin/resellers/{_seg(reseller_id)}/apps", "Failed to load applications"
    )
    if failed is not None:
        return failed
    return render("reseller-apps", notifier, reseller_id=reseller_id, items=parse_list(Application, data))


@router.post("/resellers/{reseller_id}/apps/{app_id}")
async def reseller_assign_app(
    reseller_id: str,
    app_id: str,
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
    _auth=Depends(guard_page("/resellers")),
):
    return await _action(
        api, notifier, "resellers", "POST", f"/admin/resellers/{_seg(reseller_id)}/apps/{_seg(app_id)}",
        "Application assigned", "Failed to assign application",
    )


@router.delete("/resellers/{reseller_id}/apps/{app_id}")
async def reseller_remove_app(
    reseller_id: str,
    app_id: str,
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
    _auth=Depends(guard_page("/resellers")),
):
    return await _action(
        api, notifier, "resellers", "DELETE", f"/admin/resellers/{_seg(reseller_id)}/apps/{_seg(app_id)}",
        "Application removed", "Failed to remove application",
    )


# ---------- Licenses ----------

@router.delete("/licenses")
async def licenses_bulk_delete(
    mode: Literal["all", "unused", "used"],
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
    _auth=Depends(guard_page("/licenses")),
):
    return await _action(
        api, notifier, "licenses", "DELETE", "/admin/licenses/",
        f"Deleted {mode} licenses", "Failed to delete licenses", params={"mode": mode},
    )


@router.post("/licenses/reset-hwid")
async def licenses_reset_hwid(
    body: ResetHwidRequest,
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
    _auth=Depends(guard_page("/licenses")),
):
    return await _action(
        api, notifier, "licenses", "POST", "/admin/licenses/reset-hwid",
        "HWID reset", "Failed to reset HWID", json=body.model_dump(),
    )


# ---------- Subscriptions ----------

@router.post("/subscriptions/extend")
async def subscription_extend(
    body: ExtendRequest,
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
    _auth=Depends(guard_page("/subscriptions")),
):
    return await _action(
        api, notifier, "subscriptions", "POST", "/admin/subscriptions/extend",
        "Subscription extended", "Failed to extend subscription", json=body.model_dump(exclude_none=True),
    )


@router.post("/subscriptions/pause")
async def subscription_pause(
    body: PauseRequest,
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
    _auth=Depends(guard_page("/subscriptions")),
):
    return await _action(
        api, notifier, "subscriptions", "POST", "/admin/subscriptions/pause",
        "Subscription paused", "Failed to pause subscription", json=body.model_dump(exclude_none=True),
    )


@router.post("/subscriptions/resume")
async def subscription_resume(
    body: ResumeRequest,
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
    _auth=Depends(guard_page("/subscriptions")),
):
    return await _action(
        api, notifier, "subscriptions", "POST", "/admin/subscriptions/resume",
        "Subscription resumed", "Failed to resume subscription", json=body.model_dump(),
    )


# ---------- Tickets ----------

@router.get("/tickets/{ticket_id}")
async def ticket_detail(
    ticket_id: str,
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
    _auth=Depends(guard_page("/tickets")),
):
    data, failed = await _fetch(api, notifier, "tickets", f"/admin/tickets/{_seg(ticket_id)}", "Failed to load ticket")
    if failed is not None:
        return failed
    found = parse_list(Ticket, [data])
    return render("ticket", notifier, ticket=found[0] if found else None)


@router.post("/tickets/{ticket_id}/reply")
async def ticket_reply(
    ticket_id: str,
    body: ReplyRequest,
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
    _auth=Depends(guard_page("/tickets")),
):
    return await _action(
        api, notifier, "tickets", "POST", "/admin/tickets/message",
        "Reply sent", "Failed to send reply", json={"ticket_id": ticket_id, "content": body.content},
    )


@router.post("/tickets/{ticket_id}/close")
async def ticket_close(
    ticket_id: str,
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
    _auth=Depends(guard_page("/tickets")),
):
    return await _action(
        api, notifier, "tickets", "POST", f"/admin/tickets/{_seg(ticket_id)}/close",
        "Ticket closed", "Failed to close ticket",
    )


# ---------- Clients ----------

@router.post("/clients/{client_id}/impersonate")
async def client_impersonate(
    client_id: str,
    api: ApiClient = Depends(get_api),
    session: SessionStore = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
    _auth=Depends(guard_page("/clients")),
):
    """Swap this browser's admin credential for the client's. There is no way back short of logging in again."""
    try:
        data = as_dict(await api.post(f"/admin/store/clients/{_seg(client_id)}/impersonate"))
    except SessionExpired:
        raise GuardRedirect(login_redirect("/clients"))
    except ApiError as e:
        notifier.error("Failed to impersonate", e.message or "Unknown error")
        return upstream_failure("clients", notifier, e)
    token = data.get("token")
    if not token:
        notifier.error("Failed to impersonate", "No token returned")
        return render("clients", notifier, 502, error="No token returned")
    session.set_auth(token, "client", data.get("user"))
    notifier.success("Logged in as client", "Redirecting to dashboard...")
    return render("clients", notifier, redirect_to="/client/dashboard")


# ---------- Users ----------

@router.post("/users/{user_id}/ban")
async def user_ban(
    user_id: str,
    body: BanRequest,
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
    _auth=Depends(guard_page("/users")),
):
    return await _action(
        api, notifier, "users", "POST", "/admin/users/ban",
        "User banned", "Failed to ban user", json={"user_id": user_id, "reason": body.reason},
    )


@router.post("/users/{user_id}/unban")
async def user_unban(
    user_id: str,
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
    _auth=Depends(guard_page("/users")),
):
    return await _action(
        api, notifier, "users", "POST", "/admin/users/unban",
        "User unbanned", "Failed to unban user", json={"user_id": user_id},
    )


@router.post("/users/{user_id}/reset-hwid")
async def user_reset_hwid(
    user_id: str,
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
    _auth=Depends(guard_page("/users")),
):
    return await _action(
        api, notifier, "users", "POST", f"/admin/users/{_seg(user_id)}/reset-hwid",
        "HWID reset", "Failed to reset HWID",
    )


# ---------- Revenue ----------

@router.get("/revenue")
async def revenue_report(
    days: int = Query(revenue.DEFAULT_RANGE),
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
    _auth=Depends(guard_page("/revenue")),
):
    if days not in revenue.RANGES:
        notifier.error("Invalid range", f"Pick one of {', '.join(map(str, revenue.RANGES))} days")
        return render("revenue", notifier, 422, errors={"days": "Unsupported range"})
    data, failed = await _fetch(api, notifier, "revenue", "/admin/store/orders/all", "Sync Failed")
    if failed is not None:
        return failed
    if isinstance(data, dict) and "orders" in data:
        data = data["orders"]
    return render("revenue", notifier, **revenue.summarize(parse_list(Order, data), days))
