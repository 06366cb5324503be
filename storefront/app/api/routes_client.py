# storefront/app/api/routes_client.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from storefront.app.api.deps import GuardRedirect, get_api, get_container, get_notifier, guard_page, render
from storefront.app.core.container import AppContainer
from storefront.app.core.errors import SessionExpired
from storefront.app.integrations.api.client import ApiClient
from storefront.app.models.resources import License, Order, as_dict, parse_list
from storefront.app.services import dashboards
from storefront.app.services.guard import login_redirect
from storefront.app.services.notices import Notifier

router = APIRouter(prefix="/client", tags=["client"])


@router.get("/dashboard")
async def overview(
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
    _auth=Depends(guard_page("/client/dashboard")),
):
    try:
        data, errors = await dashboards.fetch_many(api, {
            "profile": "/auth/client/me",
            "stats": "/auth/client/stats",
            "licenses": "/auth/client/licenses",
        })
    except SessionExpired:
        raise GuardRedirect(login_redirect("/client/dashboard"))
    for part, message in errors.items():
        notifier.error(f"Failed to load {part}", message)
    return render(
        "client-overview", notifier,
        profile=as_dict(data["profile"]),
        stats=as_dict(data["stats"]),
        licenses=parse_list(License, data["licenses"]),
        errors=errors,
    )


@router.get("/orders")
async def orders(
    api: ApiClient = Depends(get_api),
    notifier: Notifier = Depends(get_notifier),
    _auth=Depends(guard_page("/client/orders")),
):
    try:
        data, errors = await dashboards.fetch_many(api, {
            "orders": "/auth/client/orders",
            "licenses": "/auth/client/licenses",
            "stats": "/auth/client/stats",
        })
    except SessionExpired:
        raise GuardRedirect(login_redirect("/client/orders"))
    for part, message in errors.items():
        notifier.error(f"Failed to load {part}", message)
    return render(
        "client-orders", notifier,
        orders=parse_list(Order, data["orders"]),
        licenses=parse_list(License, data["licenses"]),
        stats=as_dict(data["stats"]),
        errors=errors,
    )


@router.get("/support")
async def support(
    container: AppContainer = Depends(get_container),
    _auth=Depends(guard_page("/client/support")),
):
    return render("client-support", support_url=container.settings.support_url)
