# storefront/app/api/routes_store.py
from __future__ import annotations

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field

from storefront.app.api.deps import get_api, get_container, get_market, get_notifier, get_session, render
from storefront.app.core.container import AppContainer
from storefront.app.core.errors import ApiError
from storefront.app.integrations.api.client import ApiClient
from storefront.app.models.resources import Review, StatusUpdate, TeamMember, parse_list
from storefront.app.services import catalog, dashboards
from storefront.app.services.guard import login_redirect
from storefront.app.services.market_store import MarketStore
from storefront.app.services.notices import Notifier
from storefront.app.services.session_store import SessionStore

router = APIRouter(tags=["store"])


# ---------- Schemas ----------

class ReviewRequest(BaseModel):
    content: str = Field(..., min_length=1)
    stars: int = Field(5, ge=1, le=5)


# ---------- Catalog ----------

@router.get("/")
async def home(
    api: ApiClient = Depends(get_api),
    market: MarketStore = Depends(get_market),
    notifier: Notifier = Depends(get_notifier),
):
    await market.load(api)
    try:
        products = [p for p in await catalog.fetch_products(api) if catalog.is_listed(p)]
    except ApiError as e:
        notifier.error("Failed to load products", e.message)
        products = []
    region = market.selected
    return render("home", notifier, featured=[catalog.product_card(p, region) for p in products[:3]], region=region)


@router.get("/products")
async def products(
    q: Optional[str] = None,
    api: ApiClient = Depends(get_api),
    market: MarketStore = Depends(get_market),
    notifier: Notifier = Depends(get_notifier),
):
    await market.load(api)
    region = market.selected
    try:
        listed = [p for p in await catalog.fetch_products(api) if catalog.is_listed(p)]
    except ApiError as e:
        notifier.error("Failed to load products", e.message)
        return render("products", notifier, state="error", error=e.message, categories=[], query=q or "", region=region)

    matched = catalog.search(listed, q)
    categories = [
        {"name": name, "products": [catalog.product_card(p, region) for p in group]}
        for name, group in catalog.group_by_category(matched).items()
    ]
    return render(
        "products", notifier,
        state="success", categories=categories, total=len(matched), query=q or "", region=region,
    )


@router.get("/store/product/{product_id}")
async def product_detail(
    product_id: str,
    api: ApiClient = Depends(get_api),
    market: MarketStore = Depends(get_market),
    notifier: Notifier = Depends(get_notifier),
):
    await market.load(api)
    region = market.selected
    try:
        product = await catalog.fetch_product(api, product_id)
    except ApiError as e:
        notifier.error("Failed to load product", e.message)
        status = 404 if e.status_code == 404 else 502
        return render("product-detail", notifier, status, error=e.message)
    if product is None:
        return render("product-detail", notifier, 404, error="Product not found")

    app_plans = [] if product.plans or product.app_id is None else await catalog.fetch_app_plans(api, product.app_id)
    plans, selected = catalog.pick_plans(product, app_plans)
    region_id = region.id if region else None
    for plan in plans:
        plan["display_price"] = product.price_for_region(region_id, base=plan.get("price"))

    try:
        others = await catalog.fetch_products(api)
    except ApiError as e:
        notifier.error("Failed to load related products", e.message)
        others = []
    return render(
        "product-detail", notifier,
        product=catalog.product_card(product, region),
        plans=plans,
        selected_plan=selected,
        related=[catalog.product_card(p, region) for p in catalog.related(others, product.id)],
        region=region,
    )


# ---------- Community ----------

@router.get("/reviews")
async def reviews(api: ApiClient = Depends(get_api), notifier: Notifier = Depends(get_notifier)):
    try:
        items = parse_list(Review, await api.get("/admin/store/reviews/"))
    except ApiError as e:
        notifier.error("Failed to load reviews", e.message)
        items = []
    return render("reviews", notifier, items=items)


@router.post("/reviews")
async def post_review(
    body: ReviewRequest,
    api: ApiClient = Depends(get_api),
    session: SessionStore = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
):
    if not session.is_authenticated():
        return RedirectResponse(login_redirect("/reviews"), status_code=303)
    try:
        created = await api.post("/admin/store/reviews/", json=body.model_dump())
    except ApiError as e:
        notifier.error("Failed to post review", e.message)
        return render("reviews", notifier, 502, error=e.message, form=body.model_dump())
    notifier.success("Review posted")
    return render("reviews", notifier, 201, created=created)


@router.get("/about")
async def about(api: ApiClient = Depends(get_api), notifier: Notifier = Depends(get_notifier)):
    try:
        team = parse_list(TeamMember, await api.get("/store/team"))
    except ApiError as e:
        notifier.error("Failed to load team", e.message)
        team = []
    return render("about", notifier, team=team)


@router.get("/store-status")
async def store_status(api: ApiClient = Depends(get_api), notifier: Notifier = Depends(get_notifier)):
    """System health, product availability and recent updates; each part degrades on its own."""

    async def _products():
        try:
            return await catalog.fetch_products(api)
        except ApiError:
            return []

    async def _updates():
        try:
            return parse_list(StatusUpdate, await api.get("/admin/store/updates/"))
        except ApiError:
            return []

    health, products, updates = await asyncio.gather(dashboards.health(api), _products(), _updates())
    return render(
        "store-status", notifier,
        health=health,
        products=[{"id": p.id, "name": p.name, "status": p.status or ("active" if p.is_active else "inactive")}
                  for p in products],
        updates=updates,
    )


# ---------- Static pages ----------

@router.get("/contact")
async def contact(container: AppContainer = Depends(get_container)):
    return render("contact", support_url=container.settings.support_url)


@router.get("/legal/{doc}")
async def legal(doc: str):
    if doc not in ("terms", "privacy", "refund"):
        return render("not-found", status_code=404)
    return render(f"legal-{doc}")
