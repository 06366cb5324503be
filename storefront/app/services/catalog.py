# storefront/app/services/catalog.py
from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

from storefront.app.core.errors import ApiError
from storefront.app.integrations.api.client import ApiClient
from storefront.app.models.resources import (
    MarketRegion,
    ProductPlan,
    StoreProduct,
    SubscriptionPlan,
    parse_list,
)

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "General"
SEARCH_FIELDS = ("name", "category", "platform")


# ---------- pure helpers ----------

def is_listed(p: StoreProduct) -> bool:
    return p.is_active and (p.status or "").lower() not in ("inactive", "disabled", "hidden")


def search(products: List[StoreProduct], query: Optional[str]) -> List[StoreProduct]:
    q = (query or "").strip().casefold()
    if not q:
        return list(products)
    return [
        p for p in products
        if any(q in (getattr(p, f) or "").casefold() for f in SEARCH_FIELDS)
    ]


def group_by_category(products: List[StoreProduct]) -> "OrderedDict[str, List[StoreProduct]]":
    """Category -> products, categories in first-seen order."""
    groups: "OrderedDict[str, List[StoreProduct]]" = OrderedDict()
    for p in products:
        groups.setdefault(p.category or DEFAULT_CATEGORY, []).append(p)
    return groups


def product_card(p: StoreProduct, region: Optional[MarketRegion]) -> Dict[str, Any]:
    card = p.model_dump(mode="json")
    card["display_price"] = p.price_for_region(region.id if region else None)
    return card


def related(products: List[StoreProduct], product_id: Any, limit: int = 4) -> List[StoreProduct]:
    return [p for p in products if str(p.id) != str(product_id)][:limit]


def pick_plans(
    product: StoreProduct,
    app_plans: List[SubscriptionPlan],
) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
    """
    Plans offered on a product page and the one preselected.

    The product's own plans win (best-value first-selected); otherwise the
    application's active subscription plans, first one selected.
    """
    if product.plans:
        plans = [pl.model_dump(mode="json") for pl in product.plans]
        best = next((pl for pl in plans if pl.get("is_best_value")), plans[0])
        return plans, best
    active = [
        ProductPlan(id=sp.id, name=sp.name, description=sp.description, price=product.price).model_dump(mode="json")
        for sp in app_plans
        if sp.active
    ]
    return active, (active[0] if active else None)


def line_price(product: StoreProduct, plan: Optional[Dict[str, Any]], region: Optional[MarketRegion]) -> float:
    """Price a cart or purchase line: region override, else the plan price, else the list price."""
    base = (plan or {}).get("price") or product.price
    return product.price_for_region(region.id if region else None, base=base)


# ---------- fetchers ----------

async def fetch_products(api: ApiClient) -> List[StoreProduct]:
    return parse_list(StoreProduct, await api.get("/admin/store/"))


async def fetch_product(api: ApiClient, product_id: Any) -> Optional[StoreProduct]:
    found = parse_list(StoreProduct, [await api.get(f"/admin/store/{quote(str(product_id), safe='')}")])
    return found[0] if found else None


async def fetch_app_plans(api: ApiClient, app_id: Any) -> List[SubscriptionPlan]:
    try:
        return parse_list(SubscriptionPlan, await api.get("/admin/subscriptions/plans", params={"app_id": app_id}))
    except ApiError as e:
        logger.warning("catalog: plans for app %s unavailable (%s)", app_id, e)
        return []
