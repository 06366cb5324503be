# storefront/app/api/routes_cart.py
from __future__ import annotations

from typing import Optional, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from storefront.app.api.deps import get_api, get_cart, get_market, get_notifier, render
from storefront.app.core.errors import ApiError
from storefront.app.integrations.api.client import ApiClient
from storefront.app.services import catalog
from storefront.app.services.cart_store import CartStore
from storefront.app.services.market_store import MarketStore
from storefront.app.services.notices import Notifier

router = APIRouter(tags=["cart"])


# ---------- Schemas ----------

class AddItemRequest(BaseModel):
    product_id: Union[int, str]
    plan_id: Optional[Union[int, str]] = None


class QuantityRequest(BaseModel):
    quantity: int
    plan_id: Optional[Union[int, str]] = None


def _cart_page(cart: CartStore, notifier: Optional[Notifier] = None, status_code: int = 200, **extra):
    return render("cart", notifier, status_code, cart=cart.view(), **extra)


# ---------- Routes ----------

@router.get("/cart")
async def view_cart(cart: CartStore = Depends(get_cart), market: MarketStore = Depends(get_market)):
    return _cart_page(cart, region=market.selected)


@router.post("/cart/items")
async def add_item(
    body: AddItemRequest,
    api: ApiClient = Depends(get_api),
    cart: CartStore = Depends(get_cart),
    market: MarketStore = Depends(get_market),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Add a product (optionally a specific plan). The price is looked up here and
    snapshotted into the cart line; the browser never supplies it.
    """
    try:
        product = await catalog.fetch_product(api, body.product_id)
    except ApiError as e:
        notifier.error("Failed to add to cart", e.message)
        return _cart_page(cart, notifier, 404 if e.status_code == 404 else 502, error=e.message)
    if product is None:
        notifier.error("Failed to add to cart", "Product not found")
        return _cart_page(cart, notifier, 404, error="Product not found")

    line = {
        "id": product.id,
        "name": product.name,
        "image": product.image_url,
        "app_name": product.app_name,
    }
    plan = None
    if body.plan_id is not None:
        app_plans = [] if product.plans or product.app_id is None else await catalog.fetch_app_plans(api, product.app_id)
        plans, _ = catalog.pick_plans(product, app_plans)
        plan = next((pl for pl in plans if str(pl.get("id")) == str(body.plan_id)), None)
        if plan is None:
            notifier.error("Failed to add to cart", "Unknown plan")
            return _cart_page(cart, notifier, 422, errors={"plan_id": "Unknown plan"})
        line.update(plan_id=plan["id"], plan_name=plan["name"])

    await market.load(api)
    line["price"] = catalog.line_price(product, plan, market.selected)

    added = cart.add_to_cart(line)
    notifier.success("Added to cart", added.name)
    return _cart_page(cart, notifier, added=added)


@router.patch("/cart/items/{item_id}")
async def set_quantity(item_id: str, body: QuantityRequest, cart: CartStore = Depends(get_cart)):
    cart.update_quantity(item_id, body.quantity, plan_id=body.plan_id)
    return _cart_page(cart)


@router.delete("/cart/items/{item_id}")
async def remove_item(
    item_id: str,
    plan_id: Optional[str] = None,
    cart: CartStore = Depends(get_cart),
):
    cart.remove_from_cart(item_id, plan_id=plan_id)
    return _cart_page(cart)


@router.delete("/cart")
async def clear(cart: CartStore = Depends(get_cart)):
    cart.clear_cart()
    return _cart_page(cart)
