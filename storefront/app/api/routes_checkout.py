# storefront/app/api/routes_checkout.py
from __future__ import annotations

from typing import Optional, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from storefront.app.api.deps import get_api, get_cart, get_checkout, get_market, get_notifier, render
from storefront.app.core.errors import ApiError, PaymentError
from storefront.app.integrations.api.client import ApiClient
from storefront.app.models.checkout import DirectPurchase, VerifyRequest
from storefront.app.services import catalog
from storefront.app.services.cart_store import CartStore
from storefront.app.services.checkout import CheckoutFlow
from storefront.app.services.guard import login_redirect
from storefront.app.services.market_store import MarketStore
from storefront.app.services.notices import Notifier

router = APIRouter(prefix="/checkout", tags=["checkout"])


# ---------- Schemas ----------

class StartRequest(BaseModel):
    """Empty body checks out the cart; product_id (+ plan_id) buys one item directly."""
    product_id: Optional[Union[int, str]] = None
    plan_id: Optional[Union[int, str]] = None


class FailRequest(BaseModel):
    message: Optional[str] = None


# ---------- Helpers ----------

async def _direct_purchase(api: ApiClient, market: MarketStore, body: StartRequest) -> DirectPurchase:
    try:
        product = await catalog.fetch_product(api, body.product_id)
    except ApiError as e:
        raise PaymentError(e.message) from e
    if product is None:
        raise PaymentError("Product not found")

    app_plans = [] if product.plans or product.app_id is None else await catalog.fetch_app_plans(api, product.app_id)
    plans, selected = catalog.pick_plans(product, app_plans)
    if body.plan_id is not None:
        selected = next((pl for pl in plans if str(pl.get("id")) == str(body.plan_id)), None)
    if selected is None:
        raise PaymentError("Select a plan first")

    await market.load(api)
    return DirectPurchase(
        product_id=product.id,
        plan_id=selected.get("id"),
        name=product.name,
        plan_name=selected.get("name"),
        price=catalog.line_price(product, selected, market.selected),
    )


def _checkout_page(flow: CheckoutFlow, notifier: Optional[Notifier] = None, status_code: int = 200, **extra):
    return render("checkout", notifier, status_code, checkout=flow.state, **extra)


# ---------- Routes ----------

@router.get("")
async def view(
    flow: CheckoutFlow = Depends(get_checkout),
    cart: CartStore = Depends(get_cart),
    market: MarketStore = Depends(get_market),
):
    return _checkout_page(flow, cart=cart.view(), region=market.selected)


@router.post("/start")
async def start(
    body: StartRequest,
    api: ApiClient = Depends(get_api),
    flow: CheckoutFlow = Depends(get_checkout),
    market: MarketStore = Depends(get_market),
    notifier: Notifier = Depends(get_notifier),
):
    if not flow.session.is_authenticated():
        notifier.error("Login Required", "You must be logged in to complete a purchase.")
        return _checkout_page(flow, notifier, 401, redirect_to=login_redirect("/checkout"))
    try:
        direct = await _direct_purchase(api, market, body) if body.product_id is not None else None
        widget = await flow.start(direct)
    except PaymentError as e:
        notifier.error("Transaction Error", str(e) or "Could not initiate payment.")
        return _checkout_page(flow, notifier, 400, error=str(e))
    return _checkout_page(flow, notifier, widget=widget)


@router.post("/verify")
async def verify(
    body: VerifyRequest,
    flow: CheckoutFlow = Depends(get_checkout),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        state = await flow.verify(body.razorpay_order_id, body.razorpay_payment_id, body.razorpay_signature)
    except PaymentError as e:
        notifier.error("Verification Error", str(e))
        return _checkout_page(flow, notifier, 409, error=str(e))
    if state.status == "success":
        notifier.success("Transaction Successful", "Your purchase is complete.")
    else:
        notifier.error("Payment Failed", state.message)
    return _checkout_page(flow, notifier)


@router.post("/fail")
async def fail(body: FailRequest, flow: CheckoutFlow = Depends(get_checkout)):
    flow.fail(body.message)
    return _checkout_page(flow)


@router.post("/dismiss")
async def dismiss(flow: CheckoutFlow = Depends(get_checkout)):
    flow.dismiss()
    return _checkout_page(flow)


@router.post("/retry")
async def retry(flow: CheckoutFlow = Depends(get_checkout)):
    flow.retry()
    return _checkout_page(flow)


@router.get("/crypto/{network}")
async def crypto(
    network: str,
    flow: CheckoutFlow = Depends(get_checkout),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        instructions = flow.crypto_instructions(network)
    except PaymentError as e:
        notifier.error("Unsupported network", str(e))
        return _checkout_page(flow, notifier, 404, error=str(e))
    return _checkout_page(flow, notifier, crypto=instructions)
