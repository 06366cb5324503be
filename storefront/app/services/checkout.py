# storefront/app/services/checkout.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from pydantic import ValidationError

from storefront.app.core.config import Settings
from storefront.app.core.errors import ApiError, PaymentError
from storefront.app.integrations.api.client import ApiClient
from storefront.app.models.checkout import (
    CheckoutState,
    CryptoInstructions,
    DirectPurchase,
    WidgetConfig,
)
from storefront.app.models.resources import PaymentOrder, PaymentVerification, PurchasedKey
from storefront.app.services.cart_store import CartStore
from storefront.app.services.session_store import SessionStore
from storefront.app.services.storage import BrowserStorage

logger = logging.getLogger(__name__)

CHECKOUT_KEY = "emerite_checkout"


class CheckoutFlow:
    """
    Razorpay checkout for one browser:

        idle -> awaiting_widget -> verifying -> success | error

    The state survives between requests (the widget runs in the browser), so
    every transition is written to browser storage. Nothing is retried
    automatically; `retry()` just goes back to idle.
    """

    def __init__(
        self,
        api: ApiClient,
        cart: CartStore,
        session: SessionStore,
        storage: BrowserStorage,
        settings: Settings,
    ) -> None:
        self.api = api
        self.cart = cart
        self.session = session
        self.storage = storage
        self.settings = settings
        self.state = self._restore()

    # ---------- persistence ----------

    def _restore(self) -> CheckoutState:
        raw = self.storage.get_item(CHECKOUT_KEY)
        if not raw:
            return CheckoutState()
        try:
            return CheckoutState.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("checkout: discarding unreadable state (%s)", e.errors()[0].get("msg", e))
            return CheckoutState()

    def _set(self, **changes: Any) -> CheckoutState:
        self.state = self.state.model_copy(update=changes)
        if self.state.status == "idle":
            self.storage.remove_item(CHECKOUT_KEY)
        else:
            self.storage.set_item(CHECKOUT_KEY, self.state.model_dump_json())
        logger.info("checkout: -> %s", self.state.status)
        return self.state

    # ---------- path A: razorpay ----------

    def _line_items(self, direct: Optional[DirectPurchase]) -> List[Dict[str, Any]]:
        if direct is not None:
            return [{"product_id": direct.product_id, "plan_id": direct.plan_id, "price": direct.price, "quantity": 1}]
        return [
            {"product_id": it.id, "plan_id": it.plan_id, "price": it.price, "quantity": it.quantity}
            for it in self.cart.items
        ]

    async def start(self, direct: Optional[DirectPurchase] = None) -> WidgetConfig:
        auth = self.session.get_auth()
        if not auth.token:
            raise PaymentError("Login required")

        items = self._line_items(direct)
        if not items:
            raise PaymentError("Your cart is empty")
        amount = direct.price if direct is not None else self.cart.total_price

        try:
            data = await self.api.post("/payments/razorpay/create-order", json={"amount": amount, "items": items})
            order = PaymentOrder.model_validate(data)
        except ApiError as e:
            self._set(status="error", message=e.message or "Could not initiate payment.")
            raise PaymentError(self.state.message) from e
        except ValidationError as e:
            logger.error("checkout: malformed order response: %s", e)
            self._set(status="error", message="Could not initiate payment.")
            raise PaymentError(self.state.message) from e

        self._set(
            status="awaiting_widget",
            order_id=order.id,
            amount=order.amount,
            currency=order.currency,
            direct=direct,
            message=None,
            keys=[],
        )
        user = auth.user or {}
        return WidgetConfig(
            script_url=self.settings.razorpay_script_url,
            key=order.key_id or self.settings.razorpay_key_id,
            amount=order.amount,
            currency=order.currency,
            order_id=order.id,
            name=self.settings.store_name,
            description=f"Purchase: {direct.name}" if direct is not None else f"Purchase: {len(items)} items",
            prefill={"name": user.get("username") or "", "email": user.get("email") or ""},
        )

    async def verify(self, order_id: str, payment_id: str, signature: str) -> CheckoutState:
        """Forward the widget callback to the platform; success clears the cart unless it was a direct buy."""
        if self.state.status not in ("awaiting_widget", "verifying") or not self.state.order_id:
            raise PaymentError("No payment is awaiting verification")
        if order_id != self.state.order_id:
            logger.warning("checkout: callback order %s differs from pending %s", order_id, self.state.order_id)

        self._set(status="verifying", message="Verifying Transaction Signature...")
        payload = {
            "razorpay_order_id": order_id,
            "razorpay_payment_id": payment_id,
            "razorpay_signature": signature,
        }
        try:
            result = PaymentVerification.model_validate(
                await self.api.post("/payments/razorpay/verify", json=payload)
            )
        except ApiError as e:
            return self._set(status="error", message=e.message or "Payment verification failed.")
        except ValidationError as e:
            logger.error("checkout: malformed verification response: %s", e)
            return self._set(status="error", message="Payment verification failed.")

        if result.status != "success":
            return self._set(status="error", message=result.message or "Verification Failed")

        direct = self.state.direct
        if result.keys_data:
            keys = result.keys_data
        else:
            label = direct.name if direct is not None else "Item"
            keys = [PurchasedKey(product_name=label, key=k) for k in result.keys]
        if direct is None:
            self.cart.clear_cart()
        return self._set(status="success", message="Payment Successful. Your assets are ready.", keys=keys)

    def fail(self, message: Optional[str] = None) -> CheckoutState:
        """Widget failed to load or the callback threw in the browser."""
        return self._set(status="error", message=message or "Payment verification failed.")

    def dismiss(self) -> CheckoutState:
        return self._reset()

    def retry(self) -> CheckoutState:
        return self._reset()

    def _reset(self) -> CheckoutState:
        self.state = CheckoutState()
        return self._set(status="idle")

    # ---------- path B: manual crypto ----------

    def crypto_instructions(self, network: str, amount: Optional[float] = None) -> CryptoInstructions:
        net = network.lower()
        if net in ("bep20", "erc20"):
            address = self.settings.crypto_address_evm
        elif net == "trc20":
            address = self.settings.crypto_address_tron
        else:
            raise PaymentError(f"Unsupported network: {network}")
        qr_url = f"{self.settings.qr_service_url}?{urlencode({'size': '150x150', 'data': address})}"
        return CryptoInstructions(
            network=net,
            address=address,
            qr_url=qr_url,
            support_url=self.settings.support_url,
            amount=amount if amount is not None else (self.cart.total_price or None),
        )
