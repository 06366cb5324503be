# storefront/app/models/checkout.py
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from storefront.app.models.cart import ItemId
from storefront.app.models.resources import PurchasedKey

CheckoutStatus = Literal["idle", "awaiting_widget", "verifying", "success", "error"]
CryptoNetwork = Literal["bep20", "erc20", "trc20"]


class DirectPurchase(BaseModel):
    """A single product+plan bought from its detail page, bypassing the cart."""
    product_id: ItemId
    plan_id: Optional[ItemId] = None
    name: str
    plan_name: Optional[str] = None
    price: float = Field(ge=0)


class CheckoutState(BaseModel):
    status: CheckoutStatus = "idle"
    order_id: Optional[str] = None
    amount: Optional[int] = None
    currency: Optional[str] = None
    direct: Optional[DirectPurchase] = None
    message: Optional[str] = None
    keys: List[PurchasedKey] = Field(default_factory=list)


class WidgetConfig(BaseModel):
    """Everything the browser needs to open the Razorpay widget."""
    script_url: str
    key: str
    amount: int
    currency: str
    order_id: str
    name: str
    description: str
    prefill: Dict[str, Any] = Field(default_factory=dict)


class VerifyRequest(BaseModel):
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str


class CryptoInstructions(BaseModel):
    network: CryptoNetwork
    address: str
    qr_url: str
    support_url: str
    amount: Optional[float] = None
    note: str = "Send the exact amount, then contact support with the transaction hash."
