# storefront/app/models/resources.py
"""
Records returned by the platform API.

Required fields are the ones every page relies on; everything else is
optional because the backend omits it freely. Unknown keys are dropped.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

RecordId = Union[int, str]


class Record(BaseModel):
    model_config = ConfigDict(extra="ignore")


# ----------------------------
# Catalog
# ----------------------------

class Application(Record):
    id: RecordId
    name: str
    version: Optional[str] = None
    secret: Optional[str] = None
    webhook_url: Optional[str] = None
    force_update: bool = False
    created_at: Optional[str] = None


class ProductPlan(Record):
    id: Optional[RecordId] = None
    name: str
    price: float = 0.0
    description: Optional[str] = None
    is_best_value: bool = False
    duration_days: Optional[int] = None


class RegionPrice(Record):
    region_id: int
    price: float


class StoreProduct(Record):
    id: RecordId
    name: str
    price: float = 0.0
    description: Optional[str] = None
    details: Optional[str] = None
    image_url: Optional[str] = None
    yt_video_url: Optional[str] = None
    category: Optional[str] = None
    platform: Optional[str] = None
    app_id: Optional[RecordId] = None
    app_name: Optional[str] = None
    status: Optional[str] = None
    is_active: bool = True
    plans: List[ProductPlan] = Field(default_factory=list)
    region_prices: List[RegionPrice] = Field(default_factory=list)

    def price_for_region(self, region_id: Optional[int], base: Optional[float] = None) -> float:
        """Region override when one exists, else `base` (a plan price) or the list price."""
        if region_id is not None:
            for rp in self.region_prices:
                if rp.region_id == region_id:
                    return rp.price
        return self.price if base is None else base


class SubscriptionPlan(Record):
    id: RecordId
    app_id: RecordId
    app_name: Optional[str] = None
    name: str
    level: int = 1
    description: Optional[str] = None
    active: bool = True
    max_seats: Optional[int] = None
    created_at: Optional[str] = None


class MarketRegion(Record):
    id: int
    name: str
    currency_code: str
    currency_symbol: str
    flag_code: Optional[str] = None


# ----------------------------
# Licensing & users
# ----------------------------

class License(Record):
    id: RecordId
    license_key: str
    hwid: Optional[str] = None
    expiry_timestamp: Optional[str] = None
    is_active: bool = True
    app_id: Optional[RecordId] = None
    app_name: Optional[str] = None
    plan_id: Optional[RecordId] = None
    plan_name: Optional[str] = None
    user_id: Optional[RecordId] = None
    created_at: Optional[str] = None


class UserSubscription(Record):
    id: Optional[RecordId] = None
    name: str
    expires_at: Optional[str] = None
    app_name: Optional[str] = None
    app_id: Optional[RecordId] = None


class AppUser(Record):
    id: RecordId
    username: str
    email: Optional[str] = None
    license_key: Optional[str] = None
    subscription_name: Optional[str] = None
    subscriptions: List[UserSubscription] = Field(default_factory=list)
    expiry_timestamp: Optional[str] = None
    account_creation_date: Optional[str] = None
    last_login_time: Optional[str] = None
    is_banned: bool = False
    ban_reason: Optional[str] = None
    reseller_name: Optional[str] = None


class Variable(Record):
    id: RecordId
    key: str
    value: str = ""
    app_id: Optional[RecordId] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ResellerPlan(Record):
    id: RecordId
    plan_id: Optional[RecordId] = None
    app_id: Optional[RecordId] = None
    name: str
    app_name: Optional[str] = None
    expires_at: Optional[str] = None


class LogEntry(Record):
    id: RecordId
    type: Optional[str] = None
    action: Optional[str] = None
    user_id: Optional[RecordId] = None
    username: Optional[str] = None
    ip_address: Optional[str] = None
    details: Optional[str] = None
    hwid: Optional[str] = None
    pc_name: Optional[str] = None
    created_at: Optional[str] = None


# ----------------------------
# Resellers
# ----------------------------

class Reseller(Record):
    id: RecordId
    username: str
    credits: float = 0.0
    is_active: bool = True
    email: Optional[str] = None
    discord_id: Optional[str] = None
    company_name: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None
    total_licenses_created: Optional[int] = None
    app_count: Optional[int] = None
    subscription_count: Optional[int] = None
    created_at: Optional[str] = None


class ResellerTransaction(Record):
    id: RecordId
    amount: float
    balance_after: Optional[float] = None
    transaction_type: str
    description: Optional[str] = None
    created_at: Optional[str] = None


# ----------------------------
# Store operations
# ----------------------------

class StoreClient(Record):
    id: RecordId
    email: str
    username: Optional[str] = None
    avatar_url: Optional[str] = None
    is_active: bool = True
    is_verified: bool = False
    is_reseller: bool = False
    has_success_purchase: bool = False
    has_pending_orders: bool = False
    total_spent: float = 0.0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class OrderItem(Record):
    product_id: Optional[RecordId] = None
    product_name: Optional[str] = None
    plan_id: Optional[RecordId] = None
    plan_name: Optional[str] = None
    price: Optional[float] = None
    quantity: int = 1


class Order(Record):
    id: RecordId
    amount: float = 0.0
    status: str = "pending"
    payment_method: Optional[str] = None
    transaction_id: Optional[str] = None
    razorpay_order_id: Optional[str] = None
    client_email: Optional[str] = None
    client_username: Optional[str] = None
    items: List[OrderItem] = Field(default_factory=list)
    created_at: Optional[str] = None


class TicketMessage(Record):
    id: RecordId
    content: str
    is_admin: bool = False
    created_at: Optional[str] = None


class Ticket(Record):
    id: RecordId
    subject: str
    status: str = "open"
    created_by: Optional[str] = None
    created_at: Optional[str] = None
    messages: List[TicketMessage] = Field(default_factory=list)


class TeamMember(Record):
    id: RecordId
    name: str
    role: str
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    discord_url: Optional[str] = None
    twitter_url: Optional[str] = None
    github_url: Optional[str] = None


class Review(Record):
    id: RecordId
    content: str
    stars: int = 5
    username: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[str] = None


class StatusUpdate(Record):
    id: RecordId
    title: str
    content: str = ""
    type: str = "info"
    product_id: Optional[RecordId] = None
    created_at: Optional[str] = None


# ----------------------------
# Payments
# ----------------------------

class PaymentOrder(Record):
    """Server-issued order descriptor handed to the payment widget."""
    id: str
    amount: int
    currency: str = "INR"
    key_id: Optional[str] = None


class PurchasedKey(Record):
    product_name: str = "Item"
    key: str
    plan_name: Optional[str] = None
    expires_at: Optional[str] = None


class PaymentVerification(Record):
    status: str
    message: Optional[str] = None
    keys: List[str] = Field(default_factory=list)
    keys_data: List[PurchasedKey] = Field(default_factory=list)


def parse_list(model: type[Record], data: Any) -> List[Any]:
    """Validate a list payload. Accepts a bare list or {"items": [...]}; bad rows are skipped."""
    if isinstance(data, dict):
        data = data.get("items", data.get("data", []))
    if not isinstance(data, list):
        return []
    out: List[Any] = []
    for row in data:
        try:
            out.append(model.model_validate(row))
        except ValidationError as e:
            logger.warning("%s: skipping malformed row (%s)", model.__name__, e.errors()[0].get("msg", e))
    return out


def as_dict(data: Any) -> Dict[str, Any]:
    return data if isinstance(data, dict) else {}
