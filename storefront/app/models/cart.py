# storefront/app/models/cart.py
from __future__ import annotations

from typing import Any, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

ItemId = Union[int, str]


class CartItem(BaseModel):
    """One line of the cart. Identity is (id, plan_id)."""
    model_config = ConfigDict(extra="ignore")

    id: ItemId
    plan_id: Optional[ItemId] = None
    plan_name: Optional[str] = None
    name: str = ""
    price: float = Field(default=0.0, ge=0, description="Snapshot taken when the item was added")
    image: Optional[str] = None
    app_name: Optional[str] = None
    quantity: int = Field(default=1, ge=1)

    @field_validator("price", mode="before")
    @classmethod
    def _price_default(cls, v: Any) -> float:
        # Missing or unparsable prices become 0; negatives are floored.
        try:
            return max(0.0, float(v or 0))
        except (TypeError, ValueError):
            return 0.0

    @property
    def key(self) -> Tuple[str, Optional[str]]:
        return line_key(self.id, self.plan_id)

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


def line_key(item_id: ItemId, plan_id: Optional[ItemId] = None) -> Tuple[str, Optional[str]]:
    """Normalised identity: ids compare as strings so 5 and "5" are the same product."""
    return str(item_id), (None if plan_id is None else str(plan_id))


class CartView(BaseModel):
    items: list[CartItem] = Field(default_factory=list)
    total_items: int = 0
    total_price: float = 0.0
