# storefront/app/services/cart_store.py
from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError

from storefront.app.models.cart import CartItem, CartView, ItemId, line_key
from storefront.app.services.storage import BrowserStorage

logger = logging.getLogger(__name__)

CART_KEY = "emerite_cart"

CartListener = Callable[[List[CartItem]], None]


# -----------------------------------------------------------------------------
# Snapshot codec
# -----------------------------------------------------------------------------

def serialize_cart(items: List[CartItem]) -> str:
    return json.dumps([it.model_dump(mode="json") for it in items], ensure_ascii=False)


def deserialize_cart(raw: Optional[str]) -> List[CartItem]:
    """
    Parse a stored snapshot. Never raises: an unparsable snapshot is an empty
    cart, and individual bad rows are dropped. Duplicate keys keep the first row.
    """
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning("cart: failed to parse stored cart (%s); starting empty", e)
        return []
    if not isinstance(data, list):
        logger.warning("cart: stored cart is %s, not a list; starting empty", type(data).__name__)
        return []

    items: List[CartItem] = []
    seen = set()
    for row in data:
        try:
            item = CartItem.model_validate(row)
        except ValidationError as e:
            logger.warning("cart: dropping unreadable cart row (%s)", e.errors()[0].get("msg", e))
            continue
        if item.key in seen:
            continue
        seen.add(item.key)
        items.append(item)
    return items


# -----------------------------------------------------------------------------
# Store
# -----------------------------------------------------------------------------

class CartStore:
    """
    The shopping cart for one browser.

    State is hydrated from storage on construction. Each mutation re-reads the
    stored cart first and writes it back straight after, with no await in
    between, so a request that awaited the platform still sees lines added
    by an overlapping request. Totals are computed from the current items.
    """

    def __init__(self, storage: BrowserStorage) -> None:
        self._storage = storage
        self._items: List[CartItem] = deserialize_cart(storage.get_item(CART_KEY))
        self._listeners: List[CartListener] = []

    # ---------- reads ----------

    @property
    def items(self) -> List[CartItem]:
        return [it.model_copy() for it in self._items]

    @property
    def total_items(self) -> int:
        return sum(it.quantity for it in self._items)

    @property
    def total_price(self) -> float:
        return sum(it.price * it.quantity for it in self._items)

    def find(self, item_id: ItemId, plan_id: Optional[ItemId] = None) -> Optional[CartItem]:
        key = line_key(item_id, plan_id)
        for it in self._items:
            if it.key == key:
                return it.model_copy()
        return None

    def view(self) -> CartView:
        return CartView(items=self.items, total_items=self.total_items, total_price=self.total_price)

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        """Call `listener(items)` after every mutation. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ---------- mutations ----------

    def add_to_cart(self, item: Union[CartItem, Mapping[str, Any]]) -> CartItem:
        """Increment an existing (id, plan_id) line by one, or append it with quantity 1."""
        self._refresh()
        fields: Dict[str, Any] = item.model_dump() if isinstance(item, CartItem) else dict(item)
        key = line_key(fields["id"], fields.get("plan_id"))

        for i, it in enumerate(self._items):
            if it.key == key:
                self._items[i] = it.model_copy(update={"quantity": it.quantity + 1})
                self._commit()
                return self._items[i].model_copy()

        fields["quantity"] = 1
        fields["price"] = fields.get("price") or 0
        new_item = CartItem.model_validate(fields)
        self._items.append(new_item)
        self._commit()
        return new_item.model_copy()

    def remove_from_cart(self, item_id: ItemId, plan_id: Optional[ItemId] = None) -> None:
        self._refresh()
        key = line_key(item_id, plan_id)
        kept = [it for it in self._items if it.key != key]
        if len(kept) == len(self._items):
            return
        self._items = kept
        self._commit()

    def update_quantity(self, item_id: ItemId, quantity: int, plan_id: Optional[ItemId] = None) -> None:
        self._refresh()
        key = line_key(item_id, plan_id)
        for i, it in enumerate(self._items):
            if it.key == key:
                self._items[i] = it.model_copy(update={"quantity": max(1, int(quantity))})
                self._commit()
                return

    def clear_cart(self) -> None:
        self._items = []
        self._commit()

    # ---------- internals ----------

    def _refresh(self) -> None:
        self._storage.reload()
        self._items = deserialize_cart(self._storage.get_item(CART_KEY))

    def _commit(self) -> None:
        self._storage.set_item(CART_KEY, serialize_cart(self._items))
        snapshot = self.items
        for listener in list(self._listeners):
            listener(snapshot)
