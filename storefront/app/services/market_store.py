# storefront/app/services/market_store.py
from __future__ import annotations

import json
import logging
from typing import List, Optional

from storefront.app.core.errors import ApiError
from storefront.app.integrations.api.client import ApiClient
from storefront.app.models.resources import MarketRegion, parse_list
from storefront.app.services.storage import BrowserStorage

logger = logging.getLogger(__name__)

REGION_KEY = "selected_market_region"

DEFAULT_REGIONS: List[MarketRegion] = [
    MarketRegion(id=1, name="INDIAN RUPEE", currency_code="INR", currency_symbol="₹", flag_code="IN"),
    MarketRegion(id=2, name="US DOLLAR", currency_code="USD", currency_symbol="$", flag_code="US"),
    MarketRegion(id=3, name="EURO", currency_code="EUR", currency_symbol="€", flag_code="EU"),
    MarketRegion(id=4, name="BRITISH POUND", currency_code="GBP", currency_symbol="£", flag_code="GB"),
    MarketRegion(id=5, name="CANADIAN DOLLAR", currency_code="CAD", currency_symbol="$", flag_code="CA"),
    MarketRegion(id=6, name="AUSTRALIAN DOLLAR", currency_code="AUD", currency_symbol="$", flag_code="AU"),
]


class MarketStore:
    """Available currency regions and the one this browser picked."""

    def __init__(self, storage: BrowserStorage) -> None:
        self._storage = storage
        self.regions: List[MarketRegion] = list(DEFAULT_REGIONS)

    async def load(self, api: ApiClient) -> List[MarketRegion]:
        """Fetch regions; an error or an empty answer keeps the built-in list."""
        try:
            fetched = parse_list(MarketRegion, await api.get("/admin/market/regions"))
        except ApiError as e:
            logger.info("market: region fetch failed (%s); using defaults", e)
            fetched = []
        self.regions = fetched or list(DEFAULT_REGIONS)
        return self.regions

    @property
    def selected(self) -> MarketRegion:
        """Stored choice matched by id, then currency code; first region otherwise."""
        raw = self._storage.get_item(REGION_KEY)
        if raw:
            try:
                saved = json.loads(raw)
            except ValueError as e:
                logger.warning("market: failed to parse stored region (%s)", e)
                saved = None
            if isinstance(saved, dict):
                for r in self.regions:
                    if r.id == saved.get("id") or r.currency_code == saved.get("currency_code"):
                        return r
        return self.regions[0]

    def select(self, region_id: int) -> Optional[MarketRegion]:
        for r in self.regions:
            if r.id == region_id:
                self._storage.set_item(REGION_KEY, r.model_dump_json())
                return r
        return None
