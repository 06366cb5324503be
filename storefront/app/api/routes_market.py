# storefront/app/api/routes_market.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from storefront.app.api.deps import get_api, get_market, get_notifier, render
from storefront.app.integrations.api.client import ApiClient
from storefront.app.services.market_store import MarketStore
from storefront.app.services.notices import Notifier

router = APIRouter(prefix="/market", tags=["market"])


class SelectRegionRequest(BaseModel):
    region_id: int


@router.get("/regions")
async def regions(api: ApiClient = Depends(get_api), market: MarketStore = Depends(get_market)):
    await market.load(api)
    return render("market", regions=market.regions, selected=market.selected)


@router.post("/region")
async def select_region(
    body: SelectRegionRequest,
    api: ApiClient = Depends(get_api),
    market: MarketStore = Depends(get_market),
    notifier: Notifier = Depends(get_notifier),
):
    await market.load(api)
    chosen = market.select(body.region_id)
    if chosen is None:
        notifier.error("Unknown region", f"No market region with id {body.region_id}")
        return render("market", notifier, 404, regions=market.regions, selected=market.selected)
    notifier.success("Market updated", f"Prices now shown in {chosen.currency_code}")
    return render("market", notifier, regions=market.regions, selected=chosen)
