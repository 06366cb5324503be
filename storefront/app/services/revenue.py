# storefront/app/services/revenue.py
"""
Store revenue over a trailing window of days.

Everything is computed from the order list the platform returns; nothing
here talks to the network.
"""
from __future__ import annotations

import logging
import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional

from storefront.app.models.resources import Order

logger = logging.getLogger(__name__)

RANGES = (1, 7, 14, 30)
DEFAULT_RANGE = 14


def order_time(order: Order) -> Optional[datetime]:
    """created_at as an aware UTC datetime; None when missing or unreadable."""
    raw = (order.created_at or "").strip()
    if not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        logger.info("revenue: skipping order %s with unreadable created_at %r", order.id, raw)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def in_window(orders: List[Order], days: int, today: date) -> List[Order]:
    # today plus `days` full days back, from midnight
    cutoff = datetime.combine(today - timedelta(days=days + 1), time.min, tzinfo=timezone.utc)
    out = []
    for o in orders:
        when = order_time(o)
        if when is not None and when >= cutoff:
            out.append(o)
    return out


def daily(orders: List[Order], days: int, today: date) -> List[Dict[str, Any]]:
    """Completed revenue per day, oldest first, zero-filled."""
    totals: Dict[date, float] = {}
    for o in orders:
        when = order_time(o)
        if o.status == "completed" and when is not None:
            totals[when.date()] = totals.get(when.date(), 0.0) + o.amount
    series = []
    for back in range(days, -1, -1):
        day = today - timedelta(days=back)
        series.append({"date": day.isoformat(), "revenue": totals.get(day, 0.0)})
    return series


def payment_methods(completed: List[Order]) -> List[Dict[str, Any]]:
    if not completed:
        return []
    counts: Dict[str, int] = {}
    for o in completed:
        name = o.payment_method or "Other"
        counts[name] = counts.get(name, 0) + 1
    total = len(completed)
    shares = [
        {"name": name, "count": count, "percent": math.floor(count * 100 / total + 0.5)}
        for name, count in counts.items()
    ]
    return sorted(shares, key=lambda s: s["percent"], reverse=True)


def summarize(orders: List[Order], days: int = DEFAULT_RANGE, today: Optional[date] = None) -> Dict[str, Any]:
    today = today or datetime.now(timezone.utc).date()
    window = in_window(orders, days, today)
    completed = [o for o in window if o.status == "completed"]
    pending = [o for o in window if o.status == "pending"]
    revenue = sum(o.amount for o in completed)

    return {
        "days": days,
        "stats": {
            "revenue": revenue,
            "total_orders": len(window),
            "completed": len(completed),
            "pending_revenue": sum(o.amount for o in pending),
            "success_rate": round(len(completed) / len(window) * 100, 1) if window else 0.0,
            "avg_per_sale": round(revenue / len(completed)) if completed else 0,
        },
        "chart": daily(window, days, today),
        "payment_methods": payment_methods(completed),
        "recent": completed[:4],
    }
