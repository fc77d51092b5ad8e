# loveblooms/services/analytics.py
"""
Dashboard aggregations. Every function here is pure: it takes the orders and
products the caller already loaded and returns a fresh read-only view.
Revenue figures only count paid orders. Times are bucketed in UTC.
"""
from __future__ import annotations

import calendar
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..schemas.products import Product
from .money import to_pence, to_pounds
from .orders import STATUS_LABELS
from .timestamps import as_datetime, utcnow

PERIODS = ("today", "7days", "30days", "month", "year")
GRANULARITIES = ("daily", "weekly", "monthly")
METRICS = ("revenue", "count")

STATUS_COLORS = {
    "pending": "#eab308",
    "confirmed": "#3b82f6",
    "preparing": "#a855f7",
    "out_for_delivery": "#6366f1",
    "delivered": "#22c55e",
    "cancelled": "#ef4444",
}

Order = Dict[str, Any]


# ---------- calendar helpers ----------
def _utc(d: datetime) -> datetime:
    return d.astimezone(timezone.utc) if d.tzinfo else d.replace(tzinfo=timezone.utc)


def _start_of_day(d: datetime) -> datetime:
    return d.replace(hour=0, minute=0, second=0, microsecond=0)


def _start_of_week(d: datetime) -> datetime:
    # weeks start on Sunday
    return _start_of_day(d) - timedelta(days=(d.weekday() + 1) % 7)


def _start_of_month(d: datetime) -> datetime:
    return _start_of_day(d).replace(day=1)


def _add_months(d: datetime, months: int) -> datetime:
    idx = d.year * 12 + (d.month - 1) + months
    year, month = divmod(idx, 12)
    month += 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return d.replace(year=year, month=month, day=day)


def period_range(period: str, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    if period not in PERIODS:
        raise ValueError(f"period must be one of {', '.join(PERIODS)}")
    end = _utc(now or utcnow())
    if period == "today":
        start = _start_of_day(end)
    elif period == "7days":
        start = end - timedelta(days=7)
    elif period == "30days":
        start = end - timedelta(days=30)
    elif period == "month":
        start = _start_of_month(end)
    else:
        start = _add_months(end, -12)
    return start, end


def previous_period_range(period: str, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """The window of the same length that ends where the current one starts."""
    start, end = period_range(period, now)
    length = end - start
    return start - length, end - length


# ---------- order helpers ----------
def _created(o: Order) -> datetime:
    return _utc(as_datetime(o.get("createdAt")))


def paid_orders(orders: Iterable[Order]) -> List[Order]:
    return [o for o in orders if o.get("paymentStatus") == "paid"]


def orders_between(orders: Iterable[Order], start: datetime, end: datetime) -> List[Order]:
    return [o for o in orders if start <= _created(o) <= end]


def _revenue(orders: Iterable[Order]) -> int:
    return sum(to_pence(o.get("total") or 0) for o in orders)


# ---------- KPIs ----------
def change_percent(current: float, previous: float) -> float:
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round((current - previous) / previous * 100, 2)


def period_comparison(orders: List[Order], period: str, metric: str,
                      now: Optional[datetime] = None) -> Dict[str, Any]:
    if metric not in METRICS:
        raise ValueError(f"metric must be one of {', '.join(METRICS)}")
    start, end = period_range(period, now)
    prev_start, prev_end = previous_period_range(period, now)

    cur = paid_orders(orders_between(orders, start, end))
    prev = paid_orders(orders_between(orders, prev_start, prev_end))

    if metric == "revenue":
        current, previous = _revenue(cur), _revenue(prev)
        pct = change_percent(current, previous)
        return {"current": to_pounds(current), "previous": to_pounds(previous), "changePercent": pct}

    current, previous = len(cur), len(prev)
    return {"current": current, "previous": previous, "changePercent": change_percent(current, previous)}


# ---------- series ----------
def _bucket_start(d: datetime, granularity: str) -> datetime:
    if granularity == "daily":
        return _start_of_day(d)
    if granularity == "weekly":
        return _start_of_week(d)
    return _start_of_month(d)


def bucket_starts(start: datetime, end: datetime, granularity: str) -> List[datetime]:
    """Every bucket touching [start, end], in order, with no gaps."""
    if granularity not in GRANULARITIES:
        raise ValueError(f"granularity must be one of {', '.join(GRANULARITIES)}")
    out: List[datetime] = []
    b = _bucket_start(start, granularity)
    while b <= end:
        out.append(b)
        if granularity == "daily":
            b = b + timedelta(days=1)
        elif granularity == "weekly":
            b = b + timedelta(days=7)
        else:
            b = _add_months(b, 1)
    return out


def _label(b: datetime, granularity: str, month_format: str = "%b %Y") -> str:
    if granularity == "monthly":
        return b.strftime(month_format)
    return f"{b:%b} {b.day}"


def _bucketed(orders: List[Order], granularity: str, period: str,
              now: Optional[datetime]) -> Tuple[List[datetime], Dict[datetime, List[int]]]:
    start, end = period_range(period, now)
    buckets = bucket_starts(start, end, granularity)
    sums: Dict[datetime, List[int]] = {b: [0, 0] for b in buckets}  # [pence, count]
    for o in paid_orders(orders_between(orders, start, end)):
        key = _bucket_start(_created(o), granularity)
        if key in sums:
            sums[key][0] += to_pence(o.get("total") or 0)
            sums[key][1] += 1
    return buckets, sums


def revenue_by_period(orders: List[Order], granularity: str, period: str = "30days",
                      now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    buckets, sums = _bucketed(orders, granularity, period, now)
    return [
        {
            "label": _label(b, granularity),
            "start": b,
            "value": to_pounds(sums[b][0]),
            "count": sums[b][1],
        }
        for b in buckets
    ]


def aov_trend(orders: List[Order], granularity: str = "monthly", period: str = "year",
              now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Average order value per bucket; empty buckets report 0."""
    buckets, sums = _bucketed(orders, granularity, period, now)
    out = []
    for b in buckets:
        pence, count = sums[b]
        avg = round(pence / count) if count else 0
        out.append({"label": _label(b, granularity, "%b"), "start": b, "value": to_pounds(avg)})
    return out


# ---------- breakdowns ----------
def orders_by_status(orders: List[Order]) -> List[Dict[str, Any]]:
    counts: Dict[str, int] = defaultdict(int)
    for o in orders:
        counts[o.get("status") or "unknown"] += 1
    return [
        {
            "status": status,
            "count": count,
            "color": STATUS_COLORS.get(status, "#9ca3af"),
            "label": STATUS_LABELS.get(status, status),
        }
        for status, count in counts.items()
    ]


def top_products(orders: List[Order], products: List[Product], limit: int = 5) -> List[Dict[str, Any]]:
    by_id = {p.id: p for p in products}
    agg: Dict[str, Dict[str, Any]] = {}
    for o in paid_orders(orders):
        for item in o.get("items") or []:
            pid = item.get("productId")
            if pid not in agg:
                prod = by_id.get(pid)
                agg[pid] = {
                    "productId": pid,
                    "productName": item.get("productName") or (prod.name if prod else "Unknown"),
                    "productImage": item.get("productImage") or (prod.primary_image() if prod else ""),
                    "category": (prod.categoryName or "") if prod else "",
                    "unitsSold": 0,
                    "revenue": 0,
                }
            agg[pid]["unitsSold"] += int(item.get("quantity") or 0)
            agg[pid]["revenue"] += to_pence(item.get("totalPrice") or 0)

    ranked = sorted(agg.values(), key=lambda r: r["revenue"], reverse=True)[:limit]
    return [{**r, "revenue": to_pounds(r["revenue"])} for r in ranked]


def low_stock(products: List[Product], threshold: int = 20) -> List[Product]:
    """Active products at or under the threshold, emptiest first. Untracked stock counts as 0."""
    hits = [p for p in products if p.isActive and (p.stockQuantity or 0) <= threshold]
    return sorted(hits, key=lambda p: p.stockQuantity or 0)


def category_performance(orders: List[Order], products: List[Product]) -> List[Dict[str, Any]]:
    by_id = {p.id: p for p in products}
    agg: Dict[str, List[int]] = defaultdict(lambda: [0, 0])  # [pence, units]
    for o in paid_orders(orders):
        for item in o.get("items") or []:
            prod = by_id.get(item.get("productId"))
            cat = (prod.categoryName if prod else None) or "Other"
            agg[cat][0] += to_pence(item.get("totalPrice") or 0)
            agg[cat][1] += int(item.get("quantity") or 0)
    rows = [
        {"category": cat, "revenue": pence, "unitsSold": units}
        for cat, (pence, units) in agg.items()
    ]
    rows.sort(key=lambda r: r["revenue"], reverse=True)
    return [{**r, "revenue": to_pounds(r["revenue"])} for r in rows]
