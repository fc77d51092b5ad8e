"""Dashboard aggregations over hand-built orders with a fixed clock."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from loveblooms.services import analytics
from loveblooms.services.products import create_product

NOW = datetime(2026, 10, 19, 15, 30, tzinfo=timezone.utc)    # a Monday


def _order(total, created, paid=True, status="confirmed", items=None):
    return {
        "id": f"o{total}{created:%j%H}",
        "total": total,
        "status": status,
        "paymentStatus": "paid" if paid else "unpaid",
        "createdAt": created,
        "items": items or [],
    }


# ---------- periods ----------

def test_period_ranges():
    start, end = analytics.period_range("today", NOW)
    assert start == datetime(2026, 10, 19, tzinfo=timezone.utc) and end == NOW
    assert analytics.period_range("7days", NOW)[0] == NOW - timedelta(days=7)
    assert analytics.period_range("month", NOW)[0] == datetime(2026, 10, 1, tzinfo=timezone.utc)
    assert analytics.period_range("year", NOW)[0] == datetime(2025, 10, 19, 15, 30, tzinfo=timezone.utc)
    with pytest.raises(ValueError):
        analytics.period_range("fortnight", NOW)


def test_previous_period_has_same_length_and_ends_at_current_start():
    start, end = analytics.period_range("30days", NOW)
    p_start, p_end = analytics.previous_period_range("30days", NOW)
    assert p_end == start
    assert p_end - p_start == end - start


# ---------- comparisons ----------

def test_revenue_comparison_counts_only_paid_orders():
    orders = [
        _order(100.0, NOW - timedelta(days=1)),
        _order(50.0, NOW - timedelta(days=2)),
        _order(999.0, NOW - timedelta(days=2), paid=False),
        _order(75.0, NOW - timedelta(days=10)),           # previous 7-day window
    ]
    out = analytics.period_comparison(orders, "7days", "revenue", NOW)
    assert out == {"current": 150.0, "previous": 75.0, "changePercent": 100.0}


def test_count_comparison_and_decline():
    orders = [_order(10.0, NOW - timedelta(days=1))] + [
        _order(10.0 + i, NOW - timedelta(days=9, hours=i)) for i in range(4)
    ]
    out = analytics.period_comparison(orders, "7days", "count", NOW)
    assert out == {"current": 1, "previous": 4, "changePercent": -75.0}


@pytest.mark.parametrize("current,previous,expected", [
    (0, 0, 0.0), (5, 0, 100.0), (0, 5, -100.0), (3, 2, 50.0),
])
def test_change_percent_with_zero_previous(current, previous, expected):
    assert analytics.change_percent(current, previous) == expected


def test_unknown_metric():
    with pytest.raises(ValueError):
        analytics.period_comparison([], "7days", "profit", NOW)


# ---------- series ----------

def test_daily_series_is_contiguous_and_zero_filled():
    orders = [
        _order(20.0, NOW - timedelta(days=2)),
        _order(30.0, NOW - timedelta(days=2, hours=1)),
        _order(40.0, NOW),
    ]
    series = analytics.revenue_by_period(orders, "daily", "7days", NOW)
    # Oct 12 15:30 .. Oct 19 15:30 touches 8 calendar days
    assert len(series) == 8
    assert series[0]["label"] == "Oct 12"
    assert series[-1]["label"] == "Oct 19"
    by_label = {b["label"]: b for b in series}
    assert by_label["Oct 17"]["value"] == 50.0 and by_label["Oct 17"]["count"] == 2
    assert by_label["Oct 19"]["value"] == 40.0
    assert by_label["Oct 14"]["value"] == 0.0


def test_month_to_date_has_one_bucket_per_day():
    assert len(analytics.revenue_by_period([], "daily", "month", NOW)) == 19


def test_weekly_buckets_start_on_sunday():
    series = analytics.revenue_by_period([], "weekly", "30days", NOW)
    assert all(b["start"].weekday() == 6 for b in series)
    assert series[0]["label"] == "Sep 13"
    assert len(series) == 6
    assert series[-1]["label"] == "Oct 18"


def test_monthly_labels():
    series = analytics.revenue_by_period([_order(12.0, NOW)], "monthly", "year", NOW)
    assert len(series) == 13
    assert series[0]["label"] == "Oct 2025"
    assert series[-1] == {**series[-1], "label": "Oct 2026", "value": 12.0, "count": 1}


def test_aov_trend():
    orders = [_order(30.0, NOW), _order(45.0, NOW - timedelta(hours=2)), _order(10.0, NOW, paid=False)]
    trend = analytics.aov_trend(orders, "monthly", "year", NOW)
    assert trend[-1]["label"] == "Oct"
    assert trend[-1]["value"] == 37.5
    assert trend[0]["value"] == 0.0


# ---------- breakdowns ----------

def test_orders_by_status():
    orders = [_order(1.0, NOW, status="pending"), _order(2.0, NOW, status="pending"),
              _order(3.0, NOW, status="delivered")]
    rows = {r["status"]: r for r in analytics.orders_by_status(orders)}
    assert rows["pending"]["count"] == 2
    assert rows["delivered"]["label"] == "Delivered"
    assert rows["delivered"]["color"].startswith("#")


@pytest.fixture()
def catalog():
    return [
        create_product({"name": "Red Roses", "price": 40, "categoryName": "Roses", "stockQuantity": 3}),
        create_product({"name": "Tulips", "price": 20, "categoryName": "Seasonal", "stockQuantity": 40}),
        create_product({"name": "Orchid", "price": 35, "categoryName": "Plants", "stockQuantity": 0}),
        create_product({"name": "Old Stock", "price": 5, "stockQuantity": 1, "isActive": False}),
    ]


def test_top_products_and_categories(catalog):
    roses, tulips = catalog[0], catalog[1]
    orders = [
        _order(80.0, NOW, items=[{"productId": roses.id, "productName": "Red Roses",
                                  "quantity": 2, "totalPrice": 80.0}]),
        _order(60.0, NOW - timedelta(days=1), items=[
            {"productId": tulips.id, "productName": "Tulips", "quantity": 3, "totalPrice": 60.0}]),
        _order(400.0, NOW, paid=False, items=[
            {"productId": tulips.id, "productName": "Tulips", "quantity": 20, "totalPrice": 400.0}]),
    ]
    top = analytics.top_products(orders, catalog, limit=5)
    assert [t["productName"] for t in top] == ["Red Roses", "Tulips"]
    assert top[0]["revenue"] == 80.0 and top[0]["unitsSold"] == 2
    assert top[0]["category"] == "Roses"
    assert len(analytics.top_products(orders, catalog, limit=1)) == 1

    cats = analytics.category_performance(orders, catalog)
    assert cats[0] == {"category": "Roses", "revenue": 80.0, "unitsSold": 2}


def test_low_stock_active_only_ascending(catalog):
    names = [p.name for p in analytics.low_stock(catalog, threshold=20)]
    assert names == ["Orchid", "Red Roses"]


def test_analytics_routes_are_admin_only(client, admin_headers, catalog):
    assert client.get("/analytics/summary").status_code == 401
    r = client.get("/analytics/summary", params={"period": "month"}, headers=admin_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["revenue"]["current"] == 0.0
    assert body["lowStockCount"] == 2
    assert client.get("/analytics/revenue", params={"granularity": "hourly"},
                      headers=admin_headers).status_code == 400
    assert client.get("/analytics/low-stock", headers=admin_headers).json()[0]["name"] == "Orchid"
