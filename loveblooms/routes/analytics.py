# loveblooms/routes/analytics.py
from __future__ import annotations
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query

from ..schemas.products import Product
from ..services import analytics
from ..services.orders import list_orders
from ..services.products import list_products
from ..settings import settings
from .deps import require_admin

router = APIRouter(prefix="/analytics", tags=["analytics"], dependencies=[Depends(require_admin)])


@router.get("/summary")
def summary(period: str = Query("30days")):
    """KPI cards: revenue and order count against the previous period of the same length."""
    orders = list_orders()
    try:
        revenue = analytics.period_comparison(orders, period, "revenue")
        count = analytics.period_comparison(orders, period, "count")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    low = analytics.low_stock(list_products(), settings.low_stock_threshold)
    avg = round(revenue["current"] / count["current"], 2) if count["current"] else 0.0
    return {
        "period": period,
        "revenue": revenue,
        "orders": count,
        "averageOrderValue": avg,
        "lowStockCount": len(low),
    }

@router.get("/revenue")
def revenue(granularity: str = Query("daily"), period: str = Query("30days")):
    try:
        return analytics.revenue_by_period(list_orders(), granularity, period)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.get("/status")
def status_breakdown():
    return analytics.orders_by_status(list_orders())

@router.get("/top-products")
def top_products(limit: int = Query(5, ge=1, le=50)):
    return analytics.top_products(list_orders(), list_products(), limit)

@router.get("/low-stock", response_model=List[Product])
def low_stock(threshold: Optional[int] = Query(None, ge=0)):
    limit = settings.low_stock_threshold if threshold is None else threshold
    return analytics.low_stock(list_products(), limit)

@router.get("/categories")
def categories():
    return analytics.category_performance(list_orders(), list_products())

@router.get("/aov")
def aov(granularity: str = Query("monthly"), period: str = Query("year")):
    try:
        return analytics.aov_trend(list_orders(), granularity, period)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
