# loveblooms/routes/orders.py
from __future__ import annotations
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse

from ..errors import ShopError
from ..schemas.orders import (
    NoteIn,
    OrderConfirmationOut,
    OrderOut,
    PaymentStatusUpdateIn,
    StatusUpdateIn,
)
from ..services import orders as order_service
from ..services.timestamps import utcnow
from .deps import http_error, require_admin

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("", response_model=List[OrderOut], dependencies=[Depends(require_admin)])
def list_orders_endpoint(
    status: Optional[str] = Query(None),
    email: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=500),
):
    """Recent orders for the admin UI, newest first."""
    try:
        return order_service.list_orders(status=status, email=email, limit=limit)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# declared before /{order_id} so it is not taken for an id
@router.get("/export.csv", response_class=PlainTextResponse, dependencies=[Depends(require_admin)])
def export_orders_endpoint(status: Optional[str] = Query(None)):
    try:
        orders = order_service.list_orders(status=status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    filename = f"orders-{utcnow():%Y-%m-%d}.csv"
    return PlainTextResponse(
        order_service.export_orders_csv(orders),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# the checkout success page comes back with the Stripe session id
@router.get("/by-session/{session_id}", response_model=OrderConfirmationOut)
def get_order_by_session_endpoint(session_id: str):
    order = order_service.get_order_by_session(session_id)
    if not order:
        raise HTTPException(status_code=404, detail="order not found")
    return order


# order numbers are guessable, so the billing email has to match too
@router.get("/by-number/{order_number}", response_model=OrderConfirmationOut)
def get_order_by_number_endpoint(order_number: str, email: str = Query(..., min_length=3)):
    order = order_service.get_order_by_number(order_number)
    if not order or order.get("billingEmail") != email.strip().lower():
        raise HTTPException(status_code=404, detail="order not found")
    return order


@router.get("/{order_id}", response_model=OrderOut, dependencies=[Depends(require_admin)])
def get_order_endpoint(order_id: str):
    order = order_service.get_order(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="order not found")
    return order


@router.patch("/{order_id}/status", response_model=OrderOut)
def update_status_endpoint(order_id: str, body: StatusUpdateIn, admin: str = Depends(require_admin)):
    try:
        return order_service.set_status(order_id, body.status, actor=admin, note=body.note)
    except ShopError as e:
        raise http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/{order_id}/payment-status", response_model=OrderOut)
def update_payment_status_endpoint(order_id: str, body: PaymentStatusUpdateIn,
                                   admin: str = Depends(require_admin)):
    try:
        return order_service.set_payment_status(order_id, body.paymentStatus, actor=admin, note=body.note)
    except ShopError as e:
        raise http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{order_id}/notes", response_model=OrderOut)
def add_note_endpoint(order_id: str, body: NoteIn, admin: str = Depends(require_admin)):
    try:
        return order_service.add_note(order_id, body.text, author=admin)
    except ShopError as e:
        raise http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
