# loveblooms/routes/coupons.py
from __future__ import annotations
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query

from ..errors import PromotionError, ShopError
from ..schemas.promotions import (
    CouponIn,
    CouponOut,
    CouponPatch,
    CouponValidateIn,
    CouponValidateOut,
)
from ..services import coupons
from ..services.money import to_pence, to_pounds
from .deps import http_error, require_admin

router = APIRouter(prefix="/coupons", tags=["coupons"])


# POST /coupons/validate  (storefront)
@router.post("/validate", response_model=CouponValidateOut)
def validate_coupon_endpoint(body: CouponValidateIn):
    """A rejected code is a normal answer, not an error: always 200."""
    try:
        applied = coupons.validate_coupon(body.code, to_pence(body.subtotal))
    except PromotionError as e:
        return CouponValidateOut(valid=False, **e.to_detail())
    return CouponValidateOut(
        valid=True,
        code=applied.code,
        discountType=applied.coupon.get("discountType"),
        discountAmount=to_pounds(applied.discount),
        freeDelivery=applied.free_delivery,
    )


# ---- Admin -------------------------------------------------------------------
@router.get("", response_model=List[CouponOut], dependencies=[Depends(require_admin)])
def list_coupons_endpoint(active: Optional[bool] = Query(None)):
    return coupons.list_coupons(active=active)

@router.get("/{coupon_id}", response_model=CouponOut, dependencies=[Depends(require_admin)])
def get_coupon_endpoint(coupon_id: str):
    coupon = coupons.get_coupon(coupon_id)
    if not coupon:
        raise HTTPException(status_code=404, detail="coupon not found")
    return coupon

@router.post("", response_model=CouponOut, dependencies=[Depends(require_admin)])
def create_coupon_endpoint(body: CouponIn):
    try:
        return coupons.create_coupon(body.model_dump())
    except ShopError as e:
        raise http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.patch("/{coupon_id}", response_model=CouponOut, dependencies=[Depends(require_admin)])
def update_coupon_endpoint(coupon_id: str, body: CouponPatch):
    try:
        updated = coupons.update_coupon(coupon_id, body.model_dump(exclude_unset=True))
    except ShopError as e:
        raise http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if updated is None:
        raise HTTPException(status_code=404, detail="coupon not found")
    return updated

@router.delete("/{coupon_id}", dependencies=[Depends(require_admin)])
def delete_coupon_endpoint(coupon_id: str):
    coupons.delete_coupon(coupon_id)
    return {"ok": True}
