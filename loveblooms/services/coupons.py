# loveblooms/services/coupons.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..db import get_store
from ..errors import (
    BelowMinimum,
    CodeExpired,
    CodeInactive,
    CodeNotFound,
    DuplicateCode,
    PromotionError,
    UsageExceeded,
)
from .money import percent_of, to_pence, format_price
from .timestamps import as_datetime, utcnow

logger = logging.getLogger(__name__)

COLLECTION = "coupons"

DISCOUNT_TYPES = ("percentage", "fixed_amount", "free_delivery")


@dataclass(frozen=True)
class CouponApplication:
    coupon: Dict[str, Any]
    discount: int           # pence
    free_delivery: bool = False

    @property
    def code(self) -> str:
        return self.coupon["code"]


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


# ---------- pure rules ----------
def check_coupon(coupon: Optional[Dict[str, Any]],
                 subtotal: int,
                 now: Optional[datetime] = None) -> None:
    """
    Raise the first reason this coupon cannot be used on a subtotal (pence).
    Order: not found, inactive, expired, usage cap, minimum order.
    """
    now = now or utcnow()
    if not coupon:
        raise CodeNotFound("Coupon not found")
    if not coupon.get("isActive", False):
        raise CodeInactive("Coupon is no longer active")
    if coupon.get("expiresAt") and as_datetime(coupon["expiresAt"]) < now:
        raise CodeExpired("Coupon has expired")
    max_uses = coupon.get("maxUses")
    if max_uses is not None and int(coupon.get("timesUsed") or 0) >= int(max_uses):
        raise UsageExceeded("Coupon has reached maximum uses")
    minimum = coupon.get("minimumOrder")
    if minimum is not None and subtotal < to_pence(minimum):
        raise BelowMinimum(f"Minimum order of {format_price(to_pence(minimum))} required")


def coupon_discount(coupon: Dict[str, Any], subtotal: int) -> CouponApplication:
    """Discount in pence for a coupon already known to be usable."""
    kind = coupon.get("discountType")
    value = coupon.get("discountValue") or 0
    if kind == "percentage":
        discount = percent_of(subtotal, min(max(float(value), 0.0), 100.0))
    elif kind == "fixed_amount":
        discount = to_pence(value)
    elif kind == "free_delivery":
        return CouponApplication(coupon=coupon, discount=0, free_delivery=True)
    else:
        raise ValueError(f"unknown discount type {kind!r}")
    return CouponApplication(coupon=coupon, discount=min(max(discount, 0), subtotal))


# ---------- store-backed ----------
def get_coupon_by_code(code: str) -> Optional[Dict[str, Any]]:
    code = normalize_code(code)
    if not code:
        return None
    hits = get_store().query(COLLECTION, [("code", "==", code)], limit=1)
    return hits[0] if hits else None


def validate_coupon(code: str, subtotal: int, now: Optional[datetime] = None) -> CouponApplication:
    coupon = get_coupon_by_code(code)
    try:
        check_coupon(coupon, subtotal, now)
    except PromotionError as e:
        logger.warning("coupon %s rejected: %s", normalize_code(code), e)
        raise
    return coupon_discount(coupon, subtotal)


def redeem_coupon(code: str, subtotal: int, now: Optional[datetime] = None) -> CouponApplication:
    """
    Validate and count one use, atomically. Two checkouts racing for the
    last use of a capped coupon cannot both get through: the usage check and
    the increment happen inside the same store transaction.
    """
    coupon = get_coupon_by_code(code)
    if coupon is None:
        raise CodeNotFound("Coupon not found")

    def _apply(current: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        check_coupon(current, subtotal, now)
        updated = dict(current)
        updated["timesUsed"] = int(current.get("timesUsed") or 0) + 1
        updated["updatedAt"] = utcnow()
        return updated

    try:
        saved = get_store().transact(COLLECTION, coupon["id"], _apply)
    except PromotionError as e:
        logger.warning("coupon %s redemption refused: %s", coupon["code"], e)
        raise
    logger.info("coupon %s redeemed (%s/%s)", saved["code"], saved["timesUsed"],
                saved.get("maxUses") or "unlimited")
    return coupon_discount(saved, subtotal)


# ---------- admin CRUD ----------
def _clean(payload: Dict[str, Any]) -> Dict[str, Any]:
    data = dict(payload)
    if "code" in data:
        data["code"] = normalize_code(data["code"])
        if not data["code"]:
            raise ValueError("code is required")
    if "discountType" in data and data["discountType"] not in DISCOUNT_TYPES:
        raise ValueError(f"discountType must be one of {', '.join(DISCOUNT_TYPES)}")
    value = data.get("discountValue")
    if value is not None:
        if value < 0:
            raise ValueError("discountValue must be >= 0")
        if data.get("discountType") == "percentage" and value > 100:
            raise ValueError("percentage discount must be between 0 and 100")
    return data


def list_coupons(active: Optional[bool] = None) -> List[Dict[str, Any]]:
    filters = [("isActive", "==", bool(active))] if active is not None else []
    out = get_store().query(COLLECTION, filters)
    out.sort(key=lambda c: as_datetime(c.get("createdAt")), reverse=True)
    return out


def get_coupon(coupon_id: str) -> Optional[Dict[str, Any]]:
    return get_store().get(COLLECTION, coupon_id)


def create_coupon(payload: Dict[str, Any]) -> Dict[str, Any]:
    data = _clean(payload)
    if not data.get("code"):
        raise ValueError("code is required")
    if get_coupon_by_code(data["code"]):
        raise DuplicateCode(f"Coupon code {data['code']} already exists")
    data.update({"timesUsed": 0, "createdAt": utcnow()})
    data.setdefault("isActive", True)
    saved = get_store().add(COLLECTION, data)
    logger.info("coupon created: %s", saved["code"])
    return saved


def update_coupon(coupon_id: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    store = get_store()
    current = store.get(COLLECTION, coupon_id)
    if current is None:
        return None
    data = _clean(payload)
    # range checks apply to the record as it will be stored
    _clean({
        "discountType": payload.get("discountType", current.get("discountType")),
        "discountValue": payload.get("discountValue", current.get("discountValue")),
    })
    data.pop("timesUsed", None)  # only redemption moves the counter
    if "code" in data and data["code"] != current.get("code"):
        other = get_coupon_by_code(data["code"])
        if other and other["id"] != coupon_id:
            raise DuplicateCode(f"Coupon code {data['code']} already exists")
    data["updatedAt"] = utcnow()
    return store.set(COLLECTION, coupon_id, data, merge=True)


def delete_coupon(coupon_id: str) -> None:
    get_store().delete(COLLECTION, coupon_id)
    logger.info("coupon deleted: %s", coupon_id)
