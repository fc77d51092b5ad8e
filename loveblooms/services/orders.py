# loveblooms/services/orders.py
from __future__ import annotations

import csv
import io
import logging
import math
import secrets
import string
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..db import get_store
from ..errors import OrderNotFound
from .cart import Cart
from .delivery import TotalBreakdown
from .money import to_pounds
from .timestamps import as_datetime, utcnow

logger = logging.getLogger(__name__)

COLLECTION = "orders"

ORDER_STATUSES = (
    "pending",
    "confirmed",
    "preparing",
    "out_for_delivery",
    "delivered",
    "cancelled",
)
TERMINAL_STATUSES = frozenset({"delivered", "cancelled"})
PAYMENT_STATUSES = ("unpaid", "paid", "refunded", "failed")

STATUS_LABELS = {
    "pending": "Pending",
    "confirmed": "Confirmed",
    "preparing": "Preparing",
    "out_for_delivery": "Out for Delivery",
    "delivered": "Delivered",
    "cancelled": "Cancelled",
}


def generate_order_number(now: Optional[datetime] = None) -> str:
    """LB-YYMMDD-XXXX"""
    now = now or utcnow()
    rand = "".join(secrets.choice(string.ascii_uppercase + string.digits) for _ in range(4))
    return f"LB-{now:%y%m%d}-{rand}"


def snapshot_items(cart: Cart) -> List[Dict[str, Any]]:
    """Freeze cart lines into order lines; later catalog edits never reach these."""
    return [
        {
            "productId": i.product_id,
            "variantId": i.variant_id,
            "productName": i.name,
            "productImage": i.image_url,
            "variantName": i.variant_name,
            "quantity": i.quantity,
            "unitPrice": to_pounds(i.unit_price),
            "totalPrice": to_pounds(i.line_total),
            "giftMessage": i.gift_message,
        }
        for i in cart.items
    ]


def build_order(cart: Cart,
                totals: TotalBreakdown,
                details: Dict[str, Any],
                coupon_code: Optional[str] = None,
                gift_card_code: Optional[str] = None,
                gift_card_amount: int = 0,
                promotions_redeemed: bool = False,
                now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Assemble the order document. Money fields are pounds (2dp) derived from
    the pence breakdown, so total == subtotal + deliveryFee - discountAmount
    holds exactly.

    couponCode and giftCardAmount are what the customer was quoted. Unless
    promotions_redeemed is set they are only counted against the coupon and
    the card once the order is paid.
    """
    now = now or utcnow()
    amount_due = max(0, totals.total - gift_card_amount)
    return {
        "orderNumber": generate_order_number(now),
        "status": "pending",
        "paymentStatus": "unpaid",
        "items": snapshot_items(cart),
        "subtotal": to_pounds(totals.subtotal),
        "deliveryFee": to_pounds(totals.delivery_fee),
        "discountAmount": to_pounds(totals.discount),
        "total": to_pounds(totals.total),
        "couponCode": coupon_code,
        "giftCardCode": gift_card_code,
        "giftCardAmount": to_pounds(gift_card_amount),
        "amountDue": to_pounds(amount_due),
        "promotionsRedeemed": bool(promotions_redeemed),
        "giftCardShortfall": 0.0,
        "deliveryZone": totals.zone,
        "deliveryType": details.get("deliveryType") or "next_day",
        "deliveryDate": details.get("deliveryDate") or "",
        "billingName": details.get("billingName") or "",
        "billingEmail": (details.get("billingEmail") or "").strip().lower(),
        "billingPhone": details.get("billingPhone"),
        "recipientName": details.get("recipientName") or "",
        "recipientPhone": details.get("recipientPhone"),
        "deliveryAddress": details.get("deliveryAddress") or {},
        "deliveryInstructions": details.get("deliveryInstructions"),
        "loyaltyPointsEarned": math.floor(totals.total / 100),
        "stripeSessionId": None,
        "statusHistory": [],
        "adminNotes": [],
        "createdAt": now,
        "updatedAt": now,
    }


# ---------- persistence ----------
def create_order(data: Dict[str, Any]) -> Dict[str, Any]:
    saved = get_store().add(COLLECTION, data)
    logger.info("order %s created (total %s)", saved["orderNumber"], saved["total"])
    return saved


def get_order(order_id: str) -> Optional[Dict[str, Any]]:
    return get_store().get(COLLECTION, order_id)


def get_order_by_number(order_number: str) -> Optional[Dict[str, Any]]:
    hits = get_store().query(COLLECTION, [("orderNumber", "==", order_number)], limit=1)
    return hits[0] if hits else None


def get_order_by_session(session_id: str) -> Optional[Dict[str, Any]]:
    if not session_id:
        return None
    hits = get_store().query(COLLECTION, [("stripeSessionId", "==", session_id)], limit=1)
    return hits[0] if hits else None


def list_orders(status: Optional[str] = None,
                email: Optional[str] = None,
                limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """Newest first. Sorting happens here so no composite index is needed."""
    filters = []
    if status:
        if status not in ORDER_STATUSES:
            raise ValueError(f"unknown status {status!r}")
        filters.append(("status", "==", status))
    if email:
        filters.append(("billingEmail", "==", email.strip().lower()))
    orders = get_store().query(COLLECTION, filters)
    orders.sort(key=lambda o: as_datetime(o.get("createdAt")), reverse=True)
    return orders[:limit] if limit else orders


def _change(order_id: str, field: str, value: str, actor: str,
            note: Optional[str] = None, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Set one status axis and append the audit entry in the same transaction."""
    changed: Dict[str, Any] = {}

    def _apply(current: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        if current is None:
            raise OrderNotFound(f"order {order_id} not found")
        previous = current.get(field)
        changed["from"] = previous
        updated = dict(current)
        if extra:
            updated.update(extra)
        if previous == value:
            return updated
        now = utcnow()
        updated[field] = value
        updated["updatedAt"] = now
        updated["statusHistory"] = list(current.get("statusHistory") or []) + [{
            "field": field,
            "from": previous,
            "to": value,
            "by": actor,
            "note": note,
            "at": now,
        }]
        return updated

    saved = get_store().transact(COLLECTION, order_id, _apply)
    if changed.get("from") != value:
        logger.info("order %s %s: %s -> %s (by %s)",
                    saved.get("orderNumber"), field, changed.get("from"), value, actor)
    return saved


def set_status(order_id: str, status: str, actor: str = "admin",
               note: Optional[str] = None) -> Dict[str, Any]:
    """
    Any status can be set from any other; staff are trusted to jump steps.
    Each real change leaves one statusHistory entry.
    """
    if status not in ORDER_STATUSES:
        raise ValueError(f"unknown status {status!r}")
    current = get_order(order_id)
    if current is not None and current.get("status") in TERMINAL_STATUSES and current["status"] != status:
        logger.warning("order %s reopened from terminal status %s",
                       current.get("orderNumber"), current["status"])
    return _change(order_id, "status", status, actor, note)


def set_payment_status(order_id: str, payment_status: str, actor: str = "admin",
                       note: Optional[str] = None,
                       extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    if payment_status not in PAYMENT_STATUSES:
        raise ValueError(f"unknown payment status {payment_status!r}")
    return _change(order_id, "paymentStatus", payment_status, actor, note, extra)


def attach_payment_session(order_id: str, session_id: str) -> Dict[str, Any]:
    return get_store().set(COLLECTION, order_id,
                           {"stripeSessionId": session_id, "updatedAt": utcnow()}, merge=True)


def claim_promotions(order_id: str) -> Optional[Dict[str, Any]]:
    """
    Flip promotionsRedeemed in one transaction. Returns the order only to the
    caller that flipped it, so a webhook delivered twice redeems once.
    """
    claimed: Dict[str, bool] = {}

    def _apply(current: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        if current is None:
            raise OrderNotFound(f"order {order_id} not found")
        updated = dict(current)
        if not current.get("promotionsRedeemed"):
            claimed["ok"] = True
            updated["promotionsRedeemed"] = True
        return updated

    saved = get_store().transact(COLLECTION, order_id, _apply)
    return saved if claimed else None


def record_promotions(order_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
    return get_store().set(COLLECTION, order_id, {**fields, "updatedAt": utcnow()}, merge=True)


def add_note(order_id: str, text: str, author: str = "admin") -> Dict[str, Any]:
    text = (text or "").strip()
    if not text:
        raise ValueError("note text is required")

    def _apply(current: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        if current is None:
            raise OrderNotFound(f"order {order_id} not found")
        updated = dict(current)
        updated["adminNotes"] = list(current.get("adminNotes") or []) + [
            {"text": text, "by": author, "at": utcnow()}
        ]
        return updated

    return get_store().transact(COLLECTION, order_id, _apply)


# ---------- export ----------
CSV_HEADERS = [
    "Order Number",
    "Date",
    "Customer Name",
    "Customer Email",
    "Items",
    "Subtotal",
    "Delivery Fee",
    "Discount",
    "Total",
    "Payment Status",
    "Order Status",
    "Delivery Type",
    "Delivery Date",
    "Delivery Postcode",
    "Coupon Code",
]


def export_orders_csv(orders: List[Dict[str, Any]]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for o in orders:
        writer.writerow([
            o.get("orderNumber", ""),
            f"{as_datetime(o.get('createdAt')):%Y-%m-%d %H:%M}",
            o.get("billingName", ""),
            o.get("billingEmail", ""),
            "; ".join(f"{i.get('productName')} x{i.get('quantity')}" for i in o.get("items") or []),
            f"{float(o.get('subtotal') or 0):.2f}",
            f"{float(o.get('deliveryFee') or 0):.2f}",
            f"{float(o.get('discountAmount') or 0):.2f}",
            f"{float(o.get('total') or 0):.2f}",
            o.get("paymentStatus", ""),
            o.get("status", ""),
            o.get("deliveryType", ""),
            o.get("deliveryDate") or "",
            (o.get("deliveryAddress") or {}).get("postcode", ""),
            o.get("couponCode") or "",
        ])
    return buf.getvalue().rstrip("\n")
