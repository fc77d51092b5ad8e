# loveblooms/routes/cart.py
from __future__ import annotations
from typing import Any, Dict, Optional
from fastapi import APIRouter, HTTPException, Query

from ..errors import PromotionError, ShopError
from ..schemas.cart import (
    CartItemIn,
    CartItemRef,
    CartItemUpdate,
    CartOut,
    CouponIn,
    DeliveryIn,
    QuoteOut,
)
from ..services.cart import Cart, delete_cart, load_cart, save_cart
from ..services.coupons import validate_coupon
from ..services.delivery import amount_to_free_delivery, zone_for_postcode
from ..services.money import to_pounds
from ..services.products import get_product
from .deps import http_error

router = APIRouter(prefix="/cart", tags=["cart"])


# ---- Helpers -----------------------------------------------------------------
def _refresh_coupon(cart: Cart) -> Optional[Dict[str, Any]]:
    """Re-price the applied coupon on the current subtotal; drop it if it stopped qualifying."""
    if not cart.coupon_code:
        return None
    try:
        applied = validate_coupon(cart.coupon_code, cart.subtotal)
    except PromotionError as e:
        cart.remove_coupon()
        return e.to_detail()
    cart.apply_coupon(applied.code, applied.discount, applied.free_delivery)
    return None


def _out(session_id: str, cart: Cart, coupon_error: Optional[Dict[str, Any]] = None) -> CartOut:
    return CartOut(
        sessionId=session_id,
        items=[
            {
                "productId": i.product_id,
                "variantId": i.variant_id,
                "variantName": i.variant_name,
                "name": i.name,
                "slug": i.slug,
                "imageUrl": i.image_url,
                "unitPrice": to_pounds(i.unit_price),
                "quantity": i.quantity,
                "lineTotal": to_pounds(i.line_total),
                "giftMessage": i.gift_message,
            }
            for i in cart.items
        ],
        itemCount=cart.item_count,
        subtotal=to_pounds(cart.subtotal),
        discountAmount=to_pounds(cart.discount_amount),
        total=to_pounds(cart.total),
        couponCode=cart.coupon_code,
        freeDelivery=cart.free_delivery,
        deliveryType=cart.delivery_type,
        deliveryDate=cart.delivery_date,
        deliveryPostcode=cart.delivery_postcode,
        deliveryFee=to_pounds(cart.delivery_fee),
        couponError=coupon_error,
    )


def _commit(session_id: str, cart: Cart) -> CartOut:
    coupon_error = _refresh_coupon(cart)
    save_cart(session_id, cart)
    return _out(session_id, cart, coupon_error)


# ---- Routes ------------------------------------------------------------------
@router.get("/{session_id}", response_model=CartOut)
def get_cart(session_id: str):
    return _out(session_id, load_cart(session_id))

@router.post("/{session_id}/items", response_model=CartOut)
def add_item(session_id: str, body: CartItemIn):
    product = get_product(body.productId)
    if product is None:
        raise HTTPException(status_code=404, detail="product not found")
    variant = None
    if body.variantId:
        variant = product.find_variant(body.variantId)
        if variant is None:
            raise HTTPException(status_code=404, detail="variant not found")

    cart = load_cart(session_id)
    try:
        cart.add_item(product, variant, body.quantity, body.giftMessage)
    except ShopError as e:
        raise http_error(e)
    return _commit(session_id, cart)

@router.patch("/{session_id}/items", response_model=CartOut)
def update_item(session_id: str, body: CartItemUpdate):
    if (body.delta is None) == (body.quantity is None) and body.giftMessage is None:
        raise HTTPException(status_code=400, detail="send either delta or quantity")
    cart = load_cart(session_id)
    try:
        if body.delta is not None:
            cart.update_quantity(body.productId, body.delta, body.variantId)
        elif body.quantity is not None:
            cart.set_quantity(body.productId, body.quantity, body.variantId)
    except ShopError as e:
        raise http_error(e)
    if body.giftMessage is not None:
        cart.set_gift_message(body.productId, body.giftMessage, body.variantId)
    return _commit(session_id, cart)

@router.delete("/{session_id}/items", response_model=CartOut)
def remove_item(session_id: str, body: CartItemRef):
    cart = load_cart(session_id)
    cart.remove_item(body.productId, body.variantId)
    return _commit(session_id, cart)

@router.post("/{session_id}/coupon", response_model=CartOut)
def apply_coupon(session_id: str, body: CouponIn):
    cart = load_cart(session_id)
    try:
        applied = validate_coupon(body.code, cart.subtotal)
    except ShopError as e:
        raise http_error(e)
    cart.apply_coupon(applied.code, applied.discount, applied.free_delivery)
    save_cart(session_id, cart)
    return _out(session_id, cart)

@router.delete("/{session_id}/coupon", response_model=CartOut)
def remove_coupon(session_id: str):
    cart = load_cart(session_id)
    cart.remove_coupon()
    save_cart(session_id, cart)
    return _out(session_id, cart)

@router.put("/{session_id}/delivery", response_model=CartOut)
def set_delivery(session_id: str, body: DeliveryIn):
    cart = load_cart(session_id)
    policy = zone_for_postcode(body.postcode)
    if body.deliveryType == "same_day" and not policy.same_day_available:
        raise HTTPException(status_code=400, detail=f"Same day delivery is not available in {policy.name}")
    coupon_error = _refresh_coupon(cart)
    cart.set_delivery(body.deliveryDate, body.deliveryType, body.postcode,
                      cart.quote(policy).delivery_fee)
    save_cart(session_id, cart)
    return _out(session_id, cart, coupon_error)

@router.delete("/{session_id}")
def clear_cart(session_id: str):
    delete_cart(session_id)
    return {"ok": True}

@router.get("/{session_id}/quote", response_model=QuoteOut)
def quote(session_id: str, postcode: Optional[str] = Query(None)):
    cart = load_cart(session_id)
    coupon_error = _refresh_coupon(cart)
    save_cart(session_id, cart)

    policy = zone_for_postcode(postcode or cart.delivery_postcode)
    totals = cart.quote(policy)
    return QuoteOut(
        **totals.as_pounds(),
        amountToFreeDelivery=to_pounds(amount_to_free_delivery(cart.subtotal, policy)),
        sameDayAvailable=policy.same_day_available,
        couponCode=cart.coupon_code,
        couponError=coupon_error,
    )
