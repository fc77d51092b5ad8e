# loveblooms/services/checkout.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..errors import PaymentGatewayError, PaymentsNotConfigured, ProductUnavailable
from ..schemas.checkout import CheckoutIn, CheckoutLineIn
from ..settings import settings
from . import coupons, gift_cards, payments
from . import orders as order_service
from .cart import Cart
from .delivery import zone_for_postcode
from .money import to_pounds
from .products import get_products_map
from .timestamps import utcnow

logger = logging.getLogger(__name__)

DELIVERY_TYPES = ("same_day", "next_day", "scheduled")


def price_cart(lines: List[CheckoutLineIn]) -> Cart:
    """
    Build a cart from catalog prices, never from prices the client sent.
    """
    products = get_products_map([l.productId for l in lines])
    cart = Cart()
    for l in lines:
        product = products.get(l.productId)
        if product is None:
            raise ProductUnavailable(f"product {l.productId} is no longer available")
        variant = None
        if l.variantId:
            variant = product.find_variant(l.variantId)
            if variant is None:
                raise ProductUnavailable(f"{product.name} has no option {l.variantId}")
        cart.add_item(product, variant, l.quantity, l.giftMessage)
    return cart


def place_order(body: CheckoutIn, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Checkout: price, apply one promotion, persist the order, then hand the
    amount still due to Stripe. Promotions are only validated here and are
    redeemed when the payment webhook arrives, so an abandoned payment
    costs the coupon and the card nothing. An order with nothing left to
    pay redeems on the spot and settles without Stripe.
    """
    now = now or utcnow()
    if not body.items:
        raise ValueError("Cart is empty")
    if body.couponCode and body.giftCardCode:
        raise ValueError("A coupon and a gift card cannot be used on the same order")
    if body.deliveryType not in DELIVERY_TYPES:
        raise ValueError(f"deliveryType must be one of {', '.join(DELIVERY_TYPES)}")
    if not settings.stripe_secret_key:
        raise PaymentsNotConfigured("Payments not configured")

    cart = price_cart(body.items)
    policy = zone_for_postcode(body.deliveryAddress.postcode)
    if body.deliveryType == "same_day" and not policy.same_day_available:
        raise ValueError(f"Same day delivery is not available in {policy.name}")

    coupon_code = None
    if body.couponCode:
        applied = coupons.validate_coupon(body.couponCode, cart.subtotal, now)
        cart.apply_coupon(applied.code, applied.discount, applied.free_delivery)
        coupon_code = applied.code

    totals = cart.quote(policy)

    gift_code, gift_amount = None, 0
    if body.giftCardCode and totals.total > 0:
        card = gift_cards.validate_gift_card(body.giftCardCode, now)
        gift_code = card["code"]
        gift_amount = min(gift_cards.balance_of(card), totals.total)

    settle_now = totals.total - gift_amount <= 0
    if settle_now:
        if coupon_code:
            coupons.redeem_coupon(coupon_code, cart.subtotal, now)
        if gift_code:
            # a concurrent spend can leave less than was validated; Stripe collects the rest
            gift_amount = gift_cards.redeem_gift_card(gift_code, gift_amount, now).deducted

    details = body.model_dump(include={
        "billingName", "billingEmail", "billingPhone", "recipientName",
        "recipientPhone", "deliveryType", "deliveryDate", "deliveryInstructions",
    })
    details["deliveryAddress"] = body.deliveryAddress.model_dump()
    order = order_service.create_order(order_service.build_order(
        cart, totals, details,
        coupon_code=coupon_code,
        gift_card_code=gift_code,
        gift_card_amount=gift_amount,
        promotions_redeemed=settle_now,
        now=now,
    ))

    amount_due = totals.total - gift_amount
    result = {
        "orderId": order["id"],
        "orderNumber": order["orderNumber"],
        "subtotal": to_pounds(totals.subtotal),
        "deliveryFee": to_pounds(totals.delivery_fee),
        "discountAmount": to_pounds(totals.discount),
        "total": to_pounds(totals.total),
        "giftCardAmount": to_pounds(gift_amount),
        "amountDue": to_pounds(amount_due),
    }

    if amount_due <= 0:
        order = payments.mark_order_paid(order["id"], actor="gift_card" if gift_code else "checkout")
        return {**result, "paymentStatus": order["paymentStatus"]}

    site = settings.site_url.rstrip("/")
    try:
        session = payments.create_checkout_session(
            order, amount_due,
            success_url=f"{site}/checkout/success",
            cancel_url=f"{site}/checkout/cancel",
        )
    except PaymentGatewayError:
        # a card that ran short at settle time stays charged; nothing else was redeemed
        order_service.set_payment_status(order["id"], "failed", actor="checkout",
                                         note="payment session could not be created")
        raise
    order_service.attach_payment_session(order["id"], session["id"])
    return {
        **result,
        "paymentStatus": "unpaid",
        "sessionId": session["id"],
        "checkoutUrl": session["url"],
    }
