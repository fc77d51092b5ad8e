# loveblooms/services/payments.py
"""
Stripe is only asked to collect an amount this service already computed.
One line item for the amount due, metadata pointing back at the order.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import stripe

from ..errors import PaymentGatewayError, PaymentsNotConfigured, PromotionError
from ..settings import settings
from . import coupons, gift_cards
from . import orders as order_service
from .money import to_pence, to_pounds

logger = logging.getLogger(__name__)


def _stripe() -> None:
    if not settings.stripe_secret_key:
        raise PaymentsNotConfigured("Payments not configured")
    stripe.api_key = settings.stripe_secret_key


def create_checkout_session(order: Dict[str, Any], amount_due: int,
                            success_url: str, cancel_url: str) -> Dict[str, str]:
    """Return {"id", "url"} of a hosted checkout session for amount_due pence."""
    _stripe()
    if amount_due <= 0:
        raise ValueError("nothing to charge")

    order_id = order["id"]
    try:
        session = stripe.checkout.Session.create(
            mode="payment",
            payment_method_types=["card"],
            customer_email=order.get("billingEmail") or None,
            line_items=[{
                "quantity": 1,
                "price_data": {
                    "currency": settings.currency.lower(),
                    "unit_amount": amount_due,
                    "product_data": {"name": f"Love Blooms order {order['orderNumber']}"},
                },
            }],
            success_url=success_url + "?session_id={CHECKOUT_SESSION_ID}",
            cancel_url=cancel_url + f"?orderId={order_id}",
            client_reference_id=order_id,
            payment_intent_data={"metadata": {"orderId": order_id}},
            metadata={"orderId": order_id, "orderNumber": order["orderNumber"]},
        )
    except stripe.StripeError as e:
        logger.error("stripe session for order %s failed: %s", order["orderNumber"], e)
        raise PaymentGatewayError("Could not start payment") from e
    return {"id": session.id, "url": session.url}


def handle_stripe_webhook(raw_body: bytes, signature: Optional[str]) -> Dict[str, Any]:
    if not settings.stripe_webhook_secret:
        raise PaymentsNotConfigured("Webhook secret not configured")
    if not signature:
        raise ValueError("Missing signature")

    try:
        event = stripe.Webhook.construct_event(
            payload=raw_body, sig_header=signature, secret=settings.stripe_webhook_secret
        )
    except (ValueError, stripe.SignatureVerificationError) as e:
        logger.warning("stripe webhook rejected: %s", e)
        raise ValueError("Invalid signature") from e

    typ = event["type"]
    data = event["data"]["object"]
    if typ not in ("checkout.session.completed", "checkout.session.expired"):
        logger.info("stripe event %s ignored", typ)
        return {"received": True, "handled": False}

    order_id = data.get("client_reference_id") or (data.get("metadata") or {}).get("orderId")
    order = order_service.get_order(order_id) if order_id else None
    if order is None:
        logger.warning("stripe session %s has no known order", data.get("id"))
        return {"received": True, "handled": False}

    if typ == "checkout.session.expired":
        # nothing was redeemed for an unpaid order, so there is nothing to give back
        if order.get("paymentStatus") == "unpaid":
            order_service.set_payment_status(order_id, "failed", actor="stripe",
                                             note="checkout session expired")
        return {"received": True, "handled": True, "orderId": order_id}

    mark_order_paid(order_id, actor="stripe", payment_intent=data.get("payment_intent"))
    return {"received": True, "handled": True, "orderId": order_id}


def redeem_order_promotions(order_id: str) -> Optional[Dict[str, Any]]:
    """
    Count the coupon use or take the gift-card amount the order was quoted.
    Runs at most once per order. The customer has already paid the
    discounted price, so a promotion that no longer qualifies is recorded
    on the order instead of failing the payment.
    """
    order = order_service.claim_promotions(order_id)
    if order is None:
        return None

    fields: Dict[str, Any] = {}
    code = order.get("couponCode")
    if code:
        try:
            coupons.redeem_coupon(code, to_pence(order.get("subtotal") or 0))
        except PromotionError as e:
            logger.warning("order %s paid but coupon %s not counted: %s", order["orderNumber"], code, e)
            fields["couponError"] = e.reason

    card_code = order.get("giftCardCode")
    planned = to_pence(order.get("giftCardAmount") or 0)
    if card_code and planned > 0:
        try:
            shortfall = gift_cards.redeem_gift_card(card_code, planned).shortfall
        except PromotionError as e:
            logger.warning("order %s paid but gift card %s not charged: %s", order["orderNumber"], card_code, e)
            shortfall = planned
        if shortfall:
            logger.warning("order %s gift card short by %sp", order["orderNumber"], shortfall)
            fields["giftCardShortfall"] = to_pounds(shortfall)

    if fields:
        return order_service.record_promotions(order_id, fields)
    return order


def mark_order_paid(order_id: str, actor: str, payment_intent: Optional[str] = None) -> Dict[str, Any]:
    """Redeem promotions, then paid + confirmed. Safe to call twice: unchanged values add no history."""
    redeem_order_promotions(order_id)
    extra = {"stripePaymentIntentId": payment_intent} if payment_intent else None
    order_service.set_payment_status(order_id, "paid", actor=actor, extra=extra)
    current = order_service.get_order(order_id)
    if current and current.get("status") == "pending":
        current = order_service.set_status(order_id, "confirmed", actor=actor)
    return current
