# loveblooms/services/gift_cards.py
from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..db import get_store
from ..errors import CodeExpired, CodeInactive, CodeNotFound, NoBalance, PromotionError
from .money import to_pence, to_pounds
from .timestamps import as_datetime, utcnow

logger = logging.getLogger(__name__)

COLLECTION = "gift_cards"

# no 0/O, 1/I: codes get read out over the phone
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


@dataclass(frozen=True)
class GiftCardRedemption:
    code: str
    deducted: int           # pence
    remaining_balance: int  # pence
    shortfall: int          # pence the caller still has to collect elsewhere


def generate_code() -> str:
    def segment() -> str:
        return "".join(secrets.choice(CODE_ALPHABET) for _ in range(4))
    return f"LB-{segment()}-{segment()}"


def balance_of(card: Dict[str, Any]) -> int:
    return to_pence(card.get("currentBalance") or 0)


def check_gift_card(card: Optional[Dict[str, Any]], now: Optional[datetime] = None) -> None:
    now = now or utcnow()
    if not card:
        raise CodeNotFound("Gift card not found")
    if not card.get("isActive", False):
        raise CodeInactive("Gift card is no longer active")
    if card.get("expiresAt") and as_datetime(card["expiresAt"]) < now:
        raise CodeExpired("Gift card has expired")
    if balance_of(card) <= 0:
        raise NoBalance("Gift card has no remaining balance")


def get_gift_card_by_code(code: str) -> Optional[Dict[str, Any]]:
    code = (code or "").strip().upper()
    if not code:
        return None
    hits = get_store().query(COLLECTION, [("code", "==", code)], limit=1)
    return hits[0] if hits else None


def validate_gift_card(code: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    card = get_gift_card_by_code(code)
    try:
        check_gift_card(card, now)
    except PromotionError as e:
        logger.warning("gift card %s rejected: %s", (code or "").strip().upper(), e)
        raise
    return card


def redeem_gift_card(code: str, amount: int, now: Optional[datetime] = None) -> GiftCardRedemption:
    """
    Take up to `amount` pence off the card. The balance read, the
    min(amount, balance) deduction and the write are one transaction, so
    concurrent redemptions never push the balance below zero.
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValueError("amount must be a positive number of pence")

    card = get_gift_card_by_code(code)
    if card is None:
        raise CodeNotFound("Gift card not found")

    taken: Dict[str, int] = {}

    def _apply(current: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        check_gift_card(current, now)
        balance = balance_of(current)
        deduction = min(amount, balance)
        taken["deducted"] = deduction
        updated = dict(current)
        updated["currentBalance"] = to_pounds(balance - deduction)
        updated["updatedAt"] = utcnow()
        return updated

    try:
        saved = get_store().transact(COLLECTION, card["id"], _apply)
    except PromotionError as e:
        logger.warning("gift card %s redemption refused: %s", card["code"], e)
        raise

    deducted = taken["deducted"]
    remaining = balance_of(saved)
    logger.info("gift card %s redeemed %sp, %sp left", saved["code"], deducted, remaining)
    return GiftCardRedemption(
        code=saved["code"],
        deducted=deducted,
        remaining_balance=remaining,
        shortfall=amount - deducted,
    )


# ---------- admin ----------
def list_gift_cards() -> List[Dict[str, Any]]:
    out = get_store().query(COLLECTION)
    out.sort(key=lambda c: as_datetime(c.get("createdAt")), reverse=True)
    return out


def issue_gift_card(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Create a card with a fresh code; the initial balance never changes afterwards."""
    initial = to_pence(payload.get("initialBalance") or 0)
    if initial <= 0:
        raise ValueError("initialBalance must be greater than 0")

    code = generate_code()
    while get_gift_card_by_code(code) is not None:
        code = generate_code()

    now = utcnow()
    data = {
        "code": code,
        "initialBalance": to_pounds(initial),
        "currentBalance": to_pounds(initial),
        "recipientName": payload.get("recipientName") or "",
        "recipientEmail": payload.get("recipientEmail") or "",
        "senderName": payload.get("senderName") or "",
        "message": payload.get("message") or "",
        "isActive": bool(payload.get("isActive", True)),
        "expiresAt": payload.get("expiresAt"),
        "createdAt": now,
        "updatedAt": now,
    }
    saved = get_store().add(COLLECTION, data)
    logger.info("gift card %s issued for %s", code, data["initialBalance"])
    return saved


def set_gift_card_active(card_id: str, is_active: bool) -> Optional[Dict[str, Any]]:
    store = get_store()
    if store.get(COLLECTION, card_id) is None:
        return None
    saved = store.set(COLLECTION, card_id, {"isActive": bool(is_active), "updatedAt": utcnow()}, merge=True)
    logger.info("gift card %s %s", saved["code"], "enabled" if is_active else "disabled")
    return saved
