# loveblooms/routes/gift_cards.py
from __future__ import annotations
from typing import List
from fastapi import APIRouter, Depends, HTTPException

from ..errors import PromotionError, ShopError
from ..schemas.promotions import (
    GiftCardIssueIn,
    GiftCardOut,
    GiftCardRedeemIn,
    GiftCardRedeemOut,
    GiftCardToggleIn,
    GiftCardValidateIn,
    GiftCardValidateOut,
)
from ..services import gift_cards
from ..services.money import to_pence, to_pounds
from .deps import http_error, require_admin

router = APIRouter(prefix="/gift-cards", tags=["gift-cards"])


@router.post("/validate", response_model=GiftCardValidateOut)
def validate_gift_card_endpoint(body: GiftCardValidateIn):
    try:
        card = gift_cards.validate_gift_card(body.code)
    except PromotionError as e:
        return GiftCardValidateOut(valid=False, **e.to_detail())
    return GiftCardValidateOut(valid=True, code=card["code"],
                               balance=to_pounds(gift_cards.balance_of(card)))

@router.post("/redeem", response_model=GiftCardRedeemOut)
def redeem_gift_card_endpoint(body: GiftCardRedeemIn):
    try:
        r = gift_cards.redeem_gift_card(body.code, to_pence(body.amount))
    except ShopError as e:
        raise http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return GiftCardRedeemOut(
        code=r.code,
        deducted=to_pounds(r.deducted),
        remainingBalance=to_pounds(r.remaining_balance),
        shortfall=to_pounds(r.shortfall),
    )


# ---- Admin -------------------------------------------------------------------
@router.get("", response_model=List[GiftCardOut], dependencies=[Depends(require_admin)])
def list_gift_cards_endpoint():
    return gift_cards.list_gift_cards()

@router.post("", response_model=GiftCardOut, dependencies=[Depends(require_admin)])
def issue_gift_card_endpoint(body: GiftCardIssueIn):
    try:
        return gift_cards.issue_gift_card(body.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.patch("/{card_id}", response_model=GiftCardOut, dependencies=[Depends(require_admin)])
def toggle_gift_card_endpoint(card_id: str, body: GiftCardToggleIn):
    card = gift_cards.set_gift_card_active(card_id, body.isActive)
    if card is None:
        raise HTTPException(status_code=404, detail="gift card not found")
    return card
