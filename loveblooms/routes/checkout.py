# loveblooms/routes/checkout.py
from __future__ import annotations
from typing import Optional
from fastapi import APIRouter, Header, HTTPException, Request

from ..errors import ShopError
from ..schemas.checkout import CheckoutIn, CheckoutOut
from ..services.checkout import place_order
from ..services.payments import handle_stripe_webhook
from .deps import http_error

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post("", response_model=CheckoutOut)
def checkout(body: CheckoutIn):
    try:
        return place_order(body)
    except ShopError as e:
        raise http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/webhook")
async def stripe_webhook(request: Request, stripe_signature: Optional[str] = Header(None)):
    # signature verification needs the exact bytes Stripe sent
    raw = await request.body()
    try:
        return handle_stripe_webhook(raw, stripe_signature)
    except ShopError as e:
        raise http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
