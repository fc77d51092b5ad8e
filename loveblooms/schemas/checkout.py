# loveblooms/schemas/checkout.py
from typing import List, Optional
from pydantic import BaseModel, Field

from .orders import Address

class CheckoutLineIn(BaseModel):
    productId: str
    variantId: Optional[str] = None
    quantity: int = Field(1, ge=1)
    giftMessage: Optional[str] = Field(None, max_length=500)

class CheckoutIn(BaseModel):
    items: List[CheckoutLineIn]
    couponCode: Optional[str] = None
    giftCardCode: Optional[str] = None
    billingName: str = Field(..., min_length=1)
    billingEmail: str = Field(..., min_length=3)
    billingPhone: Optional[str] = None
    recipientName: str = Field(..., min_length=1)
    recipientPhone: Optional[str] = None
    deliveryAddress: Address
    deliveryType: str = "next_day"           # same_day | next_day | scheduled
    deliveryDate: Optional[str] = None
    deliveryInstructions: Optional[str] = None

class CheckoutOut(BaseModel):
    orderId: str
    orderNumber: str
    subtotal: float
    deliveryFee: float
    discountAmount: float
    total: float
    giftCardAmount: float
    amountDue: float
    paymentStatus: str
    # present only when something is left to pay
    sessionId: Optional[str] = None
    checkoutUrl: Optional[str] = None
