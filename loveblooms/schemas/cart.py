# loveblooms/schemas/cart.py
from typing import List, Optional
from pydantic import BaseModel, Field

class CartItemIn(BaseModel):
    productId: str
    variantId: Optional[str] = None
    quantity: int = 1
    giftMessage: Optional[str] = Field(None, max_length=500)

class CartItemUpdate(BaseModel):
    productId: str
    variantId: Optional[str] = None
    # send exactly one of delta / quantity
    delta: Optional[int] = None
    quantity: Optional[int] = None
    giftMessage: Optional[str] = Field(None, max_length=500)

class CartItemRef(BaseModel):
    productId: str
    variantId: Optional[str] = None

class CouponIn(BaseModel):
    code: str = Field(..., min_length=1)

class DeliveryIn(BaseModel):
    postcode: str = Field(..., min_length=2)
    deliveryType: Optional[str] = None
    deliveryDate: Optional[str] = None

class CartLineOut(BaseModel):
    productId: str
    variantId: Optional[str] = None
    variantName: Optional[str] = None
    name: str
    slug: str = ""
    imageUrl: str = ""
    unitPrice: float
    quantity: int
    lineTotal: float
    giftMessage: Optional[str] = None

class CartOut(BaseModel):
    sessionId: str
    items: List[CartLineOut] = []
    itemCount: int = 0
    subtotal: float = 0.0
    discountAmount: float = 0.0
    total: float = 0.0
    couponCode: Optional[str] = None
    freeDelivery: bool = False
    deliveryType: Optional[str] = None
    deliveryDate: Optional[str] = None
    deliveryPostcode: str = ""
    deliveryFee: float = 0.0
    # set when a previously applied coupon no longer qualifies
    couponError: Optional[dict] = None

class QuoteOut(BaseModel):
    subtotal: float
    deliveryFee: float
    discountAmount: float
    total: float
    freeDelivery: bool
    zone: str
    amountToFreeDelivery: float
    sameDayAvailable: bool
    couponCode: Optional[str] = None
    couponError: Optional[dict] = None
