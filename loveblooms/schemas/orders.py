# loveblooms/schemas/orders.py
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

class Address(BaseModel):
    line1: str = ""
    line2: Optional[str] = None
    city: str = ""
    county: Optional[str] = None
    postcode: str = ""
    country: str = "GB"

class OrderItemOut(BaseModel):
    productId: str
    variantId: Optional[str] = None
    productName: str
    productImage: str = ""
    variantName: Optional[str] = None
    quantity: int
    unitPrice: float
    totalPrice: float
    giftMessage: Optional[str] = None

class HistoryEntry(BaseModel):
    field: str
    to: str
    by: str
    at: datetime
    note: Optional[str] = None
    # "from" is a keyword
    from_: Optional[str] = Field(None, alias="from")

class NoteOut(BaseModel):
    text: str
    by: str
    at: datetime

class OrderOut(BaseModel):
    id: str
    orderNumber: str
    status: str
    paymentStatus: str
    items: List[OrderItemOut]
    subtotal: float
    deliveryFee: float
    discountAmount: float
    total: float
    couponCode: Optional[str] = None
    giftCardCode: Optional[str] = None
    giftCardAmount: float = 0.0
    amountDue: float = 0.0
    giftCardShortfall: float = 0.0
    couponError: Optional[str] = None
    deliveryZone: Optional[str] = None
    deliveryType: Optional[str] = None
    deliveryDate: Optional[str] = None
    billingName: str = ""
    billingEmail: str = ""
    billingPhone: Optional[str] = None
    recipientName: str = ""
    recipientPhone: Optional[str] = None
    deliveryAddress: Dict[str, Any] = {}
    deliveryInstructions: Optional[str] = None
    loyaltyPointsEarned: int = 0
    stripeSessionId: Optional[str] = None
    statusHistory: List[HistoryEntry] = []
    adminNotes: List[NoteOut] = []
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

# what the storefront confirmation page may show: no contact details, no messages
class ConfirmationItemOut(BaseModel):
    productName: str
    variantName: Optional[str] = None
    quantity: int
    totalPrice: float

class OrderConfirmationOut(BaseModel):
    orderNumber: str
    status: str
    paymentStatus: str
    items: List[ConfirmationItemOut]
    subtotal: float
    deliveryFee: float
    discountAmount: float
    total: float
    giftCardAmount: float = 0.0
    amountDue: float = 0.0
    deliveryType: Optional[str] = None
    deliveryDate: Optional[str] = None
    createdAt: Optional[datetime] = None

class StatusUpdateIn(BaseModel):
    status: str
    note: Optional[str] = None

class PaymentStatusUpdateIn(BaseModel):
    paymentStatus: str
    note: Optional[str] = None

class NoteIn(BaseModel):
    text: str = Field(..., min_length=1, max_length=2000)
