# loveblooms/schemas/promotions.py
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

# ---------- coupons ----------
class CouponIn(BaseModel):
    code: str = Field(..., min_length=1, max_length=40)
    description: str = ""
    discountType: str                         # percentage | fixed_amount | free_delivery
    discountValue: float = Field(0, ge=0)
    minimumOrder: Optional[float] = Field(None, ge=0)
    maxUses: Optional[int] = Field(None, ge=1)
    startsAt: Optional[datetime] = None
    expiresAt: Optional[datetime] = None
    isActive: bool = True

class CouponPatch(BaseModel):
    code: Optional[str] = Field(None, min_length=1, max_length=40)
    description: Optional[str] = None
    discountType: Optional[str] = None
    discountValue: Optional[float] = Field(None, ge=0)
    minimumOrder: Optional[float] = Field(None, ge=0)
    maxUses: Optional[int] = Field(None, ge=1)
    startsAt: Optional[datetime] = None
    expiresAt: Optional[datetime] = None
    isActive: Optional[bool] = None

class CouponOut(CouponIn):
    id: str
    timesUsed: int = 0
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

class CouponValidateIn(BaseModel):
    code: str
    subtotal: float = Field(..., ge=0)

class CouponValidateOut(BaseModel):
    valid: bool
    code: Optional[str] = None
    discountType: Optional[str] = None
    discountAmount: float = 0.0
    freeDelivery: bool = False
    reason: Optional[str] = None
    message: Optional[str] = None

# ---------- gift cards ----------
class GiftCardIssueIn(BaseModel):
    initialBalance: float = Field(..., gt=0)
    recipientName: str = ""
    recipientEmail: str = ""
    senderName: str = ""
    message: str = Field("", max_length=500)
    expiresAt: Optional[datetime] = None

class GiftCardOut(BaseModel):
    id: str
    code: str
    initialBalance: float
    currentBalance: float
    recipientName: str = ""
    recipientEmail: str = ""
    senderName: str = ""
    message: str = ""
    isActive: bool = True
    expiresAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

class GiftCardToggleIn(BaseModel):
    isActive: bool

class GiftCardValidateIn(BaseModel):
    code: str

class GiftCardValidateOut(BaseModel):
    valid: bool
    code: Optional[str] = None
    balance: float = 0.0
    reason: Optional[str] = None
    message: Optional[str] = None

class GiftCardRedeemIn(BaseModel):
    code: str
    amount: float = Field(..., gt=0)

class GiftCardRedeemOut(BaseModel):
    code: str
    deducted: float
    remainingBalance: float
    shortfall: float
