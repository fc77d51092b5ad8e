# loveblooms/errors.py
"""Domain errors. Services raise these; routes turn them into HTTP responses."""
from __future__ import annotations

from typing import Any, Dict


class ShopError(Exception):
    reason = "error"
    status_code = 400

    def __init__(self, message: str = ""):
        super().__init__(message or self.reason.replace("_", " "))
        self.message = str(self.args[0])

    def to_detail(self) -> Dict[str, Any]:
        return {"reason": self.reason, "message": self.message}


# ---------- promotions ----------
class PromotionError(ShopError):
    pass


class CodeNotFound(PromotionError):
    reason = "not_found"
    status_code = 404


class CodeInactive(PromotionError):
    reason = "inactive"


class CodeExpired(PromotionError):
    reason = "expired"


class UsageExceeded(PromotionError):
    reason = "usage_exceeded"
    status_code = 409


class BelowMinimum(PromotionError):
    reason = "below_minimum"


class NoBalance(PromotionError):
    reason = "no_balance"


# ---------- cart ----------
class CartError(ShopError):
    pass


class InvalidQuantity(CartError):
    reason = "invalid_quantity"


class ProductUnavailable(CartError):
    reason = "product_unavailable"


# ---------- orders / collaborators ----------
class OrderNotFound(ShopError):
    reason = "order_not_found"
    status_code = 404


class PaymentsNotConfigured(ShopError):
    reason = "payments_not_configured"
    status_code = 503


class PaymentGatewayError(ShopError):
    reason = "payment_gateway_error"
    status_code = 502


class AIError(ShopError):
    reason = "ai_error"
    status_code = 502


class DuplicateCode(ShopError):
    reason = "duplicate_code"
    status_code = 409
