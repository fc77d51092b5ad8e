# loveblooms/services/cart.py
"""
Shopping cart as an explicit value object.

A Cart is owned by whoever holds it (a request handler, a test); there is no
process-wide cart. Persistence across requests goes through to_dict() /
from_dict() and the `carts` collection, keyed by the storefront session id.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..db import get_store
from ..errors import InvalidQuantity, ProductUnavailable
from ..schemas.products import Product, ProductVariant
from .delivery import DeliveryZonePolicy, TotalBreakdown, compute_total
from .money import to_pence
from .timestamps import utcnow

COLLECTION = "carts"

LineKey = Tuple[str, Optional[str]]


def _require_int(value: Any, what: str) -> int:
    # bool is an int subclass; True is not a quantity
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidQuantity(f"{what} must be a whole number, got {value!r}")
    return value


@dataclass
class LineItem:
    product_id: str
    name: str
    unit_price: int                 # pence, snapshotted when added
    quantity: int
    variant_id: Optional[str] = None
    variant_name: Optional[str] = None
    image_url: str = ""
    slug: str = ""
    gift_message: Optional[str] = None

    @property
    def key(self) -> LineKey:
        return (self.product_id, self.variant_id)

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity


@dataclass
class Cart:
    items: List[LineItem] = field(default_factory=list)
    coupon_code: Optional[str] = None
    free_delivery: bool = False
    delivery_date: Optional[str] = None
    delivery_type: Optional[str] = None
    delivery_postcode: str = ""
    delivery_fee: int = 0
    _discount: int = 0

    # ---------- lookups ----------
    def find(self, product_id: str, variant_id: Optional[str] = None) -> Optional[LineItem]:
        key = (product_id, variant_id or None)
        return next((i for i in self.items if i.key == key), None)

    # ---------- mutations ----------
    def add_item(self,
                 product: Product,
                 variant: Optional[ProductVariant] = None,
                 quantity: int = 1,
                 gift_message: Optional[str] = None) -> LineItem:
        quantity = _require_int(quantity, "quantity")
        if quantity < 1:
            raise InvalidQuantity("quantity must be at least 1")
        if not product.isActive or not product.inStock:
            raise ProductUnavailable(f"{product.name} is not available")
        if variant is not None and not variant.inStock:
            raise ProductUnavailable(f"{product.name} ({variant.name}) is out of stock")

        existing = self.find(product.id, variant.id if variant else None)
        if existing:
            existing.quantity += quantity
            if gift_message is not None:
                existing.gift_message = gift_message
            return existing

        unit = to_pence(product.price) + (to_pence(variant.priceModifier) if variant else 0)
        line = LineItem(
            product_id=product.id,
            variant_id=variant.id if variant else None,
            variant_name=variant.name if variant else None,
            name=product.name,
            unit_price=max(0, unit),
            quantity=quantity,
            image_url=product.primary_image(),
            slug=product.slug,
            gift_message=gift_message,
        )
        self.items.append(line)
        return line

    def update_quantity(self, product_id: str, delta: int,
                        variant_id: Optional[str] = None) -> Optional[LineItem]:
        """Add delta to a line; at zero or below the line goes away."""
        delta = _require_int(delta, "delta")
        line = self.find(product_id, variant_id)
        if line is None:
            return None
        new_qty = line.quantity + delta
        if new_qty <= 0:
            self.remove_item(product_id, variant_id)
            return None
        line.quantity = new_qty
        return line

    def set_quantity(self, product_id: str, quantity: int,
                     variant_id: Optional[str] = None) -> Optional[LineItem]:
        quantity = _require_int(quantity, "quantity")
        line = self.find(product_id, variant_id)
        if line is None:
            return None
        if quantity <= 0:
            self.remove_item(product_id, variant_id)
            return None
        line.quantity = quantity
        return line

    def remove_item(self, product_id: str, variant_id: Optional[str] = None) -> None:
        key = (product_id, variant_id or None)
        self.items = [i for i in self.items if i.key != key]

    def set_gift_message(self, product_id: str, message: Optional[str],
                         variant_id: Optional[str] = None) -> None:
        line = self.find(product_id, variant_id)
        if line is not None:
            line.gift_message = (message or "").strip() or None

    def set_delivery(self, date: Optional[str], delivery_type: Optional[str],
                     postcode: str, fee: int) -> None:
        self.delivery_date = date
        self.delivery_type = delivery_type
        self.delivery_postcode = (postcode or "").strip().upper()
        self.delivery_fee = max(0, int(fee))

    def apply_coupon(self, code: str, discount: int, free_delivery: bool = False) -> None:
        self.coupon_code = code.strip().upper()
        self._discount = max(0, int(discount))
        self.free_delivery = bool(free_delivery)

    def remove_coupon(self) -> None:
        self.coupon_code = None
        self._discount = 0
        self.free_delivery = False

    def clear(self) -> None:
        self.items = []
        self.remove_coupon()
        self.delivery_date = None
        self.delivery_type = None
        self.delivery_postcode = ""
        self.delivery_fee = 0

    # ---------- derived values ----------
    @property
    def subtotal(self) -> int:
        return sum(i.line_total for i in self.items)

    @property
    def discount_amount(self) -> int:
        return min(self._discount, self.subtotal)

    @property
    def total(self) -> int:
        """Subtotal less discount. Delivery is not included; use quote() for the charge."""
        return self.subtotal - self.discount_amount

    @property
    def item_count(self) -> int:
        return sum(i.quantity for i in self.items)

    def quote(self, policy: Optional[DeliveryZonePolicy] = None) -> TotalBreakdown:
        return compute_total(
            self.subtotal,
            policy,
            discount=self.discount_amount,
            free_delivery=self.free_delivery,
        )

    # ---------- serialization ----------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [
                {
                    "productId": i.product_id,
                    "variantId": i.variant_id,
                    "variantName": i.variant_name,
                    "name": i.name,
                    "unitPricePence": i.unit_price,
                    "quantity": i.quantity,
                    "imageUrl": i.image_url,
                    "slug": i.slug,
                    "giftMessage": i.gift_message,
                }
                for i in self.items
            ],
            "couponCode": self.coupon_code,
            "discountPence": self._discount,
            "freeDelivery": self.free_delivery,
            "deliveryDate": self.delivery_date,
            "deliveryType": self.delivery_type,
            "deliveryPostcode": self.delivery_postcode,
            "deliveryFeePence": self.delivery_fee,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Cart":
        data = data or {}
        cart = cls(
            coupon_code=data.get("couponCode"),
            free_delivery=bool(data.get("freeDelivery", False)),
            delivery_date=data.get("deliveryDate"),
            delivery_type=data.get("deliveryType"),
            delivery_postcode=data.get("deliveryPostcode") or "",
            delivery_fee=int(data.get("deliveryFeePence") or 0),
            _discount=int(data.get("discountPence") or 0),
        )
        for raw in data.get("items") or []:
            qty = int(raw.get("quantity") or 0)
            if qty <= 0:
                continue
            cart.items.append(LineItem(
                product_id=raw["productId"],
                variant_id=raw.get("variantId") or None,
                variant_name=raw.get("variantName"),
                name=raw.get("name") or "",
                unit_price=int(raw.get("unitPricePence") or 0),
                quantity=qty,
                image_url=raw.get("imageUrl") or "",
                slug=raw.get("slug") or "",
                gift_message=raw.get("giftMessage"),
            ))
        return cart


# ---------- session persistence ----------
def load_cart(session_id: str) -> Cart:
    if not session_id:
        raise ValueError("session_id required")
    return Cart.from_dict(get_store().get(COLLECTION, session_id))


def save_cart(session_id: str, cart: Cart) -> Cart:
    if not session_id:
        raise ValueError("session_id required")
    get_store().set(COLLECTION, session_id, {**cart.to_dict(), "updatedAt": utcnow()})
    return cart


def delete_cart(session_id: str) -> None:
    get_store().delete(COLLECTION, session_id)
