# loveblooms/services/delivery.py
"""
Delivery zone policies and the order total calculator.

compute_total() is the single place a charge amount is worked out; the cart
quote, checkout and the order record all go through it.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..db import get_store
from ..settings import settings
from .money import to_pence, to_pounds

logger = logging.getLogger(__name__)

COLLECTION = "delivery_zones"

_OUTWARD_LETTERS = re.compile(r"^[A-Z]+")


@dataclass(frozen=True)
class DeliveryZonePolicy:
    name: str
    delivery_fee: int                      # pence
    free_delivery_threshold: Optional[int]  # pence; None disables free delivery
    postcodes: tuple = ()
    same_day_available: bool = False
    next_day_available: bool = True
    same_day_cutoff: Optional[str] = None
    is_active: bool = True
    id: Optional[str] = None

    @classmethod
    def default(cls) -> "DeliveryZonePolicy":
        return cls(
            name="Standard UK",
            delivery_fee=to_pence(settings.default_delivery_fee),
            free_delivery_threshold=to_pence(settings.free_delivery_threshold),
        )

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "DeliveryZonePolicy":
        """
        A zone without freeDeliveryThreshold gets the shop default. An explicit
        null means the zone never delivers free on order value alone.
        """
        if "freeDeliveryThreshold" in doc:
            threshold = doc["freeDeliveryThreshold"]
            threshold = to_pence(threshold) if threshold is not None else None
        else:
            threshold = to_pence(settings.free_delivery_threshold)
        return cls(
            id=doc.get("id"),
            name=doc.get("name") or "Zone",
            delivery_fee=to_pence(doc.get("deliveryFee") or 0),
            free_delivery_threshold=threshold,
            postcodes=tuple(p.strip().upper() for p in doc.get("postcodes") or [] if p.strip()),
            same_day_available=bool(doc.get("sameDayAvailable", False)),
            next_day_available=bool(doc.get("nextDayAvailable", True)),
            same_day_cutoff=doc.get("sameDayCutoff"),
            is_active=bool(doc.get("isActive", True)),
        )

    def to_doc(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "postcodes": list(self.postcodes),
            "deliveryFee": to_pounds(self.delivery_fee),
            "freeDeliveryThreshold": (
                to_pounds(self.free_delivery_threshold)
                if self.free_delivery_threshold is not None else None
            ),
            "sameDayAvailable": self.same_day_available,
            "nextDayAvailable": self.next_day_available,
            "sameDayCutoff": self.same_day_cutoff,
            "isActive": self.is_active,
        }


@dataclass(frozen=True)
class TotalBreakdown:
    subtotal: int
    delivery_fee: int
    discount: int
    total: int
    free_delivery_applied: bool = False
    zone: str = field(default="")

    def as_pounds(self) -> Dict[str, Any]:
        return {
            "subtotal": to_pounds(self.subtotal),
            "deliveryFee": to_pounds(self.delivery_fee),
            "discountAmount": to_pounds(self.discount),
            "total": to_pounds(self.total),
            "freeDelivery": self.free_delivery_applied,
            "zone": self.zone,
        }


def compute_total(subtotal: int,
                  policy: Optional[DeliveryZonePolicy] = None,
                  discount: int = 0,
                  free_delivery: bool = False) -> TotalBreakdown:
    """
    total = subtotal + delivery fee - discount, all in pence.
    Delivery is free when a free_delivery promotion applies or the subtotal
    reaches the zone threshold. Discount is clamped to [0, subtotal] and the
    total never drops below zero.
    """
    policy = policy or DeliveryZonePolicy.default()
    subtotal = max(0, int(subtotal))
    discount = min(max(0, int(discount)), subtotal)

    threshold_met = (
        policy.free_delivery_threshold is not None
        and subtotal >= policy.free_delivery_threshold
    )
    waived = free_delivery or threshold_met
    fee = 0 if waived else max(0, policy.delivery_fee)

    total = max(0, subtotal + fee - discount)
    return TotalBreakdown(
        subtotal=subtotal,
        delivery_fee=fee,
        discount=discount,
        total=total,
        free_delivery_applied=waived,
        zone=policy.name,
    )


def amount_to_free_delivery(subtotal: int, policy: Optional[DeliveryZonePolicy] = None) -> int:
    """How much more the customer must add before delivery becomes free."""
    policy = policy or DeliveryZonePolicy.default()
    if policy.free_delivery_threshold is None:
        return 0
    return max(0, policy.free_delivery_threshold - subtotal)


# ---------- zone lookup ----------
def _outward_prefix(postcode: str) -> str:
    cleaned = (postcode or "").strip().upper().replace(" ", "")
    m = _OUTWARD_LETTERS.match(cleaned)
    return m.group(0) if m else ""


def resolve_zone(zones: List[DeliveryZonePolicy], postcode: Optional[str]) -> DeliveryZonePolicy:
    """
    Match the postcode area ("SW1A 1AA" -> "SW") against the zones' prefix
    lists. Inactive zones are skipped; no match means the default policy.
    """
    area = _outward_prefix(postcode or "")
    if area:
        for zone in zones:
            if zone.is_active and area in zone.postcodes:
                return zone
    return DeliveryZonePolicy.default()


# ---------- persistence ----------
def list_zones(active: Optional[bool] = None) -> List[DeliveryZonePolicy]:
    filters = [("isActive", "==", bool(active))] if active is not None else []
    docs = get_store().query(COLLECTION, filters)
    zones = [DeliveryZonePolicy.from_doc(d) for d in docs]
    zones.sort(key=lambda z: z.name.lower())
    return zones


def zone_for_postcode(postcode: Optional[str]) -> DeliveryZonePolicy:
    return resolve_zone(list_zones(active=True), postcode)


def create_zone(payload: Dict[str, Any]) -> DeliveryZonePolicy:
    if not (payload.get("name") or "").strip():
        raise ValueError("name is required")
    if not payload.get("postcodes"):
        raise ValueError("at least one postcode prefix is required")
    zone = DeliveryZonePolicy.from_doc(payload)
    saved = get_store().add(COLLECTION, zone.to_doc())
    logger.info("delivery zone created: %s", zone.name)
    return DeliveryZonePolicy.from_doc(saved)


def update_zone(zone_id: str, payload: Dict[str, Any]) -> Optional[DeliveryZonePolicy]:
    store = get_store()
    if store.get(COLLECTION, zone_id) is None:
        return None
    patch = dict(payload)
    if "postcodes" in patch:
        patch["postcodes"] = [p.strip().upper() for p in patch["postcodes"] if p.strip()]
    saved = store.set(COLLECTION, zone_id, patch, merge=True)
    return DeliveryZonePolicy.from_doc(saved)


def delete_zone(zone_id: str) -> None:
    get_store().delete(COLLECTION, zone_id)
