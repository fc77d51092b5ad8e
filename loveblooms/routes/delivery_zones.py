# loveblooms/routes/delivery_zones.py
from __future__ import annotations
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from ..services.delivery import (
    DeliveryZonePolicy,
    create_zone,
    delete_zone,
    list_zones,
    update_zone,
    zone_for_postcode,
)
from ..services.money import to_pounds
from .deps import require_admin

router = APIRouter(prefix="/delivery-zones", tags=["delivery-zones"])


# ---- Pydantic models ---------------------------------------------------------
class ZoneIn(BaseModel):
    name: str = Field(..., min_length=1)
    postcodes: List[str] = Field(..., min_length=1)   # area prefixes: SW, EC, EH
    deliveryFee: float = Field(..., ge=0)
    freeDeliveryThreshold: Optional[float] = Field(None, ge=0)
    sameDayAvailable: bool = False
    nextDayAvailable: bool = True
    sameDayCutoff: Optional[str] = None      # "14:00"
    isActive: bool = True

class ZonePatch(BaseModel):
    name: Optional[str] = None
    postcodes: Optional[List[str]] = None
    deliveryFee: Optional[float] = Field(None, ge=0)
    freeDeliveryThreshold: Optional[float] = Field(None, ge=0)
    sameDayAvailable: Optional[bool] = None
    nextDayAvailable: Optional[bool] = None
    sameDayCutoff: Optional[str] = None
    isActive: Optional[bool] = None

class ZoneOut(ZoneIn):
    id: Optional[str] = None
    postcodes: List[str] = []


def _out(z: DeliveryZonePolicy) -> ZoneOut:
    return ZoneOut(id=z.id, **z.to_doc())


# ---- Routes ------------------------------------------------------------------
# GET /delivery-zones/lookup?postcode=SW1A 1AA
@router.get("/lookup")
def lookup_zone(postcode: str = Query(..., min_length=2)):
    z = zone_for_postcode(postcode)
    return {
        "zone": z.name,
        "matched": z.id is not None,
        "deliveryFee": to_pounds(z.delivery_fee),
        "freeDeliveryThreshold": (
            to_pounds(z.free_delivery_threshold) if z.free_delivery_threshold is not None else None
        ),
        "sameDayAvailable": z.same_day_available,
        "nextDayAvailable": z.next_day_available,
        "sameDayCutoff": z.same_day_cutoff,
    }

@router.get("", response_model=List[ZoneOut])
def list_zones_endpoint(active: Optional[bool] = Query(None)):
    return [_out(z) for z in list_zones(active=active)]

@router.post("", response_model=ZoneOut, dependencies=[Depends(require_admin)])
def create_zone_endpoint(body: ZoneIn):
    try:
        # unset threshold falls back to the shop default, an explicit null disables it
        return _out(create_zone(body.model_dump(exclude_unset=True)))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@router.patch("/{zone_id}", response_model=ZoneOut, dependencies=[Depends(require_admin)])
def update_zone_endpoint(zone_id: str, body: ZonePatch):
    z = update_zone(zone_id, body.model_dump(exclude_unset=True))
    if z is None:
        raise HTTPException(status_code=404, detail="zone not found")
    return _out(z)

@router.delete("/{zone_id}", dependencies=[Depends(require_admin)])
def delete_zone_endpoint(zone_id: str):
    delete_zone(zone_id)
    return {"ok": True}
