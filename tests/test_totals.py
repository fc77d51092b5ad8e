"""Money helpers, compute_total and delivery zone resolution."""
from __future__ import annotations

import pytest

from loveblooms.services.delivery import (
    DeliveryZonePolicy,
    compute_total,
    resolve_zone,
    zone_for_postcode,
)
from loveblooms.services.money import format_price, percent_of, to_pence, to_pounds


# ---------- money ----------

@pytest.mark.parametrize("value,pence", [
    (12.5, 1250), ("4.99", 499), (0.1 + 0.2, 30), (19.995, 2000), (7, 700), (None, 0),
])
def test_to_pence(value, pence):
    assert to_pence(value) == pence


def test_to_pence_rejects_garbage():
    with pytest.raises(ValueError):
        to_pence("twelve")
    with pytest.raises(ValueError):
        to_pence(True)


def test_percent_rounds_half_up():
    assert percent_of(1999, 15) == 300        # 299.85
    assert percent_of(1050, 5) == 53          # 52.5
    assert to_pounds(1999) == 19.99
    assert format_price(125000) == "£1,250.00"


# ---------- compute_total ----------

def test_under_threshold_pays_default_fee():
    t = compute_total(4999)
    assert (t.delivery_fee, t.total) == (499, 5498)
    assert t.free_delivery_applied is False


def test_threshold_is_inclusive():
    t = compute_total(5000)
    assert t.delivery_fee == 0
    assert t.total == 5000
    assert t.free_delivery_applied is True


def test_free_delivery_promotion_waives_fee():
    t = compute_total(1000, free_delivery=True)
    assert t.delivery_fee == 0 and t.total == 1000


def test_discount_clamped_and_total_never_negative():
    t = compute_total(1000, discount=5000)
    assert t.discount == 1000
    assert t.total == 499
    t = compute_total(1000, discount=-300)
    assert t.discount == 0


def test_zero_subtotal_still_pays_delivery():
    t = compute_total(0)
    assert t.total == 499


def test_compute_total_is_pure():
    policy = DeliveryZonePolicy(name="Scotland", delivery_fee=799, free_delivery_threshold=7500)
    assert compute_total(4200, policy, 500) == compute_total(4200, policy, 500)
    assert compute_total(4200, policy, 500).total == 4200 + 799 - 500


def test_zone_without_threshold_never_waives():
    policy = DeliveryZonePolicy(name="Islands", delivery_fee=1299, free_delivery_threshold=None)
    assert compute_total(100000, policy).delivery_fee == 1299


def test_zone_doc_threshold_missing_vs_null():
    assert DeliveryZonePolicy.from_doc({"name": "A", "deliveryFee": 5}).free_delivery_threshold == 5000
    islands = DeliveryZonePolicy.from_doc({"name": "B", "deliveryFee": 12.99, "freeDeliveryThreshold": None})
    assert islands.free_delivery_threshold is None
    assert islands.to_doc()["freeDeliveryThreshold"] is None
    assert compute_total(20000, islands).delivery_fee == 1299


def test_as_pounds_shape():
    out = compute_total(2500, discount=250).as_pounds()
    assert out == {
        "subtotal": 25.0, "deliveryFee": 4.99, "discountAmount": 2.5,
        "total": 27.49, "freeDelivery": False, "zone": "Standard UK",
    }


# ---------- zones ----------

def _zone(name, postcodes, active=True):
    return DeliveryZonePolicy(name=name, delivery_fee=599, free_delivery_threshold=5000,
                              postcodes=tuple(postcodes), is_active=active)


def test_resolve_zone_matches_postcode_area():
    zones = [_zone("Scotland", ["EH", "G"]), _zone("London", ["SW", "E", "EC"])]
    assert resolve_zone(zones, "SW1A 1AA").name == "London"
    assert resolve_zone(zones, "ec1a1bb").name == "London"
    assert resolve_zone(zones, "G2 1AA").name == "Scotland"


def test_area_must_match_exactly():
    zones = [_zone("Scotland", ["G"])]
    # GU (Guildford) is not G (Glasgow)
    assert resolve_zone(zones, "GU1 1AA").name == "Standard UK"


def test_inactive_and_unknown_fall_back_to_default():
    zones = [_zone("London", ["SW"], active=False)]
    assert resolve_zone(zones, "SW1A 1AA").name == "Standard UK"
    assert resolve_zone(zones, "").name == "Standard UK"
    assert resolve_zone(zones, None).delivery_fee == 499


def test_zone_for_postcode_reads_the_store(london_zone):
    z = zone_for_postcode("w1a 0ax")
    assert z.name == "Greater London"
    assert z.delivery_fee == 599
    assert z.free_delivery_threshold == 6000


def test_zone_routes(client, admin_headers, london_zone):
    r = client.get("/delivery-zones/lookup", params={"postcode": "SW1A 1AA"})
    assert r.status_code == 200
    assert r.json()["zone"] == "Greater London"
    assert r.json()["matched"] is True

    r = client.get("/delivery-zones/lookup", params={"postcode": "ZE1 0AA"})
    assert r.json()["matched"] is False
    assert r.json()["deliveryFee"] == 4.99

    r = client.post("/delivery-zones", json={"name": "Scotland", "postcodes": ["eh"], "deliveryFee": 7.99})
    assert r.status_code == 401
    r = client.post("/delivery-zones", headers=admin_headers,
                    json={"name": "Scotland", "postcodes": ["eh"], "deliveryFee": 7.99,
                          "freeDeliveryThreshold": 75})
    assert r.status_code == 200
    assert r.json()["postcodes"] == ["EH"]
    assert len(client.get("/delivery-zones").json()) == 2


def test_zone_created_with_null_threshold_never_goes_free(client, admin_headers):
    client.post("/delivery-zones", headers=admin_headers,
                json={"name": "Islands", "postcodes": ["ZE"], "deliveryFee": 12.99,
                      "freeDeliveryThreshold": None})
    client.post("/delivery-zones", headers=admin_headers,
                json={"name": "Wales", "postcodes": ["CF"], "deliveryFee": 6.99})

    islands = client.get("/delivery-zones/lookup", params={"postcode": "ZE1 0AA"}).json()
    assert islands["zone"] == "Islands"
    assert islands["freeDeliveryThreshold"] is None
    wales = client.get("/delivery-zones/lookup", params={"postcode": "CF10 1AA"}).json()
    assert wales["freeDeliveryThreshold"] == 50.0
    assert zone_for_postcode("ZE2 9AA").free_delivery_threshold is None
