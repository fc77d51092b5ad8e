"""Cart value object and the /cart routes."""
from __future__ import annotations

import pytest

from loveblooms.errors import InvalidQuantity, ProductUnavailable
from loveblooms.services.cart import Cart, load_cart, save_cart
from loveblooms.services.delivery import DeliveryZonePolicy


# ---------- Cart rules ----------

def test_add_same_line_merges_quantity(roses):
    cart = Cart()
    v1 = roses.find_variant("v1")
    cart.add_item(roses, v1, 2)
    cart.add_item(roses, v1, 3)
    assert len(cart.items) == 1
    assert cart.items[0].quantity == 5
    assert cart.subtotal == 5 * 3000


def test_variant_makes_a_separate_line_with_modifier(roses):
    cart = Cart()
    cart.add_item(roses, roses.find_variant("v1"), 1)
    cart.add_item(roses, roses.find_variant("v2"), 1)
    assert len(cart.items) == 2
    assert cart.find(roses.id, "v2").unit_price == 4500
    assert cart.subtotal == 3000 + 4500


def test_price_is_snapshotted_when_added(roses):
    from loveblooms.services.products import update_product

    cart = Cart()
    cart.add_item(roses, None, 1)
    update_product(roses.id, {"price": 99.0})
    assert cart.items[0].unit_price == 3000


@pytest.mark.parametrize("bad", [0, -1, 1.5, "2", True, None])
def test_add_rejects_non_positive_or_non_integer_quantity(roses, bad):
    with pytest.raises(InvalidQuantity):
        Cart().add_item(roses, None, bad)


def test_out_of_stock_variant_is_refused(roses):
    with pytest.raises(ProductUnavailable):
        Cart().add_item(roses, roses.find_variant("v3"), 1)


def test_inactive_product_is_refused(make_product):
    hidden = make_product("Hidden", 10, isActive=False)
    with pytest.raises(ProductUnavailable):
        Cart().add_item(hidden, None, 1)


def test_update_quantity_delta_removes_line_at_zero(roses):
    cart = Cart()
    cart.add_item(roses, None, 2)
    cart.update_quantity(roses.id, -1)
    assert cart.items[0].quantity == 1
    cart.update_quantity(roses.id, -5)
    assert cart.items == []


def test_update_quantity_on_unknown_line_is_noop(roses):
    cart = Cart()
    cart.add_item(roses, None, 2)
    assert cart.update_quantity("nope", 3) is None
    assert cart.item_count == 2


def test_update_quantity_rejects_fractional_delta(roses):
    cart = Cart()
    cart.add_item(roses, None, 2)
    with pytest.raises(InvalidQuantity):
        cart.update_quantity(roses.id, 0.5)


def test_set_quantity_and_remove(roses, lilies):
    cart = Cart()
    cart.add_item(roses, None, 1)
    cart.add_item(lilies, None, 1)
    cart.set_quantity(roses.id, 4)
    assert cart.find(roses.id).quantity == 4
    cart.set_quantity(roses.id, 0)
    assert cart.find(roses.id) is None
    cart.remove_item("missing")          # no-op
    cart.remove_item(lilies.id)
    assert cart.items == []


def test_discount_is_clamped_to_subtotal(lilies):
    cart = Cart()
    cart.add_item(lilies, None, 1)           # 12.50
    cart.apply_coupon("big", 5000)
    assert cart.discount_amount == 1250
    assert cart.total == 0


def test_total_excludes_delivery_and_quote_includes_it(lilies):
    cart = Cart()
    cart.add_item(lilies, None, 2)           # 25.00
    cart.apply_coupon("five", 500)
    assert cart.total == 2000
    q = cart.quote(DeliveryZonePolicy.default())
    assert (q.subtotal, q.delivery_fee, q.discount, q.total) == (2500, 499, 500, 2499)


def test_clear_resets_everything(roses):
    cart = Cart()
    cart.add_item(roses, None, 1)
    cart.apply_coupon("x", 100, free_delivery=True)
    cart.set_delivery("2026-10-20", "next_day", "sw1a 1aa", 599)
    cart.clear()
    assert cart.items == [] and cart.coupon_code is None and not cart.free_delivery
    assert cart.delivery_postcode == "" and cart.delivery_fee == 0


def test_to_dict_from_dict_keeps_lines_coupon_and_delivery(roses):
    cart = Cart()
    cart.add_item(roses, roses.find_variant("v2"), 2, gift_message="Happy birthday")
    cart.apply_coupon("save10", 900)
    cart.set_delivery("2026-10-21", "scheduled", "ec1a 1bb", 599)
    save_cart("sess-1", cart)

    again = load_cart("sess-1")
    assert again.items[0].gift_message == "Happy birthday"
    assert again.items[0].variant_name == "Deluxe"
    assert again.subtotal == cart.subtotal
    assert again.coupon_code == "SAVE10"
    assert again.discount_amount == 900
    assert again.delivery_postcode == "EC1A 1BB"


# ---------- HTTP ----------

def test_cart_routes_add_update_remove(client, roses):
    sid = "browser-123"
    r = client.post(f"/cart/{sid}/items", json={"productId": roses.id, "variantId": "v2", "quantity": 2})
    assert r.status_code == 200
    body = r.json()
    assert body["itemCount"] == 2
    assert body["subtotal"] == 90.0
    assert body["items"][0]["unitPrice"] == 45.0

    r = client.patch(f"/cart/{sid}/items", json={"productId": roses.id, "variantId": "v2", "delta": 1})
    assert r.json()["itemCount"] == 3

    r = client.patch(f"/cart/{sid}/items", json={"productId": roses.id, "variantId": "v2", "quantity": 1})
    assert r.json()["itemCount"] == 1

    r = client.request("DELETE", f"/cart/{sid}/items", json={"productId": roses.id, "variantId": "v2"})
    assert r.json()["items"] == []


def test_add_unknown_product_is_404(client):
    r = client.post("/cart/s/items", json={"productId": "ghost", "quantity": 1})
    assert r.status_code == 404


def test_add_zero_quantity_reports_reason(client, roses):
    r = client.post("/cart/s/items", json={"productId": roses.id, "quantity": 0})
    assert r.status_code == 400
    assert r.json()["detail"]["reason"] == "invalid_quantity"


def test_apply_coupon_and_quote(client, lilies, make_coupon, london_zone):
    make_coupon("TENOFF", "percentage", 10)
    sid = "s-quote"
    client.post(f"/cart/{sid}/items", json={"productId": lilies.id, "quantity": 4})    # 50.00

    r = client.post(f"/cart/{sid}/coupon", json={"code": "tenoff"})
    assert r.status_code == 200
    assert r.json()["couponCode"] == "TENOFF"
    assert r.json()["discountAmount"] == 5.0

    q = client.get(f"/cart/{sid}/quote", params={"postcode": "SW1A 1AA"}).json()
    assert q["zone"] == "Greater London"
    assert q["deliveryFee"] == 5.99          # 50.00 is under the zone's 60.00 threshold
    assert q["total"] == 50.99
    assert q["amountToFreeDelivery"] == 10.0
    assert q["sameDayAvailable"] is True


def test_unknown_coupon_on_cart_is_404(client, lilies):
    client.post("/cart/s/items", json={"productId": lilies.id, "quantity": 1})
    r = client.post("/cart/s/coupon", json={"code": "NOPE"})
    assert r.status_code == 404
    assert r.json()["detail"]["reason"] == "not_found"


def test_coupon_dropped_when_cart_falls_below_minimum(client, lilies, make_coupon):
    make_coupon("BIG", "fixed_amount", 5, minimumOrder=30)
    sid = "s-min"
    client.post(f"/cart/{sid}/items", json={"productId": lilies.id, "quantity": 3})    # 37.50
    assert client.post(f"/cart/{sid}/coupon", json={"code": "BIG"}).status_code == 200

    r = client.patch(f"/cart/{sid}/items", json={"productId": lilies.id, "delta": -2})
    body = r.json()
    assert body["couponCode"] is None
    assert body["couponError"]["reason"] == "below_minimum"
