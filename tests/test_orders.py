"""Order record, status history and the admin order routes."""
from __future__ import annotations

import logging
from datetime import timedelta

import pytest

from loveblooms.errors import OrderNotFound
from loveblooms.services import orders as order_service
from loveblooms.services.cart import Cart
from loveblooms.services.delivery import compute_total


@pytest.fixture()
def place(roses, lilies, now):
    """Persist a pending order without going through checkout."""
    def _place(email="ada@example.com", when=None, coupon_discount=0):
        cart = Cart()
        cart.add_item(roses, roses.find_variant("v2"), 1)     # 45.00
        cart.add_item(lilies, None, 2, gift_message="Get well soon")   # 25.00
        totals = compute_total(cart.subtotal, discount=coupon_discount)
        doc = order_service.build_order(
            cart, totals,
            {"billingName": "Ada", "billingEmail": email, "recipientName": "Grace",
             "deliveryAddress": {"line1": "1 Rose St", "city": "London", "postcode": "SW1A 1AA"},
             "deliveryDate": "2026-10-20"},
            now=when or now,
        )
        return order_service.create_order(doc)
    return _place


def test_build_order_snapshot_and_invariant(place):
    o = place(coupon_discount=700)
    assert o["status"] == "pending"
    assert o["paymentStatus"] == "unpaid"
    assert o["orderNumber"].startswith("LB-261019-")
    assert o["subtotal"] == 70.0
    assert o["deliveryFee"] == 0.0
    assert o["discountAmount"] == 7.0
    assert o["total"] == round(o["subtotal"] + o["deliveryFee"] - o["discountAmount"], 2)
    assert o["loyaltyPointsEarned"] == 63
    assert o["billingEmail"] == "ada@example.com"
    line = o["items"][0]
    assert line["variantName"] == "Deluxe"
    assert line["unitPrice"] == 45.0
    assert o["items"][1]["giftMessage"] == "Get well soon"


def test_set_status_appends_one_history_entry(place):
    o = place()
    updated = order_service.set_status(o["id"], "preparing", actor="admin", note="stems in")
    assert updated["status"] == "preparing"
    assert len(updated["statusHistory"]) == 1
    entry = updated["statusHistory"][0]
    assert (entry["field"], entry["from"], entry["to"], entry["by"], entry["note"]) == \
        ("status", "pending", "preparing", "admin", "stems in")


def test_setting_the_same_status_is_a_noop(place):
    o = place()
    order_service.set_status(o["id"], "confirmed")
    again = order_service.set_status(o["id"], "confirmed")
    assert len(again["statusHistory"]) == 1


def test_any_status_can_follow_any_other(place, caplog):
    o = place()
    order_service.set_status(o["id"], "delivered")
    with caplog.at_level(logging.WARNING, logger="loveblooms.services.orders"):
        back = order_service.set_status(o["id"], "preparing")
    assert back["status"] == "preparing"
    assert "reopened" in caplog.text
    assert [h["to"] for h in back["statusHistory"]] == ["delivered", "preparing"]


def test_payment_status_is_an_independent_axis(place):
    o = place()
    paid = order_service.set_payment_status(o["id"], "paid", actor="stripe")
    assert paid["status"] == "pending"
    assert paid["paymentStatus"] == "paid"
    assert paid["statusHistory"][0]["field"] == "paymentStatus"


def test_unknown_values_and_missing_orders(place):
    o = place()
    with pytest.raises(ValueError):
        order_service.set_status(o["id"], "lost")
    with pytest.raises(ValueError):
        order_service.set_payment_status(o["id"], "maybe")
    with pytest.raises(OrderNotFound):
        order_service.set_status("nope", "confirmed")


def test_notes_accumulate(place):
    o = place()
    order_service.add_note(o["id"], "customer called", author="admin")
    updated = order_service.add_note(o["id"], "leave with neighbour", author="admin")
    assert [n["text"] for n in updated["adminNotes"]] == ["customer called", "leave with neighbour"]
    with pytest.raises(ValueError):
        order_service.add_note(o["id"], "   ")


def test_list_orders_newest_first_with_filters(place, now):
    old = place(email="old@example.com", when=now - timedelta(days=3))
    new = place(email="New@Example.com", when=now)
    order_service.set_status(old["id"], "delivered")

    assert [o["id"] for o in order_service.list_orders()] == [new["id"], old["id"]]
    assert [o["id"] for o in order_service.list_orders(status="delivered")] == [old["id"]]
    assert [o["id"] for o in order_service.list_orders(email="new@example.com")] == [new["id"]]
    assert len(order_service.list_orders(limit=1)) == 1


def test_csv_export(place):
    o = place()
    text = order_service.export_orders_csv([o])
    header, row = text.split("\n")
    assert header.startswith("Order Number,Date,Customer Name")
    assert o["orderNumber"] in row
    assert "Velvet Red Romance x1; Peaceful White Lilies x2" in row
    assert "SW1A 1AA" in row


# ---------- HTTP ----------

def test_order_routes(client, admin_headers, place):
    o = place()
    assert client.get("/orders").status_code == 401

    r = client.get("/orders", headers=admin_headers)
    assert r.status_code == 200 and len(r.json()) == 1

    r = client.patch(f"/orders/{o['id']}/status", json={"status": "out_for_delivery"}, headers=admin_headers)
    assert r.status_code == 200
    hist = r.json()["statusHistory"]
    assert hist[0]["from"] == "pending" and hist[0]["to"] == "out_for_delivery"

    r = client.patch(f"/orders/{o['id']}/status", json={"status": "teleported"}, headers=admin_headers)
    assert r.status_code == 400

    r = client.patch("/orders/missing/payment-status", json={"paymentStatus": "paid"}, headers=admin_headers)
    assert r.status_code == 404

    r = client.post(f"/orders/{o['id']}/notes", json={"text": "fragile"}, headers=admin_headers)
    assert r.json()["adminNotes"][0]["by"] == "admin"

    r = client.get("/orders/export.csv", headers=admin_headers)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert o["orderNumber"] in r.text


def test_public_lookup_shows_no_personal_details(client, place):
    o = place()
    number = o["orderNumber"]

    assert client.get(f"/orders/by-number/{number}").status_code == 422
    assert client.get(f"/orders/by-number/{number}", params={"email": "someone@else.com"}).status_code == 404

    r = client.get(f"/orders/by-number/{number}", params={"email": " Ada@Example.com "})
    assert r.status_code == 200
    body = r.json()
    assert body["orderNumber"] == number
    assert body["total"] == o["total"]
    for field in ("id", "billingEmail", "billingPhone", "deliveryAddress", "recipientName", "adminNotes"):
        assert field not in body
    assert all("giftMessage" not in item for item in body["items"])


def test_lookup_by_payment_session(client, place):
    o = place()
    order_service.attach_payment_session(o["id"], "cs_test_999")
    r = client.get("/orders/by-session/cs_test_999")
    assert r.status_code == 200
    assert r.json()["orderNumber"] == o["orderNumber"]
    assert "billingEmail" not in r.json()
    assert client.get("/orders/by-session/cs_unknown").status_code == 404
