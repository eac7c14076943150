# tests/integration/test_booking_flow.py

from datetime import timedelta

from sqlalchemy import select, update

from src.domain.time_utils import utc_now
from src.infrastructure.db.models import Booking, Show


def _inventory(api, show_id):
    return api.get_show(show_id)["inventory"]


def test_booking_flow(api):
    api.make_verified_creator()
    show = api.create_show(ticket_price=500, total_tickets=5)

    response = api.book(show["id"], 3)

    assert response.status_code == 201, response.text
    booking = response.json()["booking"]
    assert booking["status"] == "PENDING"
    assert booking["quantity"] == 3
    assert booking["totalAmount"] == 1500
    assert _inventory(api, show["id"]) == {"available": 2, "locked": 3}

    second = api.book(show["id"], 3, email="other@example.com")
    assert second.status_code == 400
    assert second.json() == {"error": "Not enough tickets available"}
    assert _inventory(api, show["id"]) == {"available": 2, "locked": 3}


def test_payment_order_carries_amount_in_paise(api, gateway):
    api.make_verified_creator()
    show = api.create_show(ticket_price=250, total_tickets=10)

    response = api.book(show["id"], 2)

    assert response.status_code == 201
    body = response.json()
    order = body["paymentOrder"]
    assert order["amount"] == 50000
    assert order["currency"] == "INR"
    assert order["keyId"] == "rzp_test_key"
    assert body["booking"]["paymentId"] == order["orderId"]

    _, receipt, notes = gateway.orders[0]
    assert receipt == body["booking"]["id"]
    assert notes["showId"] == show["id"]
    assert notes["quantity"] == 2


def test_cannot_book_past_show(api, db):
    api.make_verified_creator()
    show = api.create_show(total_tickets=10)
    db.execute(
        update(Show)
        .where(Show.id == show["id"])
        .values(date=utc_now() - timedelta(days=1))
    )
    db.commit()

    response = api.book(show["id"], 1)

    assert response.status_code == 400
    assert response.json() == {"error": "Cannot book past shows"}
    assert db.execute(select(Booking)).scalars().all() == []
    assert _inventory(api, show["id"]) == {"available": 10, "locked": 0}


def test_unknown_show(api):
    response = api.book("missing-show", 1)

    assert response.status_code == 404
    assert response.json() == {"error": "Show not found"}


def test_quantity_must_be_positive(api):
    api.make_verified_creator()
    show = api.create_show()

    for quantity in (0, -2):
        response = api.book(show["id"], quantity)
        assert response.status_code == 400

    assert _inventory(api, show["id"]) == {"available": 10, "locked": 0}


def test_quantity_must_be_a_real_integer(api):
    api.make_verified_creator()
    show = api.create_show()

    for quantity in (True, "2", 1.5):
        response = api.book(show["id"], quantity)
        assert response.status_code == 400, quantity
        assert response.json()["error"].startswith("quantity:")

    assert _inventory(api, show["id"]) == {"available": 10, "locked": 0}


def test_quantity_capped_per_booking(api):
    api.make_verified_creator()
    show = api.create_show(total_tickets=50)

    response = api.book(show["id"], 11)

    assert response.status_code == 400
    assert response.json() == {"error": "Maximum 10 tickets per booking"}


def test_booking_requires_identity(client):
    response = client.post("/bookings", json={"showId": "anything", "quantity": 1})

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_gateway_failure_rolls_back_reservation(api, db, fail_payments):
    api.make_verified_creator()
    show = api.create_show(total_tickets=4)
    fail_payments()

    response = api.book(show["id"], 2)

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}
    assert db.execute(select(Booking)).scalars().all() == []
    assert _inventory(api, show["id"]) == {"available": 4, "locked": 0}


def test_list_bookings_newest_first(api):
    api.make_verified_creator()
    first_show = api.create_show(total_tickets=10)
    second_show = api.create_show(total_tickets=10)

    first = api.book(first_show["id"], 1).json()["booking"]
    second = api.book(second_show["id"], 2).json()["booking"]
    api.book(first_show["id"], 1, email="someone-else@example.com")

    response = api.client.get("/bookings", headers=api.headers("fan@example.com"))
    assert response.status_code == 200
    ids = [b["id"] for b in response.json()["bookings"]]
    assert ids == [second["id"], first["id"]]

    filtered = api.client.get(
        "/bookings",
        params={"showId": first_show["id"]},
        headers=api.headers("fan@example.com"),
    )
    assert [b["id"] for b in filtered.json()["bookings"]] == [first["id"]]


def test_other_users_booking_is_not_visible(api):
    api.make_verified_creator()
    show = api.create_show()
    booking = api.book(show["id"], 1).json()["booking"]

    response = api.client.get(
        f"/bookings/{booking['id']}",
        headers=api.headers("stranger@example.com"),
    )

    assert response.status_code == 404
    assert api.get_booking(booking["id"])["status"] == "PENDING"
