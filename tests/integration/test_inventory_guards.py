# tests/integration/test_inventory_guards.py

import json
from datetime import timedelta

from sqlalchemy import select, update

from src.application.admin_service import AdminService
from src.application.payment_webhook_service import PaymentWebhookService
from src.domain.state_machine import BookingStatus
from src.domain.time_utils import utc_now
from src.infrastructure.db.models import Booking, PaymentWebhookEvent, TicketInventory
from src.infrastructure.repositories.booking_repository import BookingRepository
from src.infrastructure.repositories.inventory_repository import InventoryRepository


def _counts(db, show_id):
    inventory = InventoryRepository(db).lock_inventory(show_id)
    return inventory.available, inventory.locked


def _webhook_body(event, order_id, payment_id) -> bytes:
    return json.dumps(
        {
            "event": event,
            "payload": {"payment": {"entity": {"id": payment_id, "order_id": order_id}}},
        }
    ).encode()


def _settle_behind_the_session(db, booking, status, available, locked):
    """Another worker settles the booking; this session's objects stay stale."""
    db.execute(
        update(Booking)
        .where(Booking.id == booking.id)
        .values(status=status)
        .execution_options(synchronize_session=False)
    )
    db.execute(
        update(TicketInventory)
        .where(TicketInventory.show_id == booking.show_id)
        .values(available=available, locked=locked)
        .execution_options(synchronize_session=False)
    )


# ---------------------
# CONDITIONAL COUNTER UPDATES
# ---------------------

def test_second_reservation_for_last_seats_refused(api, db):
    api.make_verified_creator()
    show = api.create_show(total_tickets=3)
    repository = InventoryRepository(db)

    # Both buyers saw the same two seats left.
    assert _counts(db, show["id"]) == (3, 0)
    assert repository.reserve(show["id"], 2) is True
    assert repository.reserve(show["id"], 2) is False

    assert _counts(db, show["id"]) == (1, 2)


def test_sell_and_release_refuse_more_than_locked(api, db):
    api.make_verified_creator()
    show = api.create_show(total_tickets=5)
    repository = InventoryRepository(db)
    repository.reserve(show["id"], 1)

    assert repository.mark_sold(show["id"], 2) is False
    assert repository.release(show["id"], 2) is False
    assert _counts(db, show["id"]) == (4, 1)

    assert repository.mark_sold(show["id"], 1) is True
    assert repository.release(show["id"], 1) is False
    assert _counts(db, show["id"]) == (4, 0)


def test_adjust_available_never_goes_negative(api, db):
    api.make_verified_creator()
    show = api.create_show(total_tickets=5)
    repository = InventoryRepository(db)

    assert repository.adjust_available(show["id"], -6) is False
    assert _counts(db, show["id"]) == (5, 0)

    assert repository.adjust_available(show["id"], -5) is True
    assert _counts(db, show["id"]) == (0, 0)


def test_transition_on_stale_booking_loses(api, db):
    api.make_verified_creator()
    show = api.create_show()
    booking_id = api.book(show["id"], 1).json()["booking"]["id"]
    repository = BookingRepository(db)
    booking = repository.get_by_id(booking_id)
    assert booking.status == BookingStatus.PENDING

    db.execute(
        update(Booking)
        .where(Booking.id == booking_id)
        .values(status=BookingStatus.FAILED)
        .execution_options(synchronize_session=False)
    )

    assert repository.transition(booking, BookingStatus.CONFIRMED) is False
    assert booking.status == BookingStatus.FAILED


# ---------------------
# LOST RACES
# ---------------------

def test_capture_that_loses_to_release_leaves_inventory_alone(api, db, gateway, monkeypatch):
    api.make_verified_creator()
    show = api.create_show(total_tickets=10)
    body = api.book(show["id"], 2).json()
    order_id = body["paymentOrder"]["orderId"]

    service = PaymentWebhookService(db, gateway)
    read_pending = service.booking_repository.get_pending_by_order_id

    def read_then_release(order_id):
        booking = read_pending(order_id)
        _settle_behind_the_session(db, booking, BookingStatus.CANCELLED, available=10, locked=0)
        return booking

    monkeypatch.setattr(service.booking_repository, "get_pending_by_order_id", read_then_release)

    outcome = service.handle(
        _webhook_body("payment.captured", order_id, "pay_race"),
        signature=api.sign(order_id, "pay_race"),
    )
    db.commit()

    assert outcome.status_code == 404
    assert api.get_booking(body["booking"]["id"])["status"] == "CANCELLED"
    assert api.get_show(show["id"])["inventory"] == {"available": 10, "locked": 0}
    assert db.execute(select(PaymentWebhookEvent)).scalars().all() == []


def test_failure_that_loses_to_capture_keeps_sale(api, db, gateway, monkeypatch):
    api.make_verified_creator()
    show = api.create_show(total_tickets=10)
    body = api.book(show["id"], 2).json()
    order_id = body["paymentOrder"]["orderId"]

    service = PaymentWebhookService(db, gateway)
    read_pending = service.booking_repository.get_pending_by_order_id

    def read_then_capture(order_id):
        booking = read_pending(order_id)
        _settle_behind_the_session(db, booking, BookingStatus.CONFIRMED, available=8, locked=0)
        return booking

    monkeypatch.setattr(service.booking_repository, "get_pending_by_order_id", read_then_capture)

    outcome = service.handle(
        _webhook_body("payment.failed", order_id, "pay_race"),
        signature=api.sign(order_id, "pay_race"),
    )
    db.commit()

    assert outcome.status_code == 200
    assert api.get_booking(body["booking"]["id"])["status"] == "CONFIRMED"
    assert api.get_show(show["id"])["inventory"] == {"available": 8, "locked": 0}


def test_release_job_skips_booking_captured_underneath(api, db, monkeypatch):
    api.make_verified_creator()
    show = api.create_show(total_tickets=10)
    booking_id = api.book(show["id"], 3).json()["booking"]["id"]
    db.execute(
        update(Booking)
        .where(Booking.id == booking_id)
        .values(created_at=utc_now() - timedelta(hours=2))
    )
    db.commit()

    service = AdminService(db)
    list_stale = service.booking_repository.list_stale_pending

    def list_then_capture(created_before):
        stale = list_stale(created_before)
        for booking in stale:
            _settle_behind_the_session(db, booking, BookingStatus.CONFIRMED, available=7, locked=0)
        return stale

    monkeypatch.setattr(service.booking_repository, "list_stale_pending", list_then_capture)

    released = service.release_abandoned_bookings()
    db.commit()

    assert released == []
    assert api.get_booking(booking_id)["status"] == "CONFIRMED"
    assert api.get_show(show["id"])["inventory"] == {"available": 7, "locked": 0}
