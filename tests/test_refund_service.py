from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from conftest import make_booking, make_user
from tourpay.errors import AlreadyCancelled, AppError, BookingNotFound, RefundNotAllowed
from tourpay.extensions import db
from tourpay.models import Booking, Notification, Refund, TourAvailability
from tourpay.services import NotificationService, RefundService

TOUR_DAY = date(2025, 12, 20)


def at(day, hour=0):
    return datetime(2025, 12, day, hour, tzinfo=timezone.utc)


def slot_for(booking):
    return db.session.get(TourAvailability, booking.tour_availability_id)


def test_early_cancellation_opens_full_refund(guide, customer):
    booking = make_booking(customer, guide, tour_date=TOUR_DAY, booked=5, adults=2)

    cancelled, refund = RefundService.cancel_booking(
        booking.id,
        reason="  Change of plans ",
        bank_name="Vietcombank",
        bank_code="VCB",
        bank_account="0071000123456",
        account_name="NGUYEN VAN A",
        actor=customer,
        now=at(10),
    )

    assert cancelled.status == "cancelled"
    assert cancelled.cancellation_reason == "Change of plans"
    assert cancelled.refund_amount == Decimal("4000000")
    assert cancelled.refund_bank_account == "0071000123456"
    assert refund.status == "pending"
    assert refund.refund_amount == Decimal("4000000")
    assert refund.refund_percentage == Decimal("100")
    assert refund.days_before_tour == 10
    assert refund.created_by == customer.id
    assert slot_for(booking).booked_participants == 3
    assert Notification.query.filter_by(user_id=customer.id, category="refund").count() == 1


def test_mid_window_cancellation_refunds_half(guide, customer):
    booking = make_booking(customer, guide, tour_date=TOUR_DAY)

    _, refund = RefundService.cancel_booking(booking.id, now=at(16))

    assert refund.refund_percentage == Decimal("50")
    assert refund.refund_amount == Decimal("2000000")
    assert refund.original_amount == Decimal("4000000")


def test_late_cancellation_has_no_refund(guide, customer):
    booking = make_booking(customer, guide, tour_date=TOUR_DAY, booked=2, adults=2)

    cancelled, refund = RefundService.cancel_booking(booking.id, now=at(20, 8))

    assert refund is None
    assert cancelled.status == "cancelled"
    assert cancelled.refund_amount is None
    assert Refund.query.count() == 0
    assert slot_for(booking).booked_participants == 0


def test_slot_capacity_never_goes_negative(guide, customer):
    booking = make_booking(customer, guide, tour_date=TOUR_DAY, booked=1, adults=2, children=1)

    RefundService.cancel_booking(booking.id, now=at(1))

    assert slot_for(booking).booked_participants == 0


def test_cancelling_twice_is_rejected_without_side_effects(guide, customer):
    booking = make_booking(customer, guide, tour_date=TOUR_DAY, booked=5)
    RefundService.cancel_booking(booking.id, now=at(1))

    with pytest.raises(AlreadyCancelled):
        RefundService.cancel_booking(booking.id, now=at(2))

    assert Refund.query.count() == 1
    assert slot_for(booking).booked_participants == 3


def test_unknown_booking(app):
    with pytest.raises(BookingNotFound):
        RefundService.cancel_booking(404)


@pytest.mark.parametrize("status", ["completed", "refunded"])
def test_finished_bookings_cannot_be_cancelled(guide, customer, status):
    booking = make_booking(customer, guide, tour_date=TOUR_DAY, status=status)

    with pytest.raises(RefundNotAllowed):
        RefundService.cancel_booking(booking.id, now=at(1))

    assert db.session.get(Booking, booking.id).status == status


def test_only_owner_or_admin_may_cancel(guide, customer, admin):
    booking = make_booking(customer, guide, tour_date=TOUR_DAY)
    stranger = make_user("customer")

    with pytest.raises(AppError) as excinfo:
        RefundService.cancel_booking(booking.id, actor=stranger, now=at(1))
    assert excinfo.value.status_code == 403

    cancelled, _ = RefundService.cancel_booking(booking.id, actor=admin, now=at(1))
    assert cancelled.status == "cancelled"


def test_calculate_refund_does_not_write(guide, customer):
    booking = make_booking(customer, guide, tour_date=TOUR_DAY)

    quote = RefundService.calculate_refund(booking.id, actor=customer, now=at(14))

    assert quote.days_before_tour == 6
    assert quote.refund_percentage == Decimal("50")
    assert db.session.get(Booking, booking.id).status == "pending"
    assert Refund.query.count() == 0


def test_failed_cancellation_leaves_no_partial_state(guide, customer, monkeypatch):
    booking = make_booking(customer, guide, tour_date=TOUR_DAY, booked=5)

    def failing_push(*args, **kwargs):
        raise RuntimeError("notification store down")

    monkeypatch.setattr(NotificationService, "push", failing_push)

    with pytest.raises(RuntimeError):
        RefundService.cancel_booking(booking.id, now=at(1))

    untouched = db.session.get(Booking, booking.id)
    assert untouched.status == "pending"
    assert untouched.cancelled_at is None
    assert untouched.refund_amount is None
    assert Refund.query.count() == 0
    assert slot_for(booking).booked_participants == 5
