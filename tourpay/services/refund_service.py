from dataclasses import dataclass
from datetime import datetime, time, timezone
from decimal import Decimal

from flask import current_app

from tourpay.errors import AlreadyCancelled, AppError, BookingNotFound, RefundNotAllowed
from tourpay.extensions import db
from tourpay.models import Booking, Refund
from tourpay.models.base import utcnow
from tourpay.services.notification_service import NotificationService
from tourpay.services.revenue_service import round_money

FULL_REFUND_DAYS = 7
PARTIAL_REFUND_DAYS = 1

# (minimum days before tour, refund percentage, policy text), checked top-down.
REFUND_TIERS = (
    (FULL_REFUND_DAYS, Decimal("100"), "Cancelled 7 or more days before the tour: 100% refund"),
    (PARTIAL_REFUND_DAYS, Decimal("50"), "Cancelled 1-6 days before the tour: 50% refund"),
)
NO_REFUND_POLICY = "Cancelled less than 1 day before the tour: no refund"

NON_CANCELLABLE_STATUSES = {"completed", "refunded"}


@dataclass(frozen=True)
class RefundQuote:
    can_refund: bool
    days_before_tour: int
    refund_percentage: Decimal
    original_amount: Decimal
    refund_amount: Decimal
    policy: str

    def to_dict(self):
        return {
            "canRefund": self.can_refund,
            "daysBeforeTour": self.days_before_tour,
            "refundPercentage": str(self.refund_percentage),
            "originalAmount": str(self.original_amount),
            "refundAmount": str(self.refund_amount),
            "refundPolicy": self.policy,
        }


def days_before_tour(tour_date, now=None):
    now = now or utcnow()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    tour_start = datetime.combine(tour_date, time.min, tzinfo=timezone.utc)
    return (tour_start - now).days


def refund_terms(days):
    for minimum_days, percentage, policy in REFUND_TIERS:
        if days >= minimum_days:
            return True, percentage, policy
    return False, Decimal("0"), NO_REFUND_POLICY


def quote_refund(total_amount, tour_date, now=None):
    days = days_before_tour(tour_date, now)
    can_refund, percentage, policy = refund_terms(days)
    original = round_money(total_amount)
    return RefundQuote(
        can_refund=can_refund,
        days_before_tour=days,
        refund_percentage=percentage,
        original_amount=original,
        refund_amount=round_money(original * percentage / Decimal("100")),
        policy=policy,
    )


class RefundService:
    @staticmethod
    def policy_table():
        tiers = [
            {"minDaysBeforeTour": days, "refundPercentage": str(pct), "policy": text}
            for days, pct, text in REFUND_TIERS
        ]
        tiers.append({"minDaysBeforeTour": None, "refundPercentage": "0", "policy": NO_REFUND_POLICY})
        return tiers

    @staticmethod
    def _ensure_access(booking, actor):
        if actor is None:
            return
        if actor.role != "admin" and booking.customer_id != actor.id:
            raise AppError("Forbidden.", 403)

    @staticmethod
    def calculate_refund(booking_id, actor=None, now=None):
        booking = db.session.get(Booking, booking_id)
        if not booking:
            raise BookingNotFound()
        RefundService._ensure_access(booking, actor)
        return quote_refund(booking.total_amount, booking.tour_date, now)

    @staticmethod
    def cancel_booking(
        booking_id,
        reason=None,
        bank_name=None,
        bank_code=None,
        bank_account=None,
        account_name=None,
        actor=None,
        now=None,
    ):
        now = now or utcnow()
        reason = (reason or "").strip() or None
        try:
            booking = db.session.get(Booking, booking_id, with_for_update=True)
            if not booking:
                raise BookingNotFound()
            RefundService._ensure_access(booking, actor)
            if booking.status == "cancelled":
                raise AlreadyCancelled()
            if booking.status in NON_CANCELLABLE_STATUSES:
                raise RefundNotAllowed(f"Booking is {booking.status} and can no longer be cancelled.")

            quote = quote_refund(booking.total_amount, booking.tour_date, now)

            booking.status = "cancelled"
            booking.cancellation_reason = reason
            booking.cancelled_at = now

            refund = None
            if quote.can_refund:
                booking.refund_amount = quote.refund_amount
                booking.refund_bank_name = bank_name
                booking.refund_bank_code = bank_code
                booking.refund_bank_account = bank_account
                booking.refund_account_name = account_name
                booking.refunded_at = now
                refund = Refund(
                    booking_id=booking.id,
                    refund_amount=quote.refund_amount,
                    currency=booking.currency,
                    status="pending",
                    bank_name=bank_name,
                    bank_code=bank_code,
                    bank_account=bank_account,
                    account_name=account_name,
                    reason=reason,
                    days_before_tour=quote.days_before_tour,
                    refund_percentage=quote.refund_percentage,
                    original_amount=quote.original_amount,
                    notes=f"Booking cancelled. Policy: {quote.policy}",
                    created_by=actor.id if actor is not None else None,
                )
                db.session.add(refund)

            slot = booking.availability
            if slot is not None:
                slot.booked_participants = max(0, (slot.booked_participants or 0) - booking.participants)

            if quote.can_refund:
                message = f"Booking {booking.booking_number} was cancelled. Refund of {quote.refund_amount} {booking.currency} is pending."
            else:
                message = f"Booking {booking.booking_number} was cancelled. {quote.policy}."
            NotificationService.push(booking.customer_id, "Booking cancelled", message, category="refund")

            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        current_app.logger.info(
            "Booking %s cancelled %s days before tour; refund %s %s (%s%%)",
            booking.booking_number,
            quote.days_before_tour,
            quote.refund_amount if quote.can_refund else 0,
            booking.currency,
            quote.refund_percentage,
        )
        return booking, refund
