from flask import current_app

from tourpay.extensions import db
from tourpay.models import SettlementTransaction, Tour
from tourpay.models.base import utcnow

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"


class LedgerService:
    @staticmethod
    def _mark_booking_paid(booking, payment_id, payment_method, now):
        if booking.status == "cancelled":
            current_app.logger.warning(
                "Payment received for cancelled booking %s; recording payment without confirming",
                booking.booking_number,
            )
        else:
            booking.status = "confirmed"
        booking.payment_status = "paid"
        booking.payment_id = payment_id
        booking.payment_method = payment_method
        booking.paid_at = now
        Tour.query.filter(Tour.id == booking.tour_id).update(
            {Tour.total_bookings: Tour.total_bookings + 1},
            synchronize_session="fetch",
        )

    @staticmethod
    def _mark_order_paid(order, payment_id, payment_method, now):
        order.status = "processing"
        order.payment_status = "paid"
        order.payment_id = payment_id
        order.payment_method = payment_method
        order.paid_at = now

    @staticmethod
    def complete(resolved, gateway_transaction_id, raw_payload, amount=None, gateway=None):
        transaction = resolved.transaction
        now = utcnow()
        values = {
            SettlementTransaction.status: STATUS_COMPLETED,
            SettlementTransaction.gateway_transaction_id: str(gateway_transaction_id),
            SettlementTransaction.gateway_response: raw_payload,
            SettlementTransaction.completed_at: now,
        }
        if amount is not None:
            values[SettlementTransaction.amount] = amount
        if gateway:
            values[SettlementTransaction.payment_gateway] = gateway

        db.session.flush()
        updated = SettlementTransaction.query.filter(
            SettlementTransaction.id == transaction.id,
            SettlementTransaction.status != STATUS_COMPLETED,
        ).update(values, synchronize_session="fetch")
        if not updated:
            current_app.logger.info(
                "Transaction %s (%s) already completed; ignoring redelivery of %s",
                transaction.id,
                transaction.payment_reference,
                gateway_transaction_id,
            )
            return False

        payment_id = str(gateway_transaction_id)
        payment_method = f"{current_app.config['PAYMENT_METHOD_LABEL']} ({gateway})" if gateway else transaction.payment_method
        if resolved.booking is not None:
            LedgerService._mark_booking_paid(resolved.booking, payment_id, payment_method, now)
        elif resolved.order is not None:
            LedgerService._mark_order_paid(resolved.order, payment_id, payment_method, now)

        db.session.flush()
        current_app.logger.info(
            "Transaction %s (%s) completed with gateway transfer %s",
            transaction.id,
            transaction.payment_reference,
            gateway_transaction_id,
        )
        return True
