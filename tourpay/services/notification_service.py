from flask import current_app

from tourpay.extensions import db
from tourpay.models import Notification
from tourpay.services.realtime_service import (
    ADMIN_CHANNEL,
    EVENT_PAYMENT_SUCCESS,
    EVENT_TRANSACTION_UPDATED,
    RealtimeService,
    payment_channel,
    provider_channel,
)


class NotificationService:
    @staticmethod
    def push(user_id, title, message, category="general"):
        notification = Notification(user_id=user_id, title=title, message=message, category=category)
        db.session.add(notification)
        db.session.flush()
        return notification

    @staticmethod
    def unread_count(user_id):
        return Notification.query.filter_by(user_id=user_id, is_read=False).count()

    @staticmethod
    def latest_for_user(user_id, limit=10):
        return (
            Notification.query.filter_by(user_id=user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def mark_all_read(user_id):
        Notification.query.filter_by(user_id=user_id, is_read=False).update({"is_read": True})
        db.session.commit()

    @staticmethod
    def send_booking_confirmation(booking, transaction):
        tour = booking.tour
        NotificationService.push(
            booking.customer_id,
            "Booking confirmed",
            f"Payment of {transaction.amount} {transaction.currency} received. "
            f"Booking {booking.booking_number} for {tour.title} on {booking.tour_date.isoformat()} is confirmed.",
            category="payment",
        )
        NotificationService.push(
            tour.provider_id,
            "Payment received",
            f"Booking {booking.booking_number} for {tour.title} has been paid.",
            category="payment",
        )
        db.session.commit()

    @staticmethod
    def send_order_confirmation(order, transaction):
        NotificationService.push(
            order.customer_id,
            "Order paid",
            f"Payment of {transaction.amount} {transaction.currency} received for order {order.order_number}.",
            category="payment",
        )
        for provider_id in NotificationService.order_provider_ids(order):
            NotificationService.push(
                provider_id,
                "New paid order",
                f"Order {order.order_number} containing your products has been paid.",
                category="payment",
            )
        db.session.commit()

    @staticmethod
    def order_provider_ids(order):
        seen = []
        for item in order.items:
            provider_id = item.product.provider_id
            if provider_id not in seen:
                seen.append(provider_id)
        return seen

    @staticmethod
    def settlement_payload(transaction, booking=None, order=None):
        payload = {
            "transactionId": transaction.id,
            "paymentReference": transaction.payment_reference,
            "amount": str(transaction.amount),
            "currency": transaction.currency,
            "status": transaction.status,
            "entityType": transaction.entity_type,
            "entityId": transaction.entity_id,
            "processedAt": transaction.completed_at.isoformat() if transaction.completed_at else None,
        }
        if booking is not None:
            payload["bookingNumber"] = booking.booking_number
        if order is not None:
            payload["orderNumber"] = order.order_number
        return payload

    @staticmethod
    def settlement_audience(transaction, booking=None, order=None):
        reference = booking.booking_number if booking is not None else order.order_number
        audience = [
            (payment_channel(reference), EVENT_PAYMENT_SUCCESS),
            (ADMIN_CHANNEL, EVENT_TRANSACTION_UPDATED),
        ]
        if booking is not None:
            audience.append((provider_channel(booking.tour.provider_id), EVENT_TRANSACTION_UPDATED))
        else:
            for provider_id in NotificationService.order_provider_ids(order):
                audience.append((provider_channel(provider_id), EVENT_TRANSACTION_UPDATED))
        return audience

    @staticmethod
    def fan_out_settlement(transaction, booking=None, order=None):
        published = 0
        try:
            payload = NotificationService.settlement_payload(transaction, booking=booking, order=order)
            audience = NotificationService.settlement_audience(transaction, booking=booking, order=order)
        except Exception:
            current_app.logger.exception("Could not build settlement fan-out for transaction %s", transaction.id)
            return published

        for channel, event in audience:
            try:
                if RealtimeService.publish(channel, event, payload):
                    published += 1
            except Exception as exc:
                current_app.logger.warning("Realtime publish of %s to %s failed: %s", event, channel, exc)

        try:
            if booking is not None:
                NotificationService.send_booking_confirmation(booking, transaction)
            else:
                NotificationService.send_order_confirmation(order, transaction)
        except Exception:
            db.session.rollback()
            current_app.logger.exception("Confirmation notice failed for transaction %s", transaction.id)
        return published
