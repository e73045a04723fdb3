from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from flask import current_app

from tourpay.errors import AppError
from tourpay.extensions import db
from tourpay.models import Booking, Order, SettlementTransaction
from tourpay.services.ledger_service import LedgerService
from tourpay.services.notification_service import NotificationService
from tourpay.services.payment_code import extract_payment_code
from tourpay.services.platform_service import PlatformService
from tourpay.services.resolver_service import Resolved, ResolverService, Skipped, Unresolved
from tourpay.services.revenue_service import RevenueService

OUTCOME_COMPLETED = "completed"
OUTCOME_ALREADY_PROCESSED = "already_processed"
OUTCOME_SKIPPED = "skipped"
OUTCOME_UNRESOLVED = "unresolved"


@dataclass
class WebhookResult:
    success: bool
    message: str
    outcome: str
    transaction_id: Optional[int] = None
    booking_id: Optional[int] = None
    order_id: Optional[int] = None
    processed_at: Optional[datetime] = None

    def to_dict(self):
        body = {"success": self.success, "message": self.message, "outcome": self.outcome}
        if self.transaction_id is not None:
            body["transactionId"] = str(self.transaction_id)
        if self.booking_id is not None:
            body["bookingId"] = str(self.booking_id)
        if self.order_id is not None:
            body["orderId"] = str(self.order_id)
        if self.processed_at is not None:
            body["processedAt"] = self.processed_at.isoformat()
        return body


def _result_for(resolved, success, message, outcome):
    transaction = resolved.transaction
    return WebhookResult(
        success=success,
        message=message,
        outcome=outcome,
        transaction_id=transaction.id,
        booking_id=resolved.booking.id if resolved.booking is not None else None,
        order_id=resolved.order.id if resolved.order is not None else None,
        processed_at=transaction.completed_at,
    )


class SettlementService:
    @staticmethod
    def process_notification(notification):
        log = current_app.logger
        log.info(
            "Processing %s notification %s (%s %s)",
            notification.gateway,
            notification.gateway_transaction_id,
            notification.transfer_type,
            notification.transfer_amount,
        )
        reference = extract_payment_code(notification.content, notification.code)

        try:
            commission_rate = PlatformService.commission_rate()
            resolution = ResolverService.resolve(
                reference,
                notification.transfer_type,
                notification.transfer_amount,
                gateway_transaction_id=notification.gateway_transaction_id,
                gateway=notification.gateway,
            )

            if isinstance(resolution, Skipped):
                db.session.rollback()
                log.info("Notification %s skipped: %s", notification.gateway_transaction_id, resolution.reason)
                return WebhookResult(success=True, message=resolution.reason, outcome=OUTCOME_SKIPPED)

            if isinstance(resolution, Unresolved):
                db.session.rollback()
                log.warning(
                    "Unresolved payment reference %r in notification %s: %s",
                    resolution.reference,
                    notification.gateway_transaction_id,
                    resolution.reason,
                )
                return WebhookResult(success=False, message=resolution.reason, outcome=OUTCOME_UNRESOLVED)

            if not resolution.created:
                ResolverService.warn_on_amount_mismatch(
                    resolution.entity, resolution.transaction.payment_reference, notification.transfer_amount
                )

            transitioned = LedgerService.complete(
                resolution,
                notification.gateway_transaction_id,
                notification.audit_blob(),
                amount=notification.transfer_amount,
                gateway=notification.gateway,
            )
            if not transitioned:
                db.session.rollback()
                return _result_for(resolution, True, "Transaction already processed", OUTCOME_ALREADY_PROCESSED)

            RevenueService.create_shares(
                resolution.transaction,
                commission_rate,
                booking=resolution.booking,
                order=resolution.order,
            )
            db.session.commit()
        except Exception:
            db.session.rollback()
            log.exception("Settlement failed for notification %s", notification.gateway_transaction_id)
            raise

        result = _result_for(resolution, True, "Payment processed", OUTCOME_COMPLETED)
        NotificationService.fan_out_settlement(
            resolution.transaction,
            booking=resolution.booking,
            order=resolution.order,
        )
        return result

    @staticmethod
    def payment_status(reference, user):
        reference = (reference or "").strip().upper()
        booking = Booking.query.filter_by(booking_number=reference).first()
        order = None if booking else Order.query.filter_by(order_number=reference).first()
        entity = booking or order
        if entity is None:
            raise AppError("Payment reference not found.", 404)
        if user.role != "admin" and entity.customer_id != user.id:
            raise AppError("Forbidden.", 403)

        transaction = SettlementTransaction.query.filter_by(payment_reference=reference).first()
        return {
            "paymentReference": reference,
            "entityType": "Booking" if booking else "Order",
            "entityId": entity.id,
            "status": entity.status,
            "paymentStatus": entity.payment_status,
            "amountDue": str(entity.total_amount),
            "transactionId": transaction.id if transaction else None,
            "transactionStatus": transaction.status if transaction else None,
            "amountReceived": str(transaction.amount) if transaction and transaction.is_completed else None,
            "paidAt": transaction.completed_at.isoformat() if transaction and transaction.completed_at else None,
        }
