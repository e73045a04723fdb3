from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union

from flask import current_app
from sqlalchemy.exc import IntegrityError

from tourpay.extensions import db
from tourpay.models import Booking, Order, SettlementTransaction
from tourpay.models.transaction import ENTITY_BOOKING, ENTITY_ORDER
from tourpay.services.payment_code import (
    BOOKING_PREFIX,
    ORDER_PREFIX,
    is_booking_reference,
    is_order_reference,
)

AMOUNT_TOLERANCE = Decimal("0.01")


@dataclass
class Resolved:
    transaction: SettlementTransaction
    booking: Optional[Booking] = None
    order: Optional[Order] = None
    created: bool = False

    @property
    def entity(self):
        return self.booking if self.booking is not None else self.order


@dataclass
class Unresolved:
    reason: str
    reference: Optional[str] = None


@dataclass
class Skipped:
    reason: str


Resolution = Union[Resolved, Unresolved, Skipped]


class ResolverService:
    @staticmethod
    def _locked_by_reference(reference):
        return (
            SettlementTransaction.query.filter_by(payment_reference=reference)
            .with_for_update()
            .first()
        )

    @staticmethod
    def _locked_by_gateway_id(gateway_transaction_id):
        return (
            SettlementTransaction.query.filter_by(gateway_transaction_id=str(gateway_transaction_id))
            .with_for_update()
            .first()
        )

    @staticmethod
    def _booking_by_number(number):
        return Booking.query.filter_by(booking_number=number).with_for_update().first()

    @staticmethod
    def _order_by_number(number):
        return Order.query.filter_by(order_number=number).with_for_update().first()

    @staticmethod
    def find_entity(reference):
        if is_order_reference(reference):
            return None, ResolverService._order_by_number(reference)
        if is_booking_reference(reference):
            return ResolverService._booking_by_number(reference), None
        if reference.isdigit():
            booking = ResolverService._booking_by_number(f"{BOOKING_PREFIX}{reference}")
            if booking:
                return booking, None
            return None, ResolverService._order_by_number(f"{ORDER_PREFIX}{reference}")
        booking = ResolverService._booking_by_number(reference)
        if booking:
            return booking, None
        return None, ResolverService._order_by_number(reference)

    @staticmethod
    def load_linked(transaction):
        if transaction.entity_id is None:
            return None, None
        if transaction.entity_type == ENTITY_BOOKING:
            return db.session.get(Booking, transaction.entity_id, with_for_update=True), None
        if transaction.entity_type == ENTITY_ORDER:
            return None, db.session.get(Order, transaction.entity_id, with_for_update=True)
        return None, None

    @staticmethod
    def warn_on_amount_mismatch(entity, reference, amount):
        expected = Decimal(str(entity.total_amount))
        if abs(expected - amount) > AMOUNT_TOLERANCE:
            current_app.logger.warning(
                "Amount mismatch for %s: received %s, recorded total %s",
                reference,
                amount,
                expected,
            )
            return True
        return False

    @staticmethod
    def _resolved_from_transaction(transaction, reference):
        booking, order = ResolverService.load_linked(transaction)
        if booking is None and order is None:
            return Unresolved(
                f"Transaction {transaction.id} is not linked to a booking or order.",
                reference=reference,
            )
        return Resolved(transaction=transaction, booking=booking, order=order)

    @staticmethod
    def _new_transaction(booking, order, amount, gateway):
        entity = booking if booking is not None else order
        if booking is not None:
            reference = booking.booking_number
            entity_type, transaction_type = ENTITY_BOOKING, "booking_payment"
        else:
            reference = order.order_number
            entity_type, transaction_type = ENTITY_ORDER, "order_payment"
        return SettlementTransaction(
            payment_reference=reference,
            transaction_type=transaction_type,
            user_id=entity.customer_id,
            amount=amount,
            currency=entity.currency or current_app.config["DEFAULT_CURRENCY"],
            direction="in",
            status="pending",
            entity_id=entity.id,
            entity_type=entity_type,
            payment_method=current_app.config["PAYMENT_METHOD_LABEL"],
            payment_gateway=gateway,
            description=f"{entity_type} payment {reference} via {gateway or 'bank transfer'}",
        )

    @staticmethod
    def resolve(reference, direction, amount, gateway_transaction_id=None, gateway=None) -> Resolution:
        if direction != "in":
            return Skipped("Money-out transaction skipped")

        if gateway_transaction_id is not None:
            delivered = ResolverService._locked_by_gateway_id(gateway_transaction_id)
            if delivered is not None:
                return ResolverService._resolved_from_transaction(delivered, delivered.payment_reference)

        if not reference:
            return Unresolved("No payment code found")

        transaction = ResolverService._locked_by_reference(reference)
        if transaction is not None:
            return ResolverService._resolved_from_transaction(transaction, reference)

        booking, order = ResolverService.find_entity(reference)
        entity = booking if booking is not None else order
        if entity is None:
            return Unresolved("No related order or booking found", reference=reference)

        canonical = booking.booking_number if booking is not None else order.order_number
        if canonical != reference:
            transaction = ResolverService._locked_by_reference(canonical)
            if transaction is not None:
                return Resolved(transaction=transaction, booking=booking, order=order)

        ResolverService.warn_on_amount_mismatch(entity, canonical, amount)
        transaction = ResolverService._new_transaction(booking, order, amount, gateway)
        db.session.add(transaction)
        try:
            db.session.flush()
        except IntegrityError:
            # Another delivery created the row first; continue with theirs.
            db.session.rollback()
            current_app.logger.info("Concurrent transaction creation for %s; reloading", canonical)
            transaction = ResolverService._locked_by_reference(canonical)
            if transaction is None:
                raise
            return ResolverService._resolved_from_transaction(transaction, canonical)

        current_app.logger.info("Created pending transaction %s for %s", transaction.id, canonical)
        return Resolved(transaction=transaction, booking=booking, order=order, created=True)
