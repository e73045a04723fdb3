from collections import namedtuple
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from flask import current_app
from sqlalchemy import func

from tourpay.extensions import db
from tourpay.models import RevenueShare
from tourpay.services.platform_service import PlatformService

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

ROLE_PLATFORM = "platform"
ROLE_PROVIDER = "provider"

OrderLine = namedtuple("OrderLine", ["product_id", "provider_id", "subtotal"])


def round_money(value):
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class ShareLine:
    beneficiary_id: int
    beneficiary_role: str
    entity_id: int
    entity_type: str
    gross_amount: Decimal
    commission_rate: Decimal
    commission_amount: Decimal
    net_amount: Decimal


def platform_share(beneficiary_id, entity_type, entity_id, gross):
    gross = round_money(gross)
    return ShareLine(
        beneficiary_id=beneficiary_id,
        beneficiary_role=ROLE_PLATFORM,
        entity_id=entity_id,
        entity_type=entity_type,
        gross_amount=gross,
        commission_rate=ZERO,
        commission_amount=ZERO,
        net_amount=gross,
    )


def provider_share(beneficiary_id, entity_type, entity_id, gross, rate):
    gross = round_money(gross)
    commission = round_money(gross * Decimal(str(rate)))
    return ShareLine(
        beneficiary_id=beneficiary_id,
        beneficiary_role=ROLE_PROVIDER,
        entity_id=entity_id,
        entity_type=entity_type,
        gross_amount=gross,
        commission_rate=Decimal(str(rate)),
        commission_amount=commission,
        net_amount=gross - commission,
    )


def split_booking(gross, rate, tour_id, booking_id, provider_id, platform_user_id=None):
    lines = []
    if platform_user_id is not None:
        lines.append(platform_share(platform_user_id, "Tour", tour_id, gross))
    lines.append(provider_share(provider_id, "Booking", booking_id, gross, rate))
    return lines


def split_order(lines, rate, order_id, platform_user_id=None):
    by_product = {}
    by_provider = {}
    for line in lines:
        subtotal = Decimal(str(line.subtotal))
        by_product[line.product_id] = by_product.get(line.product_id, ZERO) + subtotal
        by_provider[line.provider_id] = by_provider.get(line.provider_id, ZERO) + subtotal

    shares = []
    if platform_user_id is not None:
        for product_id, gross in by_product.items():
            shares.append(platform_share(platform_user_id, "Product", product_id, gross))
    for provider_id, gross in by_provider.items():
        shares.append(provider_share(provider_id, "Order", order_id, gross, rate))
    return shares


class RevenueService:
    @staticmethod
    def has_shares(transaction_id):
        return db.session.query(RevenueShare.id).filter_by(transaction_id=transaction_id).first() is not None

    @staticmethod
    def plan_shares(transaction, commission_rate, booking=None, order=None, platform_user_id=None):
        if booking is not None:
            return split_booking(
                gross=transaction.amount,
                rate=commission_rate,
                tour_id=booking.tour_id,
                booking_id=booking.id,
                provider_id=booking.tour.provider_id,
                platform_user_id=platform_user_id,
            )
        if order is not None:
            lines = [OrderLine(item.product_id, item.product.provider_id, item.subtotal) for item in order.items]
            return split_order(lines, commission_rate, order_id=order.id, platform_user_id=platform_user_id)
        return []

    @staticmethod
    def create_shares(transaction, commission_rate, booking=None, order=None):
        if RevenueService.has_shares(transaction.id):
            current_app.logger.info("Revenue shares already exist for transaction %s", transaction.id)
            return []

        platform_user = PlatformService.platform_user()
        if platform_user is None:
            current_app.logger.warning(
                "No platform account configured; platform shares skipped for transaction %s", transaction.id
            )

        lines = RevenueService.plan_shares(
            transaction,
            commission_rate,
            booking=booking,
            order=order,
            platform_user_id=platform_user.id if platform_user else None,
        )
        rows = [
            RevenueShare(
                transaction_id=transaction.id,
                beneficiary_id=line.beneficiary_id,
                beneficiary_role=line.beneficiary_role,
                entity_id=line.entity_id,
                entity_type=line.entity_type,
                gross_amount=line.gross_amount,
                commission_rate=line.commission_rate,
                commission_amount=line.commission_amount,
                net_amount=line.net_amount,
                currency=transaction.currency,
                payout_status="pending",
            )
            for line in lines
        ]
        db.session.add_all(rows)
        db.session.flush()
        current_app.logger.info(
            "Created %d revenue shares for transaction %s at commission rate %s",
            len(rows),
            transaction.id,
            commission_rate,
        )
        return rows

    @staticmethod
    def shares_for_beneficiary(user_id, payout_status=None):
        query = RevenueShare.query.filter_by(beneficiary_id=user_id)
        if payout_status:
            query = query.filter_by(payout_status=payout_status)
        return query.order_by(RevenueShare.created_at.desc(), RevenueShare.id.desc()).all()

    @staticmethod
    def totals(shares):
        gross = sum((Decimal(str(s.gross_amount)) for s in shares), ZERO)
        commission = sum((Decimal(str(s.commission_amount)) for s in shares), ZERO)
        net = sum((Decimal(str(s.net_amount)) for s in shares), ZERO)
        return {"gross": gross, "commission": commission, "net": net}

    @staticmethod
    def statistics():
        rows = (
            db.session.query(
                RevenueShare.beneficiary_role,
                RevenueShare.payout_status,
                func.count(RevenueShare.id),
                func.coalesce(func.sum(RevenueShare.gross_amount), 0),
                func.coalesce(func.sum(RevenueShare.commission_amount), 0),
                func.coalesce(func.sum(RevenueShare.net_amount), 0),
            )
            .group_by(RevenueShare.beneficiary_role, RevenueShare.payout_status)
            .all()
        )
        return [
            {
                "role": role,
                "payout_status": payout_status,
                "count": int(count),
                "gross": round_money(gross),
                "commission": round_money(commission),
                "net": round_money(net),
            }
            for role, payout_status, count, gross, commission, net in rows
        ]
