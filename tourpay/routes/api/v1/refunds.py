from flask import Blueprint, jsonify, request

from tourpay.decorators import admin_required
from tourpay.extensions import cache
from tourpay.models import Refund
from tourpay.services import RefundService

api_refund_bp = Blueprint("api_refund", __name__)


@api_refund_bp.get("/policy")
@cache.cached(timeout=300)
def refund_policy():
    return jsonify(RefundService.policy_table())


@api_refund_bp.get("")
@admin_required
def list_refunds():
    query = Refund.query
    status = (request.args.get("status") or "").strip().lower()
    if status:
        query = query.filter(Refund.status == status)
    rows = query.order_by(Refund.created_at.desc(), Refund.id.desc()).limit(200).all()
    return jsonify(
        [
            {
                "id": r.id,
                "bookingId": r.booking_id,
                "bookingNumber": r.booking.booking_number,
                "refundAmount": str(r.refund_amount),
                "currency": r.currency,
                "status": r.status,
                "daysBeforeTour": r.days_before_tour,
                "refundPercentage": str(r.refund_percentage),
                "originalAmount": str(r.original_amount),
                "reason": r.reason,
                "createdAt": r.created_at.isoformat(),
            }
            for r in rows
        ]
    )
