from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from tourpay.extensions import limiter
from tourpay.services import RefundService

api_booking_bp = Blueprint("api_booking", __name__)


@api_booking_bp.post("/<int:booking_id>/calculate-refund")
@login_required
def calculate_refund(booking_id):
    quote = RefundService.calculate_refund(booking_id, actor=current_user)
    return jsonify(quote.to_dict())


@api_booking_bp.put("/<int:booking_id>/cancel")
@login_required
@limiter.limit("10 per minute")
def cancel_booking(booking_id):
    payload = request.get_json(silent=True) or {}
    booking, refund = RefundService.cancel_booking(
        booking_id,
        reason=payload.get("cancellationReason"),
        bank_name=payload.get("refundBankName"),
        bank_code=payload.get("refundBankCode"),
        bank_account=payload.get("refundBankAccount"),
        account_name=payload.get("refundAccountName"),
        actor=current_user,
    )
    return jsonify(
        {
            "message": "Booking cancelled successfully",
            "bookingId": booking.id,
            "status": booking.status,
            "refundId": refund.id if refund else None,
            "refundAmount": str(refund.refund_amount) if refund else "0",
            "refundPercentage": str(refund.refund_percentage) if refund else "0",
        }
    )
