from flask import Blueprint, jsonify, request
from flask_login import current_user

from tourpay.decorators import admin_required, provider_required
from tourpay.services import RevenueService

api_revenue_bp = Blueprint("api_revenue", __name__)


@api_revenue_bp.get("/me")
@provider_required
def my_revenue():
    shares = RevenueService.shares_for_beneficiary(current_user.id, request.args.get("payoutStatus"))
    totals = RevenueService.totals(shares)
    return jsonify(
        {
            "data": [
                {
                    "id": s.id,
                    "transactionId": s.transaction_id,
                    "entityType": s.entity_type,
                    "entityId": s.entity_id,
                    "grossAmount": str(s.gross_amount),
                    "commissionRate": str(s.commission_rate),
                    "commissionAmount": str(s.commission_amount),
                    "netAmount": str(s.net_amount),
                    "currency": s.currency,
                    "payoutStatus": s.payout_status,
                    "createdAt": s.created_at.isoformat(),
                }
                for s in shares
            ],
            "totals": {key: str(value) for key, value in totals.items()},
        }
    )


@api_revenue_bp.get("/statistics")
@admin_required
def revenue_statistics():
    rows = RevenueService.statistics()
    return jsonify(
        [
            {
                "role": row["role"],
                "payoutStatus": row["payout_status"],
                "count": row["count"],
                "gross": str(row["gross"]),
                "commission": str(row["commission"]),
                "net": str(row["net"]),
            }
            for row in rows
        ]
    )
