from flask import Blueprint, jsonify, request

from tourpay.decorators import admin_required
from tourpay.models import SettlementTransaction

api_transaction_bp = Blueprint("api_transaction", __name__)

MAX_PAGE_SIZE = 100


def _serialize(tx):
    return {
        "id": tx.id,
        "paymentReference": tx.payment_reference,
        "type": tx.transaction_type,
        "userId": tx.user_id,
        "amount": str(tx.amount),
        "currency": tx.currency,
        "direction": tx.direction,
        "status": tx.status,
        "entityType": tx.entity_type,
        "entityId": tx.entity_id,
        "paymentGateway": tx.payment_gateway,
        "gatewayTransactionId": tx.gateway_transaction_id,
        "createdAt": tx.created_at.isoformat(),
        "completedAt": tx.completed_at.isoformat() if tx.completed_at else None,
    }


@api_transaction_bp.get("")
@admin_required
def list_transactions():
    page = max(request.args.get("page", 1, type=int), 1)
    page_size = min(max(request.args.get("pageSize", 20, type=int), 1), MAX_PAGE_SIZE)

    query = SettlementTransaction.query
    status = (request.args.get("status") or "").strip().lower()
    if status:
        query = query.filter(SettlementTransaction.status == status)
    entity_type = (request.args.get("entityType") or "").strip()
    if entity_type:
        query = query.filter(SettlementTransaction.entity_type == entity_type)
    search = (request.args.get("search") or "").strip().upper()
    if search:
        query = query.filter(SettlementTransaction.payment_reference.contains(search))

    total = query.count()
    rows = (
        query.order_by(SettlementTransaction.created_at.desc(), SettlementTransaction.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return jsonify(
        {
            "data": [_serialize(tx) for tx in rows],
            "pagination": {"page": page, "pageSize": page_size, "totalCount": total},
        }
    )
