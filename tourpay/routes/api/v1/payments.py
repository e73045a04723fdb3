from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from tourpay.services import SettlementService
from tourpay.services.gateway import parse_notification

api_payment_bp = Blueprint("api_payment", __name__)


@api_payment_bp.post("/webhook")
def gateway_webhook():
    payload = request.get_json(silent=True)
    current_app.logger.debug("Gateway webhook payload: %s", payload)
    notification = parse_notification(payload)
    result = SettlementService.process_notification(notification)
    return jsonify(result.to_dict()), 200


@api_payment_bp.get("/status/<reference>")
@login_required
def payment_status(reference):
    return jsonify(SettlementService.payment_status(reference, current_user))
