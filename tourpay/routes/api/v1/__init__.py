from flask import Blueprint

from tourpay.routes.api.v1.bookings import api_booking_bp
from tourpay.routes.api.v1.notifications import api_notification_bp
from tourpay.routes.api.v1.payments import api_payment_bp
from tourpay.routes.api.v1.refunds import api_refund_bp
from tourpay.routes.api.v1.revenues import api_revenue_bp
from tourpay.routes.api.v1.transactions import api_transaction_bp

api_v1_bp = Blueprint("api_v1", __name__)
api_v1_bp.register_blueprint(api_payment_bp, url_prefix="/payments")
api_v1_bp.register_blueprint(api_booking_bp, url_prefix="/bookings")
api_v1_bp.register_blueprint(api_transaction_bp, url_prefix="/transactions")
api_v1_bp.register_blueprint(api_revenue_bp, url_prefix="/revenues")
api_v1_bp.register_blueprint(api_refund_bp, url_prefix="/refunds")
api_v1_bp.register_blueprint(api_notification_bp, url_prefix="/notifications")
