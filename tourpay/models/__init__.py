from tourpay.models.booking import Booking
from tourpay.models.notification import Notification
from tourpay.models.order import Order
from tourpay.models.order_item import OrderItem
from tourpay.models.platform_setting import PlatformSetting
from tourpay.models.product import Product
from tourpay.models.refund import Refund
from tourpay.models.revenue import RevenueShare
from tourpay.models.tour import Tour
from tourpay.models.tour_availability import TourAvailability
from tourpay.models.transaction import SettlementTransaction
from tourpay.models.user import User

__all__ = [
    "User",
    "Tour",
    "TourAvailability",
    "Booking",
    "Product",
    "Order",
    "OrderItem",
    "SettlementTransaction",
    "RevenueShare",
    "Refund",
    "Notification",
    "PlatformSetting",
]
