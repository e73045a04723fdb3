from tourpay.services.ledger_service import LedgerService
from tourpay.services.notification_service import NotificationService
from tourpay.services.platform_service import PlatformService
from tourpay.services.realtime_service import RealtimeService
from tourpay.services.refund_service import RefundService
from tourpay.services.resolver_service import ResolverService
from tourpay.services.revenue_service import RevenueService
from tourpay.services.settlement_service import SettlementService

__all__ = [
    "LedgerService",
    "NotificationService",
    "PlatformService",
    "RealtimeService",
    "RefundService",
    "ResolverService",
    "RevenueService",
    "SettlementService",
]
