from tourpay.extensions import db
from tourpay.models.base import Money, PKType, TimestampMixin

ENTITY_BOOKING = "Booking"
ENTITY_ORDER = "Order"
ENTITY_PROMOTION = "Promotion"


class SettlementTransaction(TimestampMixin, db.Model):
    __tablename__ = "transactions"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    payment_reference = db.Column(db.String(100), nullable=False, unique=True, index=True)
    transaction_type = db.Column(db.String(24), nullable=False)
    user_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = db.Column(Money, nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="VND")
    direction = db.Column(db.String(3), nullable=False, default="in")
    status = db.Column(db.String(20), nullable=False, default="pending", index=True)

    entity_id = db.Column(PKType, nullable=True, index=True)
    entity_type = db.Column(db.String(20), nullable=True)

    payment_method = db.Column(db.String(50), nullable=True)
    payment_gateway = db.Column(db.String(50), nullable=True)
    gateway_transaction_id = db.Column(db.String(200), nullable=True, unique=True, index=True)
    gateway_response = db.Column(db.Text, nullable=True)
    description = db.Column(db.String(500), nullable=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    user = db.relationship("User")
    revenue_shares = db.relationship("RevenueShare", back_populates="transaction", lazy="dynamic")

    __table_args__ = (db.Index("ix_transactions_entity", "entity_type", "entity_id"),)

    @property
    def is_completed(self):
        return self.status == "completed"
