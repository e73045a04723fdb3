from tourpay.extensions import db
from tourpay.models.base import Money, PKType, Rate, TimestampMixin


class RevenueShare(TimestampMixin, db.Model):
    __tablename__ = "revenue_shares"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    transaction_id = db.Column(
        PKType, db.ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    beneficiary_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    beneficiary_role = db.Column(db.String(16), nullable=False, index=True)
    entity_id = db.Column(PKType, nullable=False)
    entity_type = db.Column(db.String(20), nullable=False)
    gross_amount = db.Column(Money, nullable=False)
    commission_rate = db.Column(Rate, nullable=False, default=0)
    commission_amount = db.Column(Money, nullable=False, default=0)
    net_amount = db.Column(Money, nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="VND")
    payout_status = db.Column(db.String(20), nullable=False, default="pending", index=True)
    payout_date = db.Column(db.DateTime(timezone=True), nullable=True)
    payout_reference = db.Column(db.String(100), nullable=True)

    transaction = db.relationship("SettlementTransaction", back_populates="revenue_shares")
    beneficiary = db.relationship("User", back_populates="revenue_shares")

    __table_args__ = (
        db.Index("ix_revenue_shares_beneficiary_payout", "beneficiary_id", "payout_status"),
    )
