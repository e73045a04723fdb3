from tourpay.extensions import db
from tourpay.models.base import Money, PKType, TimestampMixin


class Refund(TimestampMixin, db.Model):
    __tablename__ = "refunds"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    booking_id = db.Column(PKType, db.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    refund_amount = db.Column(Money, nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="VND")
    status = db.Column(db.String(20), nullable=False, default="pending", index=True)

    bank_name = db.Column(db.String(100), nullable=True)
    bank_code = db.Column(db.String(100), nullable=True)
    bank_account = db.Column(db.String(50), nullable=True)
    account_name = db.Column(db.String(100), nullable=True)
    reason = db.Column(db.String(500), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    days_before_tour = db.Column(db.Integer, nullable=False)
    refund_percentage = db.Column(db.Numeric(5, 2), nullable=False)
    original_amount = db.Column(Money, nullable=False)

    created_by = db.Column(PKType, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    booking = db.relationship("Booking", back_populates="refunds")
