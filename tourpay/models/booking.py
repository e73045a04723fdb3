from tourpay.extensions import db
from tourpay.models.base import Money, PKType, TimestampMixin


class Booking(TimestampMixin, db.Model):
    __tablename__ = "bookings"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    booking_number = db.Column(db.String(20), nullable=False, unique=True, index=True)
    tour_id = db.Column(PKType, db.ForeignKey("tours.id", ondelete="CASCADE"), nullable=False, index=True)
    tour_availability_id = db.Column(
        PKType, db.ForeignKey("tour_availabilities.id", ondelete="SET NULL"), nullable=True, index=True
    )
    customer_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    tour_date = db.Column(db.Date, nullable=False)
    adult_count = db.Column(db.Integer, nullable=False, default=1)
    child_count = db.Column(db.Integer, nullable=False, default=0)
    total_amount = db.Column(Money, nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="VND")

    status = db.Column(db.String(24), nullable=False, default="pending", index=True)
    payment_status = db.Column(db.String(24), nullable=False, default="unpaid", index=True)
    payment_id = db.Column(db.String(100), nullable=True)
    payment_method = db.Column(db.String(50), nullable=True)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)

    cancellation_reason = db.Column(db.String(500), nullable=True)
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)
    refund_amount = db.Column(Money, nullable=True)
    refunded_at = db.Column(db.DateTime(timezone=True), nullable=True)
    refund_bank_name = db.Column(db.String(100), nullable=True)
    refund_bank_code = db.Column(db.String(100), nullable=True)
    refund_bank_account = db.Column(db.String(50), nullable=True)
    refund_account_name = db.Column(db.String(100), nullable=True)

    tour = db.relationship("Tour", back_populates="bookings")
    availability = db.relationship("TourAvailability")
    customer = db.relationship("User", back_populates="bookings")
    refunds = db.relationship("Refund", back_populates="booking", lazy="dynamic")

    __table_args__ = (
        db.Index("ix_bookings_customer_status", "customer_id", "status"),
        db.CheckConstraint("adult_count + child_count > 0", name="ck_booking_participants_positive"),
    )

    @property
    def participants(self):
        return (self.adult_count or 0) + (self.child_count or 0)
