from tourpay.extensions import db
from tourpay.models.base import Money, PKType, TimestampMixin


class Tour(TimestampMixin, db.Model):
    __tablename__ = "tours"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    provider_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    base_price = db.Column(Money, nullable=False, default=0)
    currency = db.Column(db.String(3), nullable=False, default="VND")
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    total_bookings = db.Column(db.Integer, nullable=False, default=0)

    provider = db.relationship("User", back_populates="tours")
    availabilities = db.relationship("TourAvailability", back_populates="tour", lazy="dynamic")
    bookings = db.relationship("Booking", back_populates="tour", lazy="dynamic")
