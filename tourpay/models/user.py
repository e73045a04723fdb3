from flask_login import UserMixin

from tourpay.extensions import db
from tourpay.models.base import PKType, TimestampMixin

PROVIDER_ROLES = {"tour_guide", "vendor"}


class User(UserMixin, TimestampMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    full_name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    phone = db.Column(db.String(20), nullable=False, default="")
    role = db.Column(db.String(24), nullable=False, default="customer", index=True)
    is_active_user = db.Column(db.Boolean, nullable=False, default=True)

    tours = db.relationship("Tour", back_populates="provider", lazy="dynamic")
    products = db.relationship("Product", back_populates="provider", lazy="dynamic")
    bookings = db.relationship("Booking", back_populates="customer", lazy="dynamic")
    orders = db.relationship("Order", back_populates="customer", lazy="dynamic")
    notifications = db.relationship("Notification", back_populates="user", lazy="dynamic")
    revenue_shares = db.relationship("RevenueShare", back_populates="beneficiary", lazy="dynamic")

    @property
    def is_active(self):
        return bool(self.is_active_user)

    @property
    def is_provider(self):
        return self.role in PROVIDER_ROLES
