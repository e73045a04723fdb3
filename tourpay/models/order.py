from tourpay.extensions import db
from tourpay.models.base import Money, PKType, TimestampMixin


class Order(TimestampMixin, db.Model):
    __tablename__ = "orders"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    order_number = db.Column(db.String(30), nullable=False, unique=True, index=True)
    customer_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    subtotal = db.Column(Money, nullable=False)
    shipping_fee = db.Column(Money, nullable=False, default=0)
    total_amount = db.Column(Money, nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="VND")

    status = db.Column(db.String(24), nullable=False, default="pending", index=True)
    payment_status = db.Column(db.String(24), nullable=False, default="unpaid", index=True)
    payment_id = db.Column(db.String(100), nullable=True)
    payment_method = db.Column(db.String(50), nullable=True)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)

    customer = db.relationship("User", back_populates="orders")
    items = db.relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.id",
        cascade="all, delete-orphan",
    )
