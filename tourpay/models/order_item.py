from tourpay.extensions import db
from tourpay.models.base import Money, PKType, TimestampMixin


class OrderItem(TimestampMixin, db.Model):
    __tablename__ = "order_items"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    order_id = db.Column(PKType, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(PKType, db.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    product_name = db.Column(db.String(200), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(Money, nullable=False)
    subtotal = db.Column(Money, nullable=False)

    order = db.relationship("Order", back_populates="items")
    product = db.relationship("Product")

    __table_args__ = (db.CheckConstraint("quantity > 0", name="ck_order_item_quantity_positive"),)
