from tourpay.extensions import db
from tourpay.models.base import Money, PKType, TimestampMixin


class Product(TimestampMixin, db.Model):
    __tablename__ = "products"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    provider_id = db.Column(PKType, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    price = db.Column(Money, nullable=False)
    currency = db.Column(db.String(3), nullable=False, default="VND")
    status = db.Column(db.String(24), nullable=False, default="active", index=True)

    provider = db.relationship("User", back_populates="products")
