from tourpay.extensions import db
from tourpay.models.base import TimestampMixin


class PlatformSetting(TimestampMixin, db.Model):
    """Runtime overrides for configuration values, e.g. ``platform_commission_rate``."""

    __tablename__ = "platform_settings"

    key = db.Column(db.String(64), primary_key=True)
    value = db.Column(db.String(255), nullable=False)
    description = db.Column(db.String(255), nullable=True)
