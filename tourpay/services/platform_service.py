from decimal import Decimal, InvalidOperation

from flask import current_app

from tourpay.extensions import db
from tourpay.models import PlatformSetting, User

COMMISSION_RATE_KEY = "platform_commission_rate"


class PlatformService:
    @staticmethod
    def get_setting(key, default=None):
        setting = db.session.get(PlatformSetting, key)
        if not setting:
            return default
        return setting.value

    @staticmethod
    def get_decimal(key, default):
        raw = PlatformService.get_setting(key, str(default))
        try:
            return Decimal(str(raw))
        except InvalidOperation:
            current_app.logger.warning("Platform setting %s has non-decimal value %r; using %s", key, raw, default)
            return Decimal(str(default))

    @staticmethod
    def set_setting(key, value, description=None):
        setting = db.session.get(PlatformSetting, key)
        if setting:
            setting.value = str(value)
        else:
            setting = PlatformSetting(key=key, value=str(value))
            db.session.add(setting)
        if description:
            setting.description = description
        db.session.commit()
        return setting

    @staticmethod
    def commission_rate():
        configured = Decimal(str(current_app.config["PLATFORM_COMMISSION_RATE"]))
        rate = PlatformService.get_decimal(COMMISSION_RATE_KEY, configured)
        if rate < 0 or rate > 1:
            current_app.logger.warning("Commission rate %s out of range; using %s", rate, configured)
            return configured
        return rate

    @staticmethod
    def platform_user():
        configured_id = current_app.config.get("PLATFORM_USER_ID")
        if configured_id:
            user = db.session.get(User, int(configured_id))
            if user:
                return user
            current_app.logger.warning("PLATFORM_USER_ID %s does not match any user", configured_id)
        return User.query.filter_by(role="admin").order_by(User.id.asc()).first()
