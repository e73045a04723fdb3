from functools import wraps

from flask import abort
from flask_login import current_user

from tourpay.models.user import PROVIDER_ROLES


def role_required(*roles):
    allowed = set(roles)

    def wrapper(func):
        @wraps(func)
        def inner(*args, **kwargs):
            if not current_user.is_authenticated:
                abort(401)
            if current_user.role not in allowed:
                abort(403)
            return func(*args, **kwargs)

        return inner

    return wrapper


admin_required = role_required("admin")
provider_required = role_required(*PROVIDER_ROLES)
