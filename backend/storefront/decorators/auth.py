from functools import wraps
from flask import abort
from flask_jwt_extended import verify_jwt_in_request
from storefront.services.policy import has_role


def require_role(*roles: str):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            if roles and not has_role(*roles):
                abort(403, description='Insufficient role')
            return fn(*args, **kwargs)
        return wrapper
    return outer


def require_auth(fn):
    return require_role()(fn)


def require_admin(fn):
    return require_role('admin')(fn)
