# petavet/utils/util.py
from functools import wraps
from flask import g
from petavet.utils.role_utils import has_permission


def permission_required(*actions):
    """Must be stacked below login_required, which sets g.user."""
    def wrapper(fn):
        @wraps(fn)
        def decorator(*args, **kwargs):
            user = getattr(g, 'user', None)
            if user is None or not all(has_permission(user, action) for action in actions):
                return {'error': 'Forbidden'}, 403
            return fn(*args, **kwargs)
        return decorator
    return wrapper


def parse_id(value):
    """Parse a numeric id from a query string or JSON body, None if malformed."""
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return parsed if parsed > 0 else None
