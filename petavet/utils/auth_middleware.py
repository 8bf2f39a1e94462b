import logging
from functools import wraps

from flask import g, request
from flask_jwt_extended import create_access_token, get_current_user, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from petavet import db
from petavet.models.user_model import User, UserStatus

logger = logging.getLogger(__name__)


def create_token_for(user):
    return create_access_token(identity=str(user.id), additional_claims={'role': user.role.value})


def login_required(f):
    """Resolve the current user from the access token or answer 401."""
    @wraps(f)
    def decorated(*args, **kwargs):
        try:
            verify_jwt_in_request()
        except (JWTExtendedException, PyJWTError) as e:
            logger.debug(f"Rejected unauthenticated request to {request.path}: {e}")
            return {'error': 'Unauthorized'}, 401
        g.user = get_current_user()
        return f(*args, **kwargs)
    return decorated


def setup_auth_middleware(app):
    from petavet import jwt

    @jwt.user_lookup_loader
    def load_user(_jwt_header, jwt_data):
        try:
            user_id = int(jwt_data['sub'])
        except (KeyError, TypeError, ValueError):
            return None
        user = db.session.get(User, user_id)
        if not user or user.status != UserStatus.ACTIVE:
            return None
        return user
