from flask_restx import Namespace, Resource, fields
from flask import request, g
import logging
from petavet import db, bcrypt
from petavet.models import User
from petavet.utils.auth_middleware import login_required

logger = logging.getLogger(__name__)

profile_ns = Namespace('user', description='Current user profile')

DEFAULT_AVATAR = '/abstract-geometric-shapes.png'

profile_update_model = profile_ns.model('ProfileUpdate', {
    'name': fields.String(required=True),
    'email': fields.String(required=True),
    'phone': fields.String(),
    'address': fields.String(),
    'currentPassword': fields.String(description='Required together with newPassword'),
    'newPassword': fields.String()
})


def format_profile(user):
    return {
        'id': user.id,
        'name': user.full_name,
        'email': user.email,
        'username': user.username,
        'phone': user.phone,
        'address': user.address,
        'role': user.role.value.lower(),
        'avatar': DEFAULT_AVATAR,
        'created_at': user.created_at.isoformat() if user.created_at else None,
        'status': user.status.value
    }


@profile_ns.route('/profile')
class Profile(Resource):
    @login_required
    def get(self):
        """Sanitized profile of the logged-in user"""
        return format_profile(g.user), 200

    @login_required
    @profile_ns.expect(profile_update_model)
    def put(self):
        """Update contact details and optionally change the password"""
        user = g.user
        data = request.get_json(silent=True) or {}
        if not data.get('name') or not data.get('email'):
            return {'error': 'Name and email are required'}, 400

        try:
            taken = User.query.filter(User.email == data['email'], User.id != user.id).first()
            if taken:
                return {'error': 'Email is already in use'}, 409

            if data.get('currentPassword') and data.get('newPassword'):
                if not bcrypt.check_password_hash(user.password, data['currentPassword']):
                    return {'error': 'Current password is incorrect'}, 400
                user.password = bcrypt.generate_password_hash(data['newPassword']).decode('utf-8')
                logger.info(f"User {user.id} changed their password")

            user.full_name = data['name']
            user.email = data['email']
            user.phone = data.get('phone') or user.phone
            user.address = data.get('address') or user.address
            db.session.commit()
            return {'success': True, 'message': 'Profile updated successfully'}, 200
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error updating user profile {user.id}: {str(e)}")
            return {'error': 'Failed to update user profile'}, 500
