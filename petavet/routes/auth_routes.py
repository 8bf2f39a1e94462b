from flask_restx import Namespace, Resource, fields
from flask import request, jsonify, g
from flask_jwt_extended import set_access_cookies, unset_jwt_cookies
from sqlalchemy.exc import IntegrityError
import logging
import re
from petavet import db, bcrypt
from petavet.models import User, Role, UserStatus
from petavet.utils.auth_middleware import create_token_for, login_required
from petavet.utils.role_utils import get_user_data_with_permissions
from petavet.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

auth_ns = Namespace('auth', description='Authentication operations')

register_model = auth_ns.model('Register', {
    'username': fields.String(required=True, description='Username'),
    'email': fields.String(required=True, description='Email'),
    'password': fields.String(required=True, description='Password'),
    'name': fields.String(description='Full name, defaults to the username'),
    'phone': fields.String(description='Phone number'),
    'address': fields.String(description='Postal address')
})

login_model = auth_ns.model('Login', {
    'email': fields.String(required=True, description='Email'),
    'password': fields.String(required=True, description='Password')
})

PASSWORD_REGEX = re.compile(r'^(?=.*[A-Za-z])(?=.*\d).{6,}$')
EMAIL_REGEX = re.compile(r'^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$')


@auth_ns.route('/register')
class Register(Resource):
    @auth_ns.expect(register_model)
    def post(self):
        """Register a new customer account"""
        data = request.get_json(silent=True) or {}
        if not all(data.get(k) for k in ('username', 'email', 'password')):
            return {'error': 'Missing required fields: username, email, password'}, 400

        if not EMAIL_REGEX.match(data['email']):
            return {'error': 'Invalid email format'}, 400

        if not PASSWORD_REGEX.match(data['password']):
            return {'error': 'Password must be at least 6 characters and contain a letter and a digit'}, 400

        if User.query.filter_by(email=data['email']).first():
            return {'error': 'Email is already registered'}, 409
        if User.query.filter_by(username=data['username']).first():
            return {'error': 'Username is already taken'}, 409

        new_user = User(
            username=data['username'],
            email=data['email'],
            password=bcrypt.generate_password_hash(data['password']).decode('utf-8'),
            full_name=data.get('name') or data['username'],
            phone=data.get('phone'),
            address=data.get('address'),
            role=Role.CUSTOMER
        )

        try:
            db.session.add(new_user)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            logger.error(f"Integrity error while registering {data['email']}")
            return {'error': 'Database error: could not register user'}, 500

        logger.info(f"Registered customer {new_user.id} ({new_user.email})")
        return {
            'message': 'User registered successfully',
            'access_token': create_token_for(new_user),
            'user': get_user_data_with_permissions(new_user)
        }, 201


@auth_ns.route('/login')
class Login(Resource):
    @auth_ns.expect(login_model)
    def post(self):
        """Log in and receive an access token (also set as a cookie)"""
        data = request.get_json(silent=True) or {}
        if not data.get('email') or not data.get('password'):
            return {'error': 'Missing required fields: email, password'}, 400

        user = User.query.filter_by(email=data['email']).first()
        if not user or not bcrypt.check_password_hash(user.password, data['password']):
            return {'error': 'Invalid email or password'}, 401

        if user.status != UserStatus.ACTIVE:
            return {'error': 'Your account is not active. Please contact support.'}, 403

        user.last_login = utcnow()
        db.session.commit()

        access_token = create_token_for(user)
        response = jsonify({
            'message': 'Login successful',
            'access_token': access_token,
            'user': get_user_data_with_permissions(user)
        })
        set_access_cookies(response, access_token)
        return response


@auth_ns.route('/logout')
class Logout(Resource):
    def post(self):
        """Clear the access-token cookie"""
        response = jsonify({'message': 'Logged out successfully'})
        unset_jwt_cookies(response)
        return response


@auth_ns.route('/verify')
class VerifyToken(Resource):
    @login_required
    def get(self):
        """Check that the token is valid and return the user it belongs to"""
        return {
            'message': 'Token is valid',
            'user': get_user_data_with_permissions(g.user)
        }, 200
