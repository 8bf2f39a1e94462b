from flask_restx import Namespace, Resource, fields
from flask import request
import logging
import re
import secrets
from petavet import db, bcrypt
from petavet.models import Order, Pet, PetStatus, Role, User, UserStatus
from petavet.utils.auth_middleware import login_required
from petavet.utils.util import permission_required

logger = logging.getLogger(__name__)

customer_ns = Namespace('customers', description='Customer management for clinic staff')

customer_model = customer_ns.model('Customer', {
    'name': fields.String(required=True),
    'email': fields.String(required=True),
    'phone': fields.String(),
    'address': fields.String(),
    'city': fields.String(),
    'state': fields.String(),
    'postalCode': fields.String()
})

EMAIL_REGEX = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

SORT_COLUMNS = {
    'full_name': User.full_name,
    'created_at': User.created_at,
    'email': User.email,
}


def format_customer(customer):
    return {
        'id': str(customer.id),
        'name': customer.full_name,
        'email': customer.email,
        'phone': customer.phone,
        'address': customer.address,
        'registrationDate': customer.created_at.date().isoformat() if customer.created_at else '-',
        'lastVisit': customer.last_login.date().isoformat() if customer.last_login else '-',
        'status': customer.status.value.lower(),
        'pets': Pet.query.filter_by(owner_id=customer.id, status=PetStatus.ACTIVE).count(),
        'totalSpent': round(float(
            db.session.query(db.func.coalesce(db.func.sum(Order.total_amount), 0))
            .filter(Order.customer_id == customer.id, Order.status != 'CANCELLED')
            .scalar() or 0), 2)
    }


def unique_username(email):
    base = email.split('@')[0]
    username, suffix = base, 1
    while User.query.filter_by(username=username).first():
        suffix += 1
        username = f'{base}{suffix}'
    return username


@customer_ns.route('')
class CustomerList(Resource):
    @login_required
    @permission_required('read:customers')
    @customer_ns.doc('list_customers', params={
        'search': 'Name, email or phone', 'status': 'ACTIVE, INACTIVE or SUSPENDED',
        'sortBy': 'full_name, created_at or email', 'sortOrder': 'asc or desc'
    })
    def get(self):
        """Search and sort customers"""
        search = request.args.get('search')
        status = request.args.get('status')
        column = SORT_COLUMNS.get(request.args.get('sortBy') or 'full_name', User.full_name)
        descending = (request.args.get('sortOrder') or 'asc').lower() == 'desc'

        query = User.query.filter(User.role == Role.CUSTOMER)
        if search:
            pattern = f'%{search}%'
            query = query.filter(User.full_name.ilike(pattern) | User.email.ilike(pattern)
                                 | User.phone.ilike(pattern))
        if status:
            try:
                query = query.filter(User.status == UserStatus(status.upper()))
            except ValueError:
                return {'error': 'Invalid status'}, 400

        try:
            customers = query.order_by(column.desc() if descending else column.asc()).all()
            return [format_customer(c) for c in customers], 200
        except Exception as e:
            logger.error(f"Error fetching customers: {str(e)}")
            return {'error': 'Failed to fetch customers'}, 500

    @login_required
    @permission_required('write:customers')
    @customer_ns.expect(customer_model)
    def post(self):
        """Register a walk-in customer with a random password"""
        data = request.get_json(silent=True) or {}
        if not data.get('name') or not data.get('email'):
            return {'error': 'Name and email are required'}, 400
        if not EMAIL_REGEX.match(data['email']):
            return {'error': 'Invalid email format'}, 400
        if User.query.filter_by(email=data['email']).first():
            return {'error': 'Customer with this email already exists'}, 409

        try:
            address_parts = [data.get('address'), data.get('city'), data.get('state'), data.get('postalCode')]
            customer = User(
                username=unique_username(data['email']),
                email=data['email'],
                password=bcrypt.generate_password_hash(secrets.token_urlsafe(16)).decode('utf-8'),
                full_name=data['name'],
                phone=data.get('phone') or '',
                address=', '.join(part for part in address_parts if part),
                role=Role.CUSTOMER
            )
            db.session.add(customer)
            db.session.commit()
            logger.info(f"Customer {customer.id} created by staff")
            return format_customer(customer), 201
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error creating customer: {str(e)}")
            return {'error': 'Failed to create customer'}, 500
