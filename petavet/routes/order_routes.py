from flask_restx import Namespace, Resource, fields
from flask import request, g
import logging
from petavet import db
from petavet.models import Order
from petavet.services.order_service import (
    check_authorization, create_order, format_order, get_orders, update_order_status
)
from petavet.utils.auth_middleware import login_required
from petavet.utils.util import parse_id

logger = logging.getLogger(__name__)

order_ns = Namespace('orders', path='/store/orders', description='Marketplace orders')

order_item_model = order_ns.model('OrderItem', {
    'productId': fields.String(required=True, description='Product ID'),
    'quantity': fields.Integer(required=True, description='Quantity')
})

order_model = order_ns.model('Order', {
    'items': fields.List(fields.Nested(order_item_model), required=True),
    'paymentMethod': fields.String(required=True, description='credit-card or cash'),
    'shippingAddress': fields.Raw(required=True, description='Address string or {name, street, city, state, zip, country}')
})

status_model = order_ns.model('OrderStatus', {
    'status': fields.String(required=True, description='PROCESSING, SHIPPED, DELIVERED or CANCELLED')
})


@order_ns.route('')
class OrderList(Resource):
    @login_required
    @order_ns.doc('list_orders', params={'id': 'Order ID'})
    def get(self):
        """Own orders for customers, every order for store staff"""
        user = g.user
        try:
            if request.args.get('id'):
                order_id = parse_id(request.args['id'])
                if order_id is None:
                    return {'error': 'Invalid order ID'}, 400
                order = db.session.get(Order, order_id)
                if not order:
                    return {'error': 'Order not found'}, 404
                if not check_authorization(order, user):
                    return {'error': 'Permission denied'}, 403
                return format_order(order), 200
            return {'orders': get_orders(user)}, 200
        except Exception as e:
            logger.error(f"Error fetching orders: {str(e)}")
            return {'error': 'Failed to fetch orders'}, 500

    @login_required
    @order_ns.expect(order_model)
    def post(self):
        """Place an order; stock is reserved immediately"""
        data = request.get_json(silent=True) or {}
        try:
            result, error, status = create_order(data, g.user)
            return (result, status) if result is not None else (error, status)
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error creating order: {str(e)}")
            return {'error': 'Failed to create order'}, 500


@order_ns.route('/<int:order_id>')
class OrderResource(Resource):
    @login_required
    @order_ns.expect(status_model)
    def put(self, order_id):
        """Move an order to its next status"""
        data = request.get_json(silent=True) or {}
        try:
            result, error, status = update_order_status(order_id, data, g.user)
            return (result, status) if result is not None else (error, status)
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error updating order {order_id}: {str(e)}")
            return {'error': 'Failed to update order'}, 500
