# Order service module for business logic
import logging
from petavet.models import Order, OrderItem, Product, ProductStatus, ORDER_STATUSES, ORDER_STATUS_TRANSITIONS
from petavet.utils.role_utils import has_permission
from petavet.utils.time_utils import utcnow
from petavet.utils.util import parse_id
from petavet import db

logger = logging.getLogger(__name__)

# Statuses that still hold stock; cancelling from these returns it
STOCK_HOLDING_STATUSES = ('PENDING', 'PROCESSING')


def format_order(order):
    return {
        'id': str(order.id),
        'userId': str(order.customer_id),
        'customerName': order.customer.full_name if order.customer else None,
        'date': order.order_date.isoformat(),
        'status': order.status,
        'paymentMethod': order.payment_method,
        'paymentStatus': order.payment_status,
        'shippingAddress': order.shipping_address,
        'notes': order.notes,
        'items': [
            {
                'id': str(item.product_id),
                'name': item.product.name if item.product else 'Product',
                'price': item.price,
                'quantity': item.quantity
            }
            for item in order.items
        ],
        'total': order.total_amount
    }


def can_view_all_orders(user):
    return has_permission(user, 'read:inventory')


def check_authorization(order, user):
    return order.customer_id == user.id or can_view_all_orders(user)


def get_orders(user):
    query = Order.query
    if not can_view_all_orders(user):
        query = query.filter_by(customer_id=user.id)
    orders = query.order_by(Order.order_date.desc()).all()
    return [format_order(order) for order in orders]


def format_shipping_address(address):
    if isinstance(address, dict):
        lines = [
            address.get('name'),
            address.get('street'),
            f"{address.get('city', '')}, {address.get('state', '')} {address.get('zip', '')}".strip(', '),
            address.get('country')
        ]
        return '\n'.join(line for line in lines if line)
    return str(address)


def create_order(data, user):
    if not data or not data.get('items') or not data.get('paymentMethod') or not data.get('shippingAddress'):
        return None, {'error': 'Payment method, shipping address, and order items are required'}, 400
    if not isinstance(data['items'], list):
        return None, {'error': 'Items must be a list'}, 400

    total_amount = 0
    products_in_order = []
    # Quantity already claimed per product by earlier lines of this order
    requested = {}
    for index, item in enumerate(data['items']):
        if not isinstance(item, dict):
            return None, {'error': f'Invalid item format at index {index}'}, 400
        product_id = parse_id(item.get('productId') or item.get('id'))
        quantity = item.get('quantity', 1)
        if product_id is None or not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            return None, {'error': f'Invalid item format at index {index}'}, 400
        product = db.session.get(Product, product_id)
        if not product or product.status == ProductStatus.DISCONTINUED:
            return None, {'error': f'Product with ID {product_id} not found'}, 404
        requested[product_id] = requested.get(product_id, 0) + quantity
        if product.stock < requested[product_id]:
            return None, {'error': f'Insufficient stock for product {product.name} '
                                   f'(ID: {product_id}). Available: {product.stock}'}, 400
        products_in_order.append((product, quantity))
        total_amount += product.price * quantity

    new_order = Order(
        customer_id=user.id,
        order_date=utcnow(),
        total_amount=round(total_amount, 2),
        status='PENDING',
        payment_method='CARD' if data['paymentMethod'] == 'credit-card' else 'CASH',
        shipping_address=format_shipping_address(data['shippingAddress']),
        notes=f"Payment Method: {data['paymentMethod']}"
    )
    db.session.add(new_order)
    for product, quantity in products_in_order:
        new_order.items.append(OrderItem(product_id=product.id, quantity=quantity, price=product.price))
        product.stock -= quantity
        if product.stock == 0:
            product.status = ProductStatus.OUT_OF_STOCK
    db.session.commit()
    logger.info(f"Order {new_order.id} created for user {user.id}, total {new_order.total_amount}")
    return format_order(new_order), None, 201


def restock(order):
    for item in order.items:
        if item.product:
            item.product.stock += item.quantity
            if item.product.status == ProductStatus.OUT_OF_STOCK:
                item.product.status = ProductStatus.ACTIVE


def update_order_status(order_id, data, user):
    order = db.session.get(Order, order_id)
    if not order:
        return None, {'error': 'Order not found'}, 404
    if order.customer_id != user.id and not has_permission(user, 'write:inventory'):
        return None, {'error': 'Permission denied'}, 403

    new_status = str(data.get('status') or '').strip().upper()
    if not new_status:
        return None, {'error': 'Missing status field'}, 400
    if new_status not in ORDER_STATUSES:
        return None, {'error': f'Invalid status: {new_status}'}, 400

    # Customers may only withdraw their own order before it ships
    if not has_permission(user, 'write:inventory') and new_status != 'CANCELLED':
        return None, {'error': 'Permission denied'}, 403

    if new_status not in ORDER_STATUS_TRANSITIONS.get(order.status, []):
        return None, {'error': f'Invalid status transition from {order.status} to {new_status}'}, 400

    if new_status == 'CANCELLED' and order.status in STOCK_HOLDING_STATUSES:
        restock(order)
    if new_status == 'DELIVERED':
        order.payment_status = 'PAID'
    logger.info(f"Order {order.id}: {order.status} -> {new_status} by user {user.id}")
    order.status = new_status
    db.session.commit()
    return format_order(order), None, 200
