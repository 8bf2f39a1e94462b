from petavet import db
from petavet.utils.time_utils import utcnow

ORDER_STATUSES = ['PENDING', 'PROCESSING', 'SHIPPED', 'DELIVERED', 'CANCELLED']

ORDER_STATUS_TRANSITIONS = {
    'PENDING': ['PROCESSING', 'CANCELLED'],
    'PROCESSING': ['SHIPPED', 'CANCELLED'],
    'SHIPPED': ['DELIVERED'],
    'DELIVERED': [],
    'CANCELLED': []
}


class Order(db.Model):
    __tablename__ = 'order'
    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    order_date = db.Column(db.DateTime, nullable=False, default=utcnow)
    total_amount = db.Column(db.Float, nullable=False)
    status = db.Column(db.String(20), nullable=False, default='PENDING')
    payment_method = db.Column(db.String(10), nullable=False, default='CARD')
    payment_status = db.Column(db.String(10), nullable=False, default='PENDING')
    shipping_address = db.Column(db.String(500))
    notes = db.Column(db.Text)
    items = db.relationship('OrderItem', backref='order', lazy='subquery', cascade='all, delete-orphan')

    def __repr__(self):
        return f'<Order {self.id} by User {self.customer_id}>'


class OrderItem(db.Model):
    __tablename__ = 'order_item'
    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey('order.id'), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey('product.id'), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    price = db.Column(db.Float, nullable=False)
    product = db.relationship('Product')
