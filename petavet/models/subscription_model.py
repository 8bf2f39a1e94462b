import enum
from petavet import db
from petavet.utils.time_utils import utcnow


class CustomerSubscriptionStatus(enum.Enum):
    ACTIVE = 'ACTIVE'
    CANCELLED = 'CANCELLED'
    EXPIRED = 'EXPIRED'


class Subscription(db.Model):
    __tablename__ = 'subscription'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(30), unique=True, nullable=False)
    name = db.Column(db.String(60), nullable=False)
    description = db.Column(db.String(300))
    price = db.Column(db.Float, nullable=False)
    interval = db.Column(db.String(20), nullable=False, default='monthly')
    features = db.Column(db.JSON, nullable=False, default=list)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def __repr__(self):
        return f'<Subscription {self.code}>'


class CustomerSubscription(db.Model):
    __tablename__ = 'customer_subscription'
    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    subscription_id = db.Column(db.Integer, db.ForeignKey('subscription.id'), nullable=False)
    start_date = db.Column(db.DateTime, nullable=False, default=utcnow)
    end_date = db.Column(db.DateTime, nullable=False)
    auto_renew = db.Column(db.Boolean, nullable=False, default=True)
    payment_method = db.Column(db.String(30), nullable=False, default='credit_card')
    status = db.Column(db.Enum(CustomerSubscriptionStatus), nullable=False,
                       default=CustomerSubscriptionStatus.ACTIVE)
    plan = db.relationship('Subscription')

    def __repr__(self):
        return f'<CustomerSubscription {self.id} user={self.customer_id} plan={self.subscription_id}>'
