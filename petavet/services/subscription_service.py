# Subscription service: plan catalogue and customer subscriptions
import logging
from dateutil.relativedelta import relativedelta
from petavet import db
from petavet.models import CustomerSubscription, CustomerSubscriptionStatus, Subscription
from petavet.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

DEFAULT_PLANS = [
    {
        'code': 'basic',
        'name': 'Basic',
        'description': 'Essential features for pet owners',
        'price': 9.99,
        'interval': 'monthly',
        'features': ['Pet profile management', 'Appointment scheduling', 'Medical history access',
                     'Basic notifications'],
    },
    {
        'code': 'premium',
        'name': 'Premium',
        'description': 'Enhanced features for dedicated pet owners',
        'price': 19.99,
        'interval': 'monthly',
        'features': ['All Basic features', 'Priority appointment booking', '24/7 online vet consultation',
                     'Personalized pet care reminders', 'Exclusive discounts on products'],
    },
    {
        'code': 'clinic',
        'name': 'Clinic',
        'description': 'Comprehensive solution for veterinary clinics',
        'price': 49.99,
        'interval': 'monthly',
        'features': ['All Premium features', 'Staff management', 'Inventory tracking', 'Advanced analytics',
                     'Client management', 'Multi-location support'],
    },
]


def seed_subscription_plans():
    """Insert the default plans that are missing; returns how many were added."""
    added = 0
    for plan in DEFAULT_PLANS:
        if Subscription.query.filter_by(code=plan['code']).first():
            continue
        db.session.add(Subscription(**plan))
        added += 1
    db.session.commit()
    return added


def format_plan(plan):
    return {
        'id': plan.code,
        'name': plan.name,
        'description': plan.description,
        'price': plan.price,
        'interval': plan.interval,
        'features': plan.features or [],
        'isActive': plan.is_active
    }


def format_subscription(subscription):
    return {
        'id': str(subscription.id),
        'userId': str(subscription.customer_id),
        'planId': subscription.plan.code,
        'planName': subscription.plan.name,
        'status': subscription.status.value.lower(),
        'startDate': subscription.start_date.isoformat(),
        'endDate': subscription.end_date.isoformat(),
        'renewalDate': subscription.end_date.isoformat() if subscription.auto_renew else None,
        'paymentMethod': subscription.payment_method
    }


def get_active_subscription(customer_id):
    return (CustomerSubscription.query
            .filter_by(customer_id=customer_id, status=CustomerSubscriptionStatus.ACTIVE)
            .order_by(CustomerSubscription.start_date.desc())
            .first())


def subscribe(customer_id, plan_code, payment_method=None):
    """Start a one-year subscription, replacing any active one."""
    plan = Subscription.query.filter_by(code=plan_code, is_active=True).first()
    if not plan:
        return None, {'error': 'Subscription plan not found'}, 404

    current = get_active_subscription(customer_id)
    if current:
        current.status = CustomerSubscriptionStatus.CANCELLED
        current.auto_renew = False

    start = utcnow()
    subscription = CustomerSubscription(
        customer_id=customer_id,
        subscription_id=plan.id,
        start_date=start,
        end_date=start + relativedelta(years=1),
        payment_method=payment_method or 'credit_card',
        status=CustomerSubscriptionStatus.ACTIVE
    )
    db.session.add(subscription)
    db.session.commit()
    logger.info(f"User {customer_id} subscribed to plan {plan.code}")
    return format_subscription(subscription), None, 201


def cancel_subscription(customer_id):
    current = get_active_subscription(customer_id)
    if not current:
        return {'error': 'No active subscription'}, 404
    current.status = CustomerSubscriptionStatus.CANCELLED
    current.auto_renew = False
    db.session.commit()
    logger.info(f"User {customer_id} cancelled subscription {current.id}")
    return {'success': True}, 200
