from flask_restx import Namespace, Resource, fields
from flask import request, g
import logging
from petavet import db
from petavet.models import Subscription
from petavet.services.subscription_service import (
    cancel_subscription, format_plan, format_subscription, get_active_subscription, subscribe
)
from petavet.utils.auth_middleware import login_required

logger = logging.getLogger(__name__)

subscription_ns = Namespace('subscriptions', description='Membership plans')

subscribe_model = subscription_ns.model('Subscribe', {
    'planId': fields.String(required=True, description='basic, premium or clinic'),
    'paymentMethod': fields.String(description='Defaults to credit_card')
})


@subscription_ns.route('/plans')
class Plans(Resource):
    @login_required
    def get(self):
        """Available plans"""
        plans = Subscription.query.filter_by(is_active=True).order_by(Subscription.price.asc()).all()
        return [format_plan(p) for p in plans], 200


@subscription_ns.route('/current')
class CurrentSubscription(Resource):
    @login_required
    def get(self):
        """The user's active subscription, or null"""
        subscription = get_active_subscription(g.user.id)
        return (format_subscription(subscription) if subscription else None), 200


@subscription_ns.route('/subscribe')
class Subscribe(Resource):
    @login_required
    @subscription_ns.expect(subscribe_model)
    def post(self):
        """Subscribe to a plan"""
        data = request.get_json(silent=True) or {}
        if not data.get('planId'):
            return {'error': 'Plan ID is required'}, 400
        try:
            result, error, status = subscribe(g.user.id, data['planId'], data.get('paymentMethod'))
            return (result, status) if result is not None else (error, status)
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error subscribing to plan: {str(e)}")
            return {'error': 'Failed to subscribe to plan'}, 500


@subscription_ns.route('/cancel')
class Cancel(Resource):
    @login_required
    def post(self):
        """Cancel the active subscription"""
        try:
            return cancel_subscription(g.user.id)
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error cancelling subscription: {str(e)}")
            return {'error': 'Failed to cancel subscription'}, 500
