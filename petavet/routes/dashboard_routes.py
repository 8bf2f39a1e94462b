from flask_restx import Namespace, Resource
from flask import request, g
import logging
from petavet.services.dashboard_service import get_stats
from petavet.utils.auth_middleware import login_required
from petavet.utils.role_utils import (
    dashboard_bucket, get_dashboard_layout, get_navigation_items, get_user_data_with_permissions, has_permission
)

logger = logging.getLogger(__name__)

dashboard_ns = Namespace('dashboard', description='Role-based dashboard data')


@dashboard_ns.route('/stats')
class DashboardStats(Resource):
    @login_required
    @dashboard_ns.doc('dashboard_stats', params={'role': 'Dashboard role, defaults to the current user role'})
    def get(self):
        """Stat counters for the current user's dashboard"""
        user = g.user
        role = request.args.get('role') or user.role
        # Other buckets' counters are only for administrators
        if dashboard_bucket(role) != dashboard_bucket(user.role) and not has_permission(user, 'admin:access'):
            return {'error': 'Forbidden'}, 403
        try:
            return get_stats(user, role), 200
        except Exception as e:
            logger.error(f"Error fetching dashboard stats: {str(e)}")
            return {'error': 'Failed to fetch stats'}, 500


@dashboard_ns.route('/navigation')
class DashboardNavigation(Resource):
    @login_required
    def get(self):
        """Sidebar entries the current user may open"""
        user = g.user
        return {
            'items': get_navigation_items(user.role),
            'user': get_user_data_with_permissions(user)
        }, 200


@dashboard_ns.route('/widget')
class DashboardWidget(Resource):
    @login_required
    def get(self):
        """Stat cards and quick actions, filled with live counters"""
        user = g.user
        try:
            layout = get_dashboard_layout(user.role)
            stats = get_stats(user)
            for card in layout['cards']:
                if 'value' not in card:
                    card['value'] = stats.get(card['key'], 0)
            layout['role'] = user.role.value.lower()
            return layout, 200
        except Exception as e:
            logger.error(f"Error building dashboard widget for user {user.id}: {str(e)}")
            return {'error': 'Failed to build dashboard widget'}, 500
