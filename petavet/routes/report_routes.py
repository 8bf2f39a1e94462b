from flask_restx import Namespace, Resource
from flask import request
import logging
from petavet.services.report_service import build_report
from petavet.utils.auth_middleware import login_required
from petavet.utils.util import permission_required

logger = logging.getLogger(__name__)

report_ns = Namespace('reports', description='Clinic analytics')


@report_ns.route('')
class Reports(Resource):
    @login_required
    @permission_required('read:reports')
    @report_ns.doc('get_reports', params={
        'type': 'appointments, diagnoses, revenue, demographics or all',
        'dateRange': 'last7days, last30days, last90days, lastYear or allTime',
        'species': 'Species filter, e.g. dog (appointments and diagnoses only)'
    })
    def get(self):
        """Aggregated analytics, with sample data where nothing has been recorded yet"""
        report_type = request.args.get('type') or 'all'
        date_range = request.args.get('dateRange') or 'last30days'
        species = request.args.get('species') or 'all'
        try:
            return build_report(report_type, date_range, species), 200
        except Exception as e:
            logger.error(f"Error fetching reports data: {str(e)}")
            return {'error': 'Failed to fetch reports data'}, 500
