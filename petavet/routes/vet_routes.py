from flask_restx import Namespace, Resource
from flask import request
import logging
from petavet.models import User, Role, UserStatus
from petavet.utils.auth_middleware import login_required

logger = logging.getLogger(__name__)

vet_ns = Namespace('veterinarians', description='Service providers available for booking')


# Helper function
def format_vet(vet):
    return {
        'id': str(vet.id),
        'name': vet.full_name,
        'email': vet.email,
        'phone': vet.phone,
        'specialization': vet.specialization,
        'role': vet.role.value.lower()
    }


@vet_ns.route('')
class VetList(Resource):
    @login_required
    @vet_ns.doc('list_veterinarians', params={'serviceType': 'GROOMING lists pet groomers instead'})
    def get(self):
        """Active veterinarians (or groomers)"""
        role = Role.PETGROOMER if (request.args.get('serviceType') or '').upper() == 'GROOMING' \
            else Role.VETERINARIAN
        try:
            vets = (User.query
                    .filter_by(role=role, status=UserStatus.ACTIVE)
                    .order_by(User.full_name.asc())
                    .all())
            return {'veterinarians': [format_vet(v) for v in vets]}, 200
        except Exception as e:
            logger.error(f"Error fetching veterinarians: {str(e)}")
            return {'error': 'Failed to fetch veterinarians'}, 500
