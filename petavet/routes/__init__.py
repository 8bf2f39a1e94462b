# petavet/routes/__init__.py
from .auth_routes import auth_ns
from .profile_routes import profile_ns
from .appointment_routes import appointment_ns
from .pet_routes import pet_ns
from .medical_record_routes import medical_record_ns
from .report_routes import report_ns
from .dashboard_routes import dashboard_ns
from .product_routes import product_ns
from .order_routes import order_ns
from .subscription_routes import subscription_ns
from .vet_routes import vet_ns
from .customer_routes import customer_ns


def register_namespaces(api):
    api.add_namespace(auth_ns)
    api.add_namespace(profile_ns)
    api.add_namespace(appointment_ns)
    api.add_namespace(pet_ns)
    api.add_namespace(medical_record_ns)
    api.add_namespace(report_ns)
    api.add_namespace(dashboard_ns)
    api.add_namespace(product_ns)
    api.add_namespace(order_ns)
    api.add_namespace(subscription_ns)
    api.add_namespace(vet_ns)
    api.add_namespace(customer_ns)
