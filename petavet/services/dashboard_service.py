# Dashboard service: stat counters for the role-based home page
from datetime import timedelta

from petavet import db
from petavet.models import (
    Appointment, AppointmentStatus, Order, Pet, PetStatus, Product, ProductStatus, Role, User, UserStatus
)
from petavet.services.scheduling_service import day_bounds
from petavet.utils.role_utils import dashboard_bucket
from petavet.utils.time_utils import clinic_today, utcnow

RECENT_DAYS = 30


def _month_start(now):
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def _order_total(*criteria):
    total = db.session.query(db.func.coalesce(db.func.sum(Order.total_amount), 0)).filter(*criteria).scalar()
    return float(total or 0)


def get_customer_stats(customer_id):
    today_start, _ = day_bounds(clinic_today())
    return {
        'pets': Pet.query.filter_by(owner_id=customer_id, status=PetStatus.ACTIVE).count(),
        'upcomingAppointments': (Appointment.query
                                 .join(Pet, Appointment.pet_id == Pet.id)
                                 .filter(Pet.owner_id == customer_id,
                                         Appointment.appointment_date >= today_start,
                                         Appointment.status == AppointmentStatus.SCHEDULED)
                                 .count()),
        'recentOrders': Order.query.filter(Order.customer_id == customer_id,
                                           Order.order_date >= utcnow() - timedelta(days=RECENT_DAYS)).count(),
    }


def _active_customers():
    return User.query.filter_by(role=Role.CUSTOMER, status=UserStatus.ACTIVE).count()


def get_staff_stats():
    start, end = day_bounds(clinic_today())
    return {
        'todayAppointments': Appointment.query.filter(Appointment.appointment_date >= start,
                                                      Appointment.appointment_date < end,
                                                      Appointment.status == AppointmentStatus.SCHEDULED).count(),
        'totalPets': Pet.query.filter_by(status=PetStatus.ACTIVE).count(),
        'activeCustomers': _active_customers(),
        'monthlyRevenue': round(_order_total(Order.order_date >= _month_start(utcnow()))),
    }


def get_admin_stats():
    now = utcnow()
    return {
        'totalCustomers': _active_customers(),
        'totalUsers': User.query.count(),
        'totalAppointments': Appointment.query.count(),
        'totalProducts': Product.query.filter_by(status=ProductStatus.ACTIVE).count(),
        'inventoryItems': int(db.session.query(db.func.coalesce(db.func.sum(Product.stock), 0)).scalar() or 0),
        'monthlyOrders': Order.query.filter(Order.order_date >= _month_start(now)).count(),
        'recentSales': _order_total(Order.order_date >= now - timedelta(days=RECENT_DAYS)),
        'pendingOrders': Order.query.filter_by(status='PENDING').count(),
    }


def get_stats(user, role=None):
    """Counters for the dashboard bucket of ``role`` (defaults to the user's own role).

    Unknown roles get an empty dict.
    """
    bucket = dashboard_bucket(role or user.role)
    if bucket == 'customer':
        return get_customer_stats(user.id)
    if bucket == 'staff':
        return get_staff_stats()
    if bucket == 'administrator':
        return get_admin_stats()
    return {}
