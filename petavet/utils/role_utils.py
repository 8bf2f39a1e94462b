# petavet/utils/role_utils.py
"""Role policy for the whole application.

Every role check (API handlers, navigation, dashboard widget) goes through
the tables in this module. Adding a role means adding it to Role and to the
tables below; nothing else compares role strings.
"""
from petavet.models.user_model import Role

# Role spellings seen in stored data and tokens
ROLE_ALIASES = {
    'ADMIN': Role.ADMINISTRATOR,
    'PET_GROOMER': Role.PETGROOMER,
}

ADMIN_ROLE_NAMES = ('ADMINISTRATOR', 'ADMIN')
STAFF_ROLES = (Role.VETERINARIAN, Role.SECRETARY, Role.PETGROOMER)

ALL_ACTIONS = [
    'read:pets', 'write:pets', 'delete:pets', 'read:all-pets', 'write:any-pet',
    'read:appointments', 'write:appointments', 'read:all-appointments',
    'book:any-pet', 'manage:any-appointment',
    'read:customers', 'write:customers', 'delete:customers',
    'read:users', 'write:users', 'delete:users',
    'read:medical-records', 'write:medical-records', 'read:all-medical-records',
    'read:inventory', 'write:inventory',
    'read:reports', 'write:reports',
    'admin:access'
]

ROLE_PERMISSIONS = {
    Role.ADMINISTRATOR: {
        'actions': list(ALL_ACTIONS)
    },
    Role.VETERINARIAN: {
        'actions': [
            'read:pets', 'write:pets', 'read:all-pets', 'write:any-pet',
            'read:appointments', 'write:appointments', 'book:any-pet',
            'read:customers',
            'read:medical-records', 'write:medical-records', 'read:all-medical-records',
            'read:inventory',
            'read:reports', 'write:reports'
        ]
    },
    Role.SECRETARY: {
        'actions': [
            'read:pets', 'write:pets', 'read:all-pets', 'write:any-pet',
            'read:appointments', 'write:appointments', 'read:all-appointments',
            'book:any-pet', 'manage:any-appointment',
            'read:customers', 'write:customers',
            'read:inventory',
            'read:reports'
        ]
    },
    Role.PETGROOMER: {
        'actions': [
            'read:pets', 'read:all-pets',
            'read:appointments', 'write:appointments',
            'read:inventory'
        ]
    },
    Role.CUSTOMER: {
        'actions': [
            'read:pets', 'write:pets',
            'read:appointments', 'write:appointments',
            'read:medical-records'
        ]
    }
}

NAVIGATION_ITEMS = [
    {
        'href': '/dashboard',
        'title': 'Home Page',
        'roles': ['CUSTOMER', 'VETERINARIAN', 'SECRETARY', 'PETGROOMER', 'ADMINISTRATOR', 'ADMIN']
    },
    {
        'href': '/dashboard/pets',
        'title': 'Pet Management',
        'roles': ['CUSTOMER', 'VETERINARIAN', 'SECRETARY', 'ADMINISTRATOR', 'ADMIN']
    },
    {
        'href': '/dashboard/customers',
        'title': 'Customer Management',
        'roles': ['VETERINARIAN', 'SECRETARY', 'ADMINISTRATOR', 'ADMIN']
    },
    {
        'href': '/dashboard/appointments',
        'title': 'Appointments',
        'roles': ['CUSTOMER', 'VETERINARIAN', 'SECRETARY', 'PETGROOMER', 'ADMINISTRATOR', 'ADMIN']
    },
    {
        'href': '/dashboard/warehouse',
        'title': 'Warehouse',
        'roles': ['PETGROOMER', 'VETERINARIAN', 'SECRETARY', 'ADMINISTRATOR', 'ADMIN']
    },
    {
        'href': '/dashboard/marketplace',
        'title': 'Marketplace',
        'roles': ['CUSTOMER', 'VETERINARIAN', 'SECRETARY', 'ADMINISTRATOR', 'ADMIN']
    },
    {
        'href': '/dashboard/reports',
        'title': 'Reports & Analytics',
        'roles': ['VETERINARIAN', 'SECRETARY', 'ADMINISTRATOR', 'ADMIN']
    }
]

DASHBOARD_CARDS = {
    'customer': [
        {'key': 'pets', 'title': 'My Pets'},
        {'key': 'upcomingAppointments', 'title': 'Upcoming Appointments'},
        {'key': 'recentOrders', 'title': 'Recent Orders'}
    ],
    'staff': [
        {'key': 'todayAppointments', 'title': "Today's Appointments"},
        {'key': 'totalPets', 'title': 'Total Patients'},
        {'key': 'activeCustomers', 'title': 'Active Customers'},
        {'key': 'monthlyRevenue', 'title': 'Monthly Revenue'}
    ],
    'administrator': [
        {'key': 'totalUsers', 'title': 'Total Users'},
        {'key': 'inventoryItems', 'title': 'Inventory Items'},
        {'key': 'monthlyOrders', 'title': 'Monthly Orders'},
        {'key': 'systemHealth', 'title': 'System Health', 'value': 'Good'}
    ]
}

QUICK_ACTIONS = {
    Role.CUSTOMER: [
        {'label': 'Add Pet', 'href': '/dashboard/pets'},
        {'label': 'Book Appointment', 'href': '/dashboard/appointments'},
        {'label': 'Shop Products', 'href': '/dashboard/marketplace'}
    ],
    Role.VETERINARIAN: [
        {'label': 'View Schedule', 'href': '/dashboard/appointments'},
        {'label': 'Patient Records', 'href': '/dashboard/pets'},
        {'label': 'Customer List', 'href': '/dashboard/customers'}
    ],
    Role.SECRETARY: [
        {'label': 'View Schedule', 'href': '/dashboard/appointments'},
        {'label': 'Patient Records', 'href': '/dashboard/pets'},
        {'label': 'Customer List', 'href': '/dashboard/customers'}
    ],
    Role.PETGROOMER: [
        {'label': 'Grooming Schedule', 'href': '/dashboard/appointments'},
        {'label': 'Service History', 'href': '/dashboard/appointments'}
    ],
    Role.ADMINISTRATOR: [
        {'label': 'User Management', 'href': '/dashboard/customers'},
        {'label': 'Inventory', 'href': '/dashboard/warehouse'},
        {'label': 'Analytics', 'href': '/dashboard/reports'}
    ]
}


def _role_name(role):
    if role is None:
        return ''
    if isinstance(role, Role):
        return role.value
    return str(role).strip().upper()


def normalize_role(role):
    """Map a role enum or any-case role string to a Role; unknown roles become CUSTOMER."""
    if isinstance(role, Role):
        return role
    name = _role_name(role)
    if name in ROLE_ALIASES:
        return ROLE_ALIASES[name]
    try:
        return Role(name)
    except ValueError:
        return Role.CUSTOMER


def is_admin(role):
    return _role_name(role) in ADMIN_ROLE_NAMES


def _subject_role(subject):
    # Accepts a User, a Role or a role string
    return getattr(subject, 'role', subject)


def get_user_permissions(user):
    """Get user permissions based on their role"""
    if not user or not getattr(user, 'role', None):
        return {'interface_sections': [], 'actions': []}
    role = normalize_role(user.role)
    return {
        'interface_sections': [item['href'] for item in get_navigation_items(role)],
        'actions': list(ROLE_PERMISSIONS[role]['actions'])
    }


def has_permission(subject, action):
    """Check if a user (or role) may perform a specific action"""
    role = _subject_role(subject)
    if role is None:
        return False
    return action in ROLE_PERMISSIONS[normalize_role(role)]['actions']


def get_navigation_items(role):
    """Navigation entries visible to a role.

    Administrators always see every item. Any other role sees exactly the
    items whose allowlist contains the role, compared case-insensitively.
    """
    name = _role_name(role)
    if not name:
        return []
    if is_admin(name):
        return [dict(item) for item in NAVIGATION_ITEMS]
    return [dict(item) for item in NAVIGATION_ITEMS if name in item['roles']]


def dashboard_bucket(role):
    name = _role_name(role)
    if name == Role.CUSTOMER.value:
        return 'customer'
    if name in (r.value for r in STAFF_ROLES):
        return 'staff'
    if is_admin(name):
        return 'administrator'
    return None


def get_dashboard_layout(role):
    """Stat cards and quick actions for the role-based dashboard widget"""
    bucket = dashboard_bucket(role)
    if bucket is None:
        return {'bucket': None, 'cards': [], 'quickActions': []}
    return {
        'bucket': bucket,
        'cards': [dict(card) for card in DASHBOARD_CARDS[bucket]],
        'quickActions': [dict(action) for action in QUICK_ACTIONS[normalize_role(role)]]
    }


def get_user_data_with_permissions(user):
    """Return user data with their permissions"""
    if not user:
        return None
    return {
        'id': user.id,
        'username': user.username,
        'name': user.full_name,
        'email': user.email,
        'role': user.role.value.lower(),
        'status': user.status.value,
        'permissions': get_user_permissions(user)
    }
