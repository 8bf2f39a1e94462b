import enum
from petavet import db
from petavet.utils.time_utils import utcnow


class Role(enum.Enum):
    CUSTOMER = 'CUSTOMER'
    VETERINARIAN = 'VETERINARIAN'
    SECRETARY = 'SECRETARY'
    PETGROOMER = 'PETGROOMER'
    ADMINISTRATOR = 'ADMINISTRATOR'


class UserStatus(enum.Enum):
    ACTIVE = 'ACTIVE'
    INACTIVE = 'INACTIVE'
    SUSPENDED = 'SUSPENDED'


class User(db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password = db.Column(db.String(200), nullable=False)
    full_name = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(40))
    address = db.Column(db.String(255))
    specialization = db.Column(db.String(120))
    role = db.Column(db.Enum(Role), nullable=False, default=Role.CUSTOMER)
    status = db.Column(db.Enum(UserStatus), nullable=False, default=UserStatus.ACTIVE)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    last_login = db.Column(db.DateTime)
    pets = db.relationship('Pet', backref='owner', lazy=True, foreign_keys='Pet.owner_id')
    orders = db.relationship('Order', backref='customer', lazy=True, foreign_keys='Order.customer_id')

    @property
    def is_active(self):
        return self.status == UserStatus.ACTIVE

    def __repr__(self):
        return f'<User {self.username} ({self.role})>'
