import enum
from petavet import db
from petavet.utils.time_utils import utcnow

DEFAULT_DURATION_MINUTES = 30


class AppointmentStatus(enum.Enum):
    SCHEDULED = 'SCHEDULED'
    COMPLETED = 'COMPLETED'
    CANCELLED = 'CANCELLED'
    NO_SHOW = 'NO_SHOW'
    EMERGENCY = 'EMERGENCY'


class ServiceType(enum.Enum):
    MEDICAL = 'MEDICAL'
    GROOMING = 'GROOMING'


# Statuses that no longer occupy the provider's calendar
INACTIVE_STATUSES = (AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW)


class Appointment(db.Model):
    __tablename__ = 'appointment'
    id = db.Column(db.Integer, primary_key=True)
    pet_id = db.Column(db.Integer, db.ForeignKey('pet.id'), nullable=False)
    service_provider_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    creator_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    service_type = db.Column(db.Enum(ServiceType), nullable=False, default=ServiceType.MEDICAL)
    # Clinic-local wall-clock time, see utils.time_utils
    appointment_date = db.Column(db.DateTime, nullable=False, index=True)
    duration = db.Column(db.Integer, nullable=False, default=DEFAULT_DURATION_MINUTES)
    reason = db.Column(db.Text)
    notes = db.Column(db.Text)
    status = db.Column(db.Enum(AppointmentStatus), nullable=False, default=AppointmentStatus.SCHEDULED)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    provider = db.relationship('User', foreign_keys=[service_provider_id])
    creator = db.relationship('User', foreign_keys=[creator_id])

    @property
    def is_active(self):
        return self.status not in INACTIVE_STATUSES

    def __repr__(self):
        return f'<Appointment {self.id} pet={self.pet_id} at {self.appointment_date}>'
