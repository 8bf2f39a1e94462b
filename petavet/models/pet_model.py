import enum
from petavet import db
from petavet.utils.time_utils import utcnow


class PetStatus(enum.Enum):
    ACTIVE = 'ACTIVE'
    INACTIVE = 'INACTIVE'


class Pet(db.Model):
    __tablename__ = 'pet'
    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    species = db.Column(db.String(50), nullable=False)
    breed = db.Column(db.String(80))
    birth_date = db.Column(db.Date)
    gender = db.Column(db.String(20), nullable=False, default='UNKNOWN')
    weight = db.Column(db.Float)
    color = db.Column(db.String(50))
    microchip_id = db.Column(db.String(50))
    medical_conditions = db.Column(db.Text)
    allergies = db.Column(db.Text)
    medications = db.Column(db.Text)
    notes = db.Column(db.Text)
    profile_image = db.Column(db.String(255))
    status = db.Column(db.Enum(PetStatus), nullable=False, default=PetStatus.ACTIVE)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    appointments = db.relationship('Appointment', backref='pet', lazy=True, cascade='all, delete-orphan')
    medical_records = db.relationship('MedicalRecord', backref='pet', lazy=True, cascade='all, delete-orphan')

    def __repr__(self):
        return f'<Pet {self.name} ({self.species})>'
