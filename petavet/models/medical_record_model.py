import enum
from petavet import db
from petavet.utils.time_utils import utcnow


class RecordStatus(enum.Enum):
    OPEN = 'OPEN'
    CLOSED = 'CLOSED'
    REQUIRES_FOLLOWUP = 'REQUIRES_FOLLOWUP'


class MedicalRecord(db.Model):
    __tablename__ = 'medical_record'
    id = db.Column(db.Integer, primary_key=True)
    pet_id = db.Column(db.Integer, db.ForeignKey('pet.id'), nullable=False)
    veterinarian_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    appointment_id = db.Column(db.Integer, db.ForeignKey('appointment.id'), nullable=True)
    diagnosis = db.Column(db.Text)
    treatment = db.Column(db.Text)
    prescription = db.Column(db.Text)
    notes = db.Column(db.Text)
    attachments = db.Column(db.JSON)
    status = db.Column(db.Enum(RecordStatus), nullable=False, default=RecordStatus.OPEN)
    record_date = db.Column(db.DateTime, nullable=False, default=utcnow)
    follow_up_date = db.Column(db.Date)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    veterinarian = db.relationship('User', foreign_keys=[veterinarian_id])
    appointment = db.relationship('Appointment', backref=db.backref('medical_records', lazy=True))

    def __repr__(self):
        return f'<MedicalRecord {self.id} for Pet {self.pet_id}>'
