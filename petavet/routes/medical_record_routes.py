from flask_restx import Namespace, Resource, fields
from flask import request, g
import logging
from petavet import db
from petavet.models import Appointment, MedicalRecord, Pet, RecordStatus
from petavet.services.pet_service import parse_iso_date
from petavet.utils.auth_middleware import login_required
from petavet.utils.role_utils import has_permission
from petavet.utils.util import parse_id, permission_required

logger = logging.getLogger(__name__)

medical_record_ns = Namespace('medical-records', description='Medical history of patients')

medical_record_model = medical_record_ns.model('MedicalRecord', {
    'petId': fields.String(required=True),
    'appointmentId': fields.String(description='Appointment the record belongs to'),
    'diagnosis': fields.String(required=True),
    'treatment': fields.String(required=True),
    'prescription': fields.String(),
    'notes': fields.String(),
    'attachments': fields.List(fields.String, description='Attachment URLs'),
    'status': fields.String(description='OPEN, CLOSED or REQUIRES_FOLLOWUP'),
    'followUpDate': fields.String(description='YYYY-MM-DD')
})


def format_record(record):
    return {
        'id': str(record.id),
        'petId': str(record.pet_id),
        'petName': record.pet.name if record.pet else None,
        'appointmentId': str(record.appointment_id) if record.appointment_id else None,
        'diagnosis': record.diagnosis,
        'treatment': record.treatment,
        'prescription': record.prescription or '',
        'notes': record.notes,
        'attachments': record.attachments,
        'status': record.status.value,
        'followUpDate': record.follow_up_date.isoformat() if record.follow_up_date else None,
        'recordDate': record.record_date.isoformat() if record.record_date else None,
        'createdAt': record.created_at.isoformat() if record.created_at else None,
        'updatedAt': record.updated_at.isoformat() if record.updated_at else None,
        'veterinarianId': str(record.veterinarian_id),
        'veterinarianName': record.veterinarian.full_name if record.veterinarian else 'Unknown Veterinarian'
    }


def parse_record_status(value):
    try:
        return RecordStatus(str(value).strip().upper())
    except ValueError:
        allowed = ', '.join(s.value for s in RecordStatus)
        raise ValueError(f'Invalid status. Allowed: {allowed}')


def _query_id(name, label):
    """Return (id, error_response) for an optional numeric query parameter."""
    raw = request.args.get(name)
    if not raw:
        return None, None
    value = parse_id(raw)
    if value is None:
        return None, ({'error': f'Invalid {label} ID'}, 400)
    return value, None


@medical_record_ns.route('')
class MedicalRecordList(Resource):
    @login_required
    @medical_record_ns.doc('list_medical_records', params={
        'id': 'Record ID', 'petId': 'Pet ID', 'appointmentId': 'Appointment ID'
    })
    def get(self):
        """Medical records visible to the current user"""
        user = g.user
        if not has_permission(user, 'read:medical-records'):
            return {'error': 'Forbidden'}, 403

        query = MedicalRecord.query
        for name, label, column in (('id', 'record', MedicalRecord.id),
                                    ('petId', 'pet', MedicalRecord.pet_id),
                                    ('appointmentId', 'appointment', MedicalRecord.appointment_id)):
            value, error = _query_id(name, label)
            if error:
                return error
            if value is not None:
                query = query.filter(column == value)

        try:
            if not has_permission(user, 'read:all-medical-records'):
                query = query.join(Pet, MedicalRecord.pet_id == Pet.id).filter(Pet.owner_id == user.id)
            records = query.order_by(MedicalRecord.record_date.desc()).all()
            return [format_record(r) for r in records], 200
        except Exception as e:
            logger.error(f"Error fetching medical records: {str(e)}")
            return {'error': 'Failed to fetch medical records'}, 500

    @login_required
    @permission_required('write:medical-records')
    @medical_record_ns.expect(medical_record_model)
    def post(self):
        """Create a medical record; the author is recorded as the veterinarian"""
        user = g.user
        data = request.get_json(silent=True) or {}
        if not data.get('petId') or not data.get('diagnosis') or not data.get('treatment'):
            return {'error': 'Missing required fields'}, 400

        pet_id = parse_id(data['petId'])
        if pet_id is None:
            return {'error': 'Invalid pet ID'}, 400
        appointment_id = None
        if data.get('appointmentId'):
            appointment_id = parse_id(data['appointmentId'])
            if appointment_id is None:
                return {'error': 'Invalid appointment ID'}, 400

        try:
            if not db.session.get(Pet, pet_id):
                return {'error': 'Pet not found'}, 404
            if appointment_id is not None:
                appointment = db.session.get(Appointment, appointment_id)
                if not appointment:
                    return {'error': 'Appointment not found'}, 404
                if appointment.pet_id != pet_id:
                    return {'error': 'Appointment does not belong to this pet'}, 400

            record = MedicalRecord(
                pet_id=pet_id,
                appointment_id=appointment_id,
                veterinarian_id=user.id,
                diagnosis=data['diagnosis'],
                treatment=data['treatment'],
                prescription=data.get('prescription') or None,
                notes=data.get('notes') or None,
                attachments=data.get('attachments') or None,
                status=parse_record_status(data['status']) if data.get('status') else RecordStatus.OPEN,
                follow_up_date=parse_iso_date(data.get('followUpDate'))
            )
            db.session.add(record)
            db.session.commit()
            logger.info(f"Medical record {record.id} created for pet {pet_id} by user {user.id}")
            return format_record(record), 201
        except ValueError as ve:
            db.session.rollback()
            return {'error': str(ve)}, 400
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error creating medical record: {str(e)}")
            return {'error': 'Failed to create medical record'}, 500

    @login_required
    @permission_required('write:medical-records')
    @medical_record_ns.expect(medical_record_model)
    @medical_record_ns.doc('update_medical_record', params={'id': 'Record ID'})
    def put(self):
        """Update a medical record"""
        raw_id = request.args.get('id')
        if not raw_id:
            return {'error': 'Medical record ID is required'}, 400
        record_id = parse_id(raw_id)
        if record_id is None:
            return {'error': 'Invalid medical record ID'}, 400
        data = request.get_json(silent=True) or {}

        try:
            record = db.session.get(MedicalRecord, record_id)
            if not record:
                return {'error': 'Medical record not found'}, 404

            record.diagnosis = data.get('diagnosis') or record.diagnosis
            record.treatment = data.get('treatment') or record.treatment
            if 'prescription' in data:
                record.prescription = data['prescription']
            if 'notes' in data:
                record.notes = data['notes']
            if data.get('attachments'):
                record.attachments = data['attachments']
            if data.get('status'):
                record.status = parse_record_status(data['status'])
            if 'followUpDate' in data:
                record.follow_up_date = parse_iso_date(data['followUpDate'])

            db.session.commit()
            return format_record(record), 200
        except ValueError as ve:
            db.session.rollback()
            return {'error': str(ve)}, 400
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error updating medical record {record_id}: {str(e)}")
            return {'error': 'Failed to update medical record'}, 500

    @login_required
    @permission_required('write:medical-records')
    @medical_record_ns.doc('delete_medical_record', params={'id': 'Record ID'})
    def delete(self):
        """Delete a medical record"""
        raw_id = request.args.get('id')
        if not raw_id:
            return {'error': 'Medical record ID is required'}, 400
        record_id = parse_id(raw_id)
        if record_id is None:
            return {'error': 'Invalid medical record ID'}, 400

        try:
            record = db.session.get(MedicalRecord, record_id)
            if not record:
                return {'error': 'Medical record not found'}, 404
            db.session.delete(record)
            db.session.commit()
            logger.info(f"Medical record {record_id} deleted by user {g.user.id}")
            return {'success': True}, 200
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error deleting medical record {record_id}: {str(e)}")
            return {'error': 'Failed to delete medical record'}, 500
