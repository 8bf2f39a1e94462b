from flask_restx import Namespace, Resource, fields
from flask import request, g
from datetime import timedelta
import logging
from petavet import db
from petavet.models import Appointment, AppointmentStatus, Pet, User, Role
from petavet.services.pet_service import can_view_pet
from petavet.services.scheduling_service import (
    appointments_on, available_slots, build_appointment_datetime, convert_to_24_hour, day_bounds,
    find_conflict, format_appointment, map_service_type, parse_appointment_date, reload_appointment,
    total_slot_count, DEFAULT_TIME
)
from petavet.utils.auth_middleware import login_required
from petavet.utils.role_utils import has_permission, normalize_role
from petavet.utils.time_utils import clinic_today
from petavet.utils.util import parse_id

logger = logging.getLogger(__name__)

appointment_ns = Namespace('appointments', description='Vet appointment scheduling')

PROVIDER_ROLES = (Role.VETERINARIAN, Role.PETGROOMER)
CONFLICT_MESSAGE = ('This veterinarian already has an appointment at this time. '
                    'Please select a different time slot.')

# Swagger models
appointment_create_model = appointment_ns.model('AppointmentCreate', {
    'petId': fields.String(required=True, description='ID of the pet'),
    'date': fields.String(required=True, description='Date as YYYY-MM-DD'),
    'time': fields.String(description='Time as HH:MM or H:MM AM/PM'),
    'type': fields.String(required=True, description='Service description, e.g. "Check-up" or "Grooming"'),
    'notes': fields.String(description='Reason / notes'),
    'veterinarianId': fields.String(description='Provider ID, defaults to the first veterinarian'),
    'isEmergency': fields.Boolean(description='Book as an emergency')
})

appointment_update_model = appointment_ns.model('AppointmentUpdate', {
    'id': fields.String(required=True),
    'date': fields.String(),
    'time': fields.String(),
    'type': fields.String(),
    'notes': fields.String(),
    'status': fields.String(description='SCHEDULED, COMPLETED, CANCELLED, NO_SHOW or EMERGENCY')
})


def can_manage_appointment(user, appointment, pet):
    return (
        pet.owner_id == user.id or
        appointment.service_provider_id == user.id or
        has_permission(user, 'manage:any-appointment')
    )


def resolve_provider(user, requested_id):
    """Return (provider, error_response)."""
    if requested_id:
        provider_id = parse_id(requested_id)
        if provider_id is None:
            return None, ({'error': 'Invalid veterinarian ID'}, 400)
        provider = db.session.get(User, provider_id)
        if not provider or provider.role not in PROVIDER_ROLES:
            return None, ({'error': 'Veterinarian not found'}, 404)
        return provider, None

    provider = User.query.filter_by(role=Role.VETERINARIAN).order_by(User.id.asc()).first()
    if provider:
        return provider, None
    if normalize_role(user.role) in PROVIDER_ROLES:
        return user, None
    return None, ({'error': 'No veterinarian available for appointment'}, 400)


@appointment_ns.route('')
class AppointmentList(Resource):
    @login_required
    @appointment_ns.doc('list_appointments', params={
        'date': 'YYYY-MM-DD', 'petId': 'Pet ID', 'status': 'Appointment status',
        'ownerId': 'Owner ID (staff only)', 'veterinarianId': 'Provider ID (staff only)',
        'isEmergency': 'true or false'
    })
    def get(self):
        """List appointments visible to the current user"""
        user = g.user
        args = request.args

        day = None
        if args.get('date'):
            try:
                day = parse_appointment_date(args['date'])
            except ValueError as ve:
                return {'error': str(ve)}, 400

        try:
            query = Appointment.query
            if args.get('petId'):
                pet_id = parse_id(args['petId'])
                if pet_id is None:
                    return {'error': 'Invalid pet ID'}, 400
                pet = db.session.get(Pet, pet_id)
                if not pet:
                    return {'error': 'Pet not found'}, 404
                if not can_view_pet(user, pet):
                    return {'error': 'Not authorized to view appointments for this pet'}, 403
                query = query.filter(Appointment.pet_id == pet_id)
            elif has_permission(user, 'read:all-appointments'):
                if day is None:
                    today = clinic_today()
                    start, _ = day_bounds(today - timedelta(days=30))
                    _, end = day_bounds(today + timedelta(days=30))
                    query = query.filter(Appointment.appointment_date >= start,
                                         Appointment.appointment_date < end)
            elif normalize_role(user.role) in PROVIDER_ROLES:
                query = query.filter(Appointment.service_provider_id == user.id)
            else:
                query = query.join(Pet, Appointment.pet_id == Pet.id).filter(Pet.owner_id == user.id)

            if day is not None:
                start, end = day_bounds(day)
                query = query.filter(Appointment.appointment_date >= start, Appointment.appointment_date < end)

            if has_permission(user, 'read:all-pets'):
                if args.get('ownerId'):
                    owner_id = parse_id(args['ownerId'])
                    if owner_id is None:
                        return {'error': 'Invalid owner ID'}, 400
                    query = query.filter(Appointment.pet.has(Pet.owner_id == owner_id))
                if args.get('veterinarianId'):
                    provider_id = parse_id(args['veterinarianId'])
                    if provider_id is None:
                        return {'error': 'Invalid veterinarian ID'}, 400
                    query = query.filter(Appointment.service_provider_id == provider_id)

            appointments = query.order_by(Appointment.appointment_date.asc()).all()

            if args.get('status'):
                wanted = args['status'].strip().upper()
                appointments = [a for a in appointments if a.status.value == wanted]

            result = [format_appointment(a) for a in appointments]
            if args.get('isEmergency') in ('true', 'false'):
                wanted = args['isEmergency'] == 'true'
                result = [a for a in result if a['isEmergency'] == wanted]

            logger.debug(f"Returning {len(result)} appointments for user {user.id}")
            return result, 200
        except Exception as e:
            logger.error(f"Error fetching appointments: {str(e)}")
            return {'error': 'Failed to fetch appointments'}, 500

    @login_required
    @appointment_ns.expect(appointment_create_model)
    @appointment_ns.doc('create_appointment', security='BearerAuth')
    def post(self):
        """Book an appointment, rejecting slots that collide with the provider's schedule"""
        user = g.user
        data = request.get_json(silent=True) or {}

        if not data.get('petId') or not data.get('date') or not data.get('type'):
            return {'error': 'Pet, date, and type are required'}, 400

        pet_id = parse_id(data['petId'])
        if pet_id is None:
            return {'error': 'Invalid pet ID'}, 400

        try:
            pet = db.session.get(Pet, pet_id)
            if not pet:
                return {'error': 'Pet not found'}, 404

            if pet.owner_id != user.id and not has_permission(user, 'book:any-pet'):
                return {'error': 'Not authorized to book appointment for this pet'}, 403

            provider, error = resolve_provider(user, data.get('veterinarianId'))
            if error:
                return error

            appointment_time = convert_to_24_hour(data.get('time') or DEFAULT_TIME)
            day = parse_appointment_date(data['date'])
            scheduled_at = build_appointment_datetime(day, appointment_time)

            if find_conflict(provider.id, scheduled_at):
                return {'error': CONFLICT_MESSAGE}, 409

            notes = data.get('notes') or None
            new_appointment = Appointment(
                pet_id=pet.id,
                service_provider_id=provider.id,
                creator_id=user.id,
                service_type=map_service_type(data['type']),
                appointment_date=scheduled_at,
                reason=notes,
                notes=notes,
                status=AppointmentStatus.EMERGENCY if data.get('isEmergency') else AppointmentStatus.SCHEDULED
            )
            db.session.add(new_appointment)
            db.session.commit()
            logger.info(f"Created appointment {new_appointment.id} for pet {pet.id} "
                        f"with provider {provider.id} at {scheduled_at}")

            created = reload_appointment(new_appointment.id)
            if not created:
                raise RuntimeError('Failed to create appointment')
            return format_appointment(created), 201
        except ValueError as ve:
            db.session.rollback()
            return {'error': str(ve)}, 400
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error creating appointment: {str(e)}")
            return {'error': 'Failed to create appointment'}, 500

    @login_required
    @appointment_ns.expect(appointment_update_model)
    @appointment_ns.doc('update_appointment', security='BearerAuth')
    def put(self):
        """Reschedule or update an appointment"""
        user = g.user
        data = request.get_json(silent=True) or {}

        if not data.get('id'):
            return {'error': 'Appointment ID is required'}, 400
        appointment_id = parse_id(data['id'])
        if appointment_id is None:
            return {'error': 'Invalid appointment ID'}, 400

        try:
            appointment = db.session.get(Appointment, appointment_id)
            if not appointment:
                return {'error': 'Appointment not found'}, 404
            pet = db.session.get(Pet, appointment.pet_id)
            if not pet:
                return {'error': 'Pet not found'}, 404
            if not can_manage_appointment(user, appointment, pet):
                return {'error': 'Not authorized to update this appointment'}, 403

            was_active = appointment.is_active
            if data.get('status'):
                try:
                    appointment.status = AppointmentStatus(str(data['status']).strip().upper())
                except ValueError:
                    allowed = ', '.join(s.value for s in AppointmentStatus)
                    return {'error': f"Invalid status. Allowed: {allowed}"}, 400

            scheduled_at = appointment.appointment_date
            rescheduled = bool(data.get('date') or data.get('time'))
            if rescheduled:
                day = parse_appointment_date(data['date']) if data.get('date') \
                    else appointment.appointment_date.date()
                appointment_time = convert_to_24_hour(data['time']) if data.get('time') \
                    else appointment.appointment_date.strftime('%H:%M')
                scheduled_at = build_appointment_datetime(day, appointment_time)

            # A reactivated row must take back a slot nobody else holds
            if appointment.is_active and (rescheduled or not was_active):
                if find_conflict(appointment.service_provider_id, scheduled_at, exclude_id=appointment.id):
                    db.session.rollback()
                    return {'error': CONFLICT_MESSAGE}, 409

            if rescheduled:
                logger.info(f"Rescheduling appointment {appointment.id} from "
                            f"{appointment.appointment_date} to {scheduled_at}")
                appointment.appointment_date = scheduled_at

            if data.get('type'):
                appointment.service_type = map_service_type(data['type'])
            if 'notes' in data:
                appointment.notes = data['notes']

            db.session.commit()
            updated = reload_appointment(appointment.id)
            if not updated:
                raise RuntimeError('Failed to get updated appointment')
            return format_appointment(updated), 200
        except ValueError as ve:
            db.session.rollback()
            return {'error': str(ve)}, 400
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error updating appointment {appointment_id}: {str(e)}")
            return {'error': 'Failed to update appointment'}, 500

    @login_required
    @appointment_ns.doc('cancel_appointment', security='BearerAuth', params={'id': 'Appointment ID'})
    def delete(self):
        """Cancel an appointment (the row is kept with status CANCELLED)"""
        user = g.user
        raw_id = request.args.get('id')
        if not raw_id:
            return {'error': 'Appointment ID is required'}, 400
        appointment_id = parse_id(raw_id)
        if appointment_id is None:
            return {'error': 'Invalid appointment ID'}, 400

        try:
            appointment = db.session.get(Appointment, appointment_id)
            if not appointment:
                return {'error': 'Appointment not found'}, 404
            pet = db.session.get(Pet, appointment.pet_id)
            if not pet:
                return {'error': 'Pet not found'}, 404
            if not can_manage_appointment(user, appointment, pet):
                return {'error': 'Not authorized to delete this appointment'}, 403

            appointment.status = AppointmentStatus.CANCELLED
            db.session.commit()
            logger.info(f"Appointment {appointment_id} cancelled by user {user.id}")
            return {'success': True}, 200
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error deleting appointment {appointment_id}: {str(e)}")
            return {'error': 'Failed to delete appointment'}, 500


@appointment_ns.route('/available-times')
class AvailableTimes(Resource):
    @login_required
    @appointment_ns.doc('available_times', params={'date': 'YYYY-MM-DD', 'veterinarianId': 'Provider ID'})
    def get(self):
        """Free 30-minute slots for a provider on a given day"""
        raw_date = request.args.get('date')
        raw_provider = request.args.get('veterinarianId')
        if not raw_date or not raw_provider:
            return {'error': 'Date and veterinarianId are required'}, 400

        provider_id = parse_id(raw_provider)
        if provider_id is None:
            return {'error': 'Invalid veterinarian ID'}, 400
        try:
            day = parse_appointment_date(raw_date)
        except ValueError as ve:
            return {'error': str(ve)}, 400

        try:
            slots, booked = available_slots(appointments_on(day), provider_id)
            return {
                'success': True,
                'availableSlots': slots,
                'totalSlots': total_slot_count(),
                'bookedSlots': booked,
                'availableCount': len(slots)
            }, 200
        except Exception as e:
            logger.error(f"Error fetching available time slots: {str(e)}")
            return {'error': 'Failed to fetch available time slots'}, 500
