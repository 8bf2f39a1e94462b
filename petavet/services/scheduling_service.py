# Appointment scheduling rules: time normalisation, conflict detection and view models
import logging
from datetime import date, datetime, timedelta

from petavet import db
from petavet.models.appointment_model import (
    Appointment, AppointmentStatus, ServiceType, INACTIVE_STATUSES, DEFAULT_DURATION_MINUTES
)

logger = logging.getLogger(__name__)

CONFLICT_WINDOW_MINUTES = 30
DEFAULT_TIME = '09:00'

# Bookable day: 09:00 to 17:00 inclusive, every 30 minutes
FIRST_SLOT_MINUTES = 9 * 60
LAST_SLOT_MINUTES = 17 * 60
SLOT_LENGTH_MINUTES = 30


def map_service_type(value):
    """Anything mentioning grooming is GROOMING, everything else is MEDICAL."""
    if value and 'GROOM' in str(value).upper():
        return ServiceType.GROOMING
    return ServiceType.MEDICAL


def convert_to_24_hour(value):
    """Normalise "HH:MM" or "H:MM AM/PM" to a zero-padded 24-hour "HH:MM".

    An empty value falls back to the clinic's default opening slot.
    Raises ValueError for anything that is not a wall-clock time.
    """
    if value is None or not str(value).strip():
        return DEFAULT_TIME

    text = str(value).strip().upper()
    modifier = None
    if text.endswith('AM') or text.endswith('PM'):
        modifier = text[-2:]
        text = text[:-2].strip()

    parts = text.split(':')
    if len(parts) != 2 or not parts[0].isdigit() or not parts[1].isdigit() or len(parts[1]) != 2:
        raise ValueError(f'Invalid time: {value}')

    hours, minutes = int(parts[0]), int(parts[1])
    if modifier:
        if not 1 <= hours <= 12:
            raise ValueError(f'Invalid time: {value}')
        if hours == 12:
            hours = 0
        if modifier == 'PM':
            hours += 12

    if hours > 23 or minutes > 59:
        raise ValueError(f'Invalid time: {value}')
    return f'{hours:02d}:{minutes:02d}'


def convert_to_12_hour(value):
    hours, minutes = value.split(':')
    hour24 = int(hours)
    hour12 = 12 if hour24 == 0 else hour24 - 12 if hour24 > 12 else hour24
    period = 'PM' if hour24 >= 12 else 'AM'
    return f'{hour12}:{minutes} {period}'


def parse_appointment_date(value):
    """Parse "YYYY-MM-DD" into a date from its components."""
    if not value or not isinstance(value, str):
        raise ValueError('Date is required')
    parts = value.strip().split('T')[0].split('-')
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        raise ValueError(f'Invalid date: {value}')
    year, month, day = (int(p) for p in parts)
    return date(year, month, day)


def build_appointment_datetime(day, time_24):
    hours, minutes = (int(p) for p in time_24.split(':'))
    return datetime(day.year, day.month, day.day, hours, minutes, 0)


def minutes_of_day(value):
    return value.hour * 60 + value.minute


def detect_conflict(appointments, provider_id, scheduled_at, exclude_id=None,
                    window=CONFLICT_WINDOW_MINUTES):
    """Return the first active appointment of the provider starting within the window, else None.

    Only start times are compared; the stored duration is not taken into account.
    """
    proposed = minutes_of_day(scheduled_at)
    for appointment in appointments:
        if appointment.service_provider_id != provider_id:
            continue
        if appointment.status in INACTIVE_STATUSES:
            continue
        if exclude_id is not None and appointment.id == exclude_id:
            continue
        if appointment.appointment_date.date() != scheduled_at.date():
            continue
        if abs(minutes_of_day(appointment.appointment_date) - proposed) < window:
            return appointment
    return None


def day_bounds(day):
    start = datetime(day.year, day.month, day.day)
    return start, start + timedelta(days=1)


def appointments_on(day):
    start, end = day_bounds(day)
    return (Appointment.query
            .filter(Appointment.appointment_date >= start, Appointment.appointment_date < end)
            .order_by(Appointment.appointment_date.asc())
            .all())


def find_conflict(provider_id, scheduled_at, exclude_id=None):
    conflict = detect_conflict(appointments_on(scheduled_at.date()), provider_id, scheduled_at,
                               exclude_id=exclude_id)
    if conflict:
        logger.info(f"Provider {provider_id} already booked at {conflict.appointment_date} "
                    f"(appointment {conflict.id}); rejected {scheduled_at}")
    return conflict


def available_slots(appointments, provider_id):
    """Free 30-minute slots for the provider given that day's appointments.

    A slot is taken when it overlaps any active appointment interval,
    using each appointment's stored duration.
    """
    busy = []
    for appointment in appointments:
        if appointment.service_provider_id != provider_id or appointment.status in INACTIVE_STATUSES:
            continue
        start = minutes_of_day(appointment.appointment_date)
        busy.append((start, start + (appointment.duration or DEFAULT_DURATION_MINUTES)))

    slots = []
    for slot_start in range(FIRST_SLOT_MINUTES, LAST_SLOT_MINUTES + 1, SLOT_LENGTH_MINUTES):
        slot_end = slot_start + SLOT_LENGTH_MINUTES
        if any(slot_start < end and slot_end > start for start, end in busy):
            continue
        value = f'{slot_start // 60:02d}:{slot_start % 60:02d}'
        slots.append({'value': value, 'label': convert_to_12_hour(value)})
    return slots, len(busy)


def total_slot_count():
    return (LAST_SLOT_MINUTES - FIRST_SLOT_MINUTES) // SLOT_LENGTH_MINUTES + 1


def is_emergency(appointment):
    return (appointment.status == AppointmentStatus.EMERGENCY
            or 'emergency' in (appointment.reason or '').lower())


def format_appointment(appointment):
    pet = appointment.pet
    owner = pet.owner if pet else None
    provider = appointment.provider
    return {
        'id': str(appointment.id),
        'petId': str(appointment.pet_id),
        'petName': pet.name if pet else 'Unknown Pet',
        'ownerId': str(owner.id) if owner else '',
        'ownerName': owner.full_name if owner else 'Unknown Owner',
        'veterinarianId': str(appointment.service_provider_id),
        'veterinarianName': provider.full_name if provider else 'Unknown Veterinarian',
        'date': appointment.appointment_date.date().isoformat(),
        'time': appointment.appointment_date.strftime('%H:%M'),
        'duration': appointment.duration,
        'type': appointment.service_type.value,
        'reason': appointment.reason or '',
        'notes': appointment.notes or '',
        'status': appointment.status.value.lower(),
        'isEmergency': is_emergency(appointment),
        'rejectionReason': appointment.notes if appointment.status == AppointmentStatus.CANCELLED else None,
        'notificationSent': False,
        'createdAt': appointment.created_at.date().isoformat() if appointment.created_at else '-'
    }


def reload_appointment(appointment_id):
    """Fresh read of a row after commit, bypassing the identity map."""
    db.session.expire_all()
    return db.session.get(Appointment, appointment_id)
