# Report service: analytics aggregation for the reports dashboard
import logging
from collections import Counter, OrderedDict
from datetime import timedelta

from flask import current_app

from petavet import db
from petavet.models import (
    Appointment, AppointmentStatus, CustomerSubscription, CustomerSubscriptionStatus,
    MedicalRecord, Order, Pet, PetStatus, RecordStatus, Subscription
)
from petavet.utils.time_utils import clinic_now, clinic_today, utcnow

logger = logging.getLogger(__name__)

REPORT_TYPES = ('appointments', 'diagnoses', 'revenue', 'demographics')

DATE_RANGE_DAYS = {
    'last7days': 7,
    'last30days': 30,
    'last90days': 90,
    'lastYear': 365,
    'allTime': None,
}
DEFAULT_DATE_RANGE = 'last30days'
REVENUE_FALLBACK_DAYS = 7

FALLBACK_MONTHLY_APPOINTMENTS = [
    {'month': 'Jan', 'appointments': 45},
    {'month': 'Feb', 'appointments': 52},
    {'month': 'Mar', 'appointments': 49},
]
FALLBACK_APPOINTMENT_TYPES = [
    {'name': 'Check-up', 'value': 45},
    {'name': 'Vaccination', 'value': 28},
    {'name': 'Surgery', 'value': 12},
]
FALLBACK_ANALYTICS = {
    'avgDuration': 45,
    'noShowRate': 4.2,
    'busiestDay': 'Monday',
    'busiestHour': 10,
}
FALLBACK_DIAGNOSES = [
    {'name': 'Skin Conditions', 'value': 32},
    {'name': 'Ear Infections', 'value': 24},
    {'name': 'Digestive Issues', 'value': 18},
]
FALLBACK_TREATMENTS = [
    {'treatment': 'Antibiotics for Infections', 'effectiveness': 95},
    {'treatment': 'Anti-inflammatory for Joint Pain', 'effectiveness': 88},
]
FALLBACK_MONTHLY_REVENUE = [
    {'month': 'Jan', 'revenue': 12500},
    {'month': 'Feb', 'revenue': 14200},
    {'month': 'Mar', 'revenue': 13800},
]
FALLBACK_SERVICE_REVENUE = [
    {'service_type': 'MEDICAL', 'revenue': 82500},
    {'service_type': 'GROOMING', 'revenue': 25000},
]
FALLBACK_SUBSCRIPTION_REVENUE = [
    {'name': 'Basic', 'revenue': 22500},
    {'name': 'Premium', 'revenue': 32000},
]
FALLBACK_SPECIES = [
    {'name': 'Dogs', 'value': 58},
    {'name': 'Cats', 'value': 32},
    {'name': 'Birds', 'value': 5},
]
FALLBACK_AGES = [
    {'age': '< 1 year', 'count': 45},
    {'age': '1-3 years', 'count': 78},
    {'age': '4-7 years', 'count': 92},
]
FALLBACK_DOG_BREEDS = [
    {'breed': 'Labrador Retriever', 'count': 18},
    {'breed': 'German Shepherd', 'count': 14},
]
FALLBACK_CAT_BREEDS = [
    {'breed': 'Domestic Shorthair', 'count': 22},
    {'breed': 'Maine Coon', 'count': 15},
]

# First matching keyword group wins
APPOINTMENT_TYPE_KEYWORDS = [
    ('Check-up', ('checkup', 'check-up', 'check up')),
    ('Vaccination', ('vaccination', 'vaccine')),
    ('Surgery', ('surgery', 'operation')),
    ('Dental', ('dental', 'teeth')),
]
DIAGNOSIS_KEYWORDS = [
    ('Skin Conditions', ('skin', 'dermatitis', 'rash')),
    ('Ear Infections', ('ear', 'otitis')),
    ('Digestive Issues', ('digestive', 'stomach', 'diarrhea')),
    ('Respiratory Problems', ('respiratory', 'cough', 'breathing')),
    ('Joint Pain', ('joint', 'arthritis', 'pain')),
]
AGE_BUCKETS = ['< 1 year', '1-3 years', '4-7 years', '8-12 years', '13+ years']

MONTHLY_LIMIT = 12
DIAGNOSIS_LIMIT = 10
TREATMENT_MIN_RECORDS = 5
TREATMENT_LIMIT = 5
BREED_LIMIT = 5


def fallback(rows, sample):
    return rows if rows else [dict(item) for item in sample]


def range_days(date_range, default_days=None):
    if not date_range:
        date_range = DEFAULT_DATE_RANGE
    if date_range in DATE_RANGE_DAYS:
        return DATE_RANGE_DAYS[date_range]
    return default_days


def normalize_species(species):
    """"dog" -> "Dog"; "all" or empty means no species filter."""
    if not species or species == 'all':
        return None
    return species[0].upper() + species[1:]


def classify(text, keyword_groups):
    lowered = (text or '').lower()
    for label, keywords in keyword_groups:
        if any(keyword in lowered for keyword in keywords):
            return label
    return None


def appointment_type(appointment):
    label = classify(appointment.reason, APPOINTMENT_TYPE_KEYWORDS)
    if label:
        return label
    if 'emergency' in (appointment.reason or '').lower() or appointment.status == AppointmentStatus.EMERGENCY:
        return 'Emergency'
    return 'Other'


def age_bucket(birth_date, today):
    days = (today - birth_date).days
    if days < 365:
        return AGE_BUCKETS[0]
    if days <= 1095:
        return AGE_BUCKETS[1]
    if days <= 2555:
        return AGE_BUCKETS[2]
    if days <= 4380:
        return AGE_BUCKETS[3]
    return AGE_BUCKETS[4]


def monthly_series(timestamps, values, value_key):
    """Sum values per calendar month in chronological order, labelled "%b"."""
    totals = OrderedDict()
    for stamp, value in sorted(zip(timestamps, values), key=lambda pair: pair[0]):
        key = (stamp.year, stamp.month)
        if key not in totals:
            totals[key] = {'month': stamp.strftime('%b'), value_key: 0}
        totals[key][value_key] += value
    return list(totals.values())[:MONTHLY_LIMIT]


def ranked(counter, name_key, value_key, limit=None):
    return [{name_key: name, value_key: count} for name, count in counter.most_common(limit)]


def _appointment_query(date_range, species):
    query = Appointment.query.join(Pet, Appointment.pet_id == Pet.id)
    days = range_days(date_range)
    if days is not None:
        query = query.filter(Appointment.appointment_date >= clinic_now() - timedelta(days=days))
    species_name = normalize_species(species)
    if species_name:
        query = query.filter(Pet.species == species_name)
    return query


def get_appointment_data(date_range, species):
    appointments = _appointment_query(date_range, species).all()

    monthly = monthly_series([a.appointment_date for a in appointments], [1] * len(appointments),
                             'appointments')

    types = Counter(
        appointment_type(a) for a in appointments
        if a.status in (AppointmentStatus.COMPLETED, AppointmentStatus.SCHEDULED)
    )

    if appointments:
        no_shows = sum(1 for a in appointments if a.status == AppointmentStatus.NO_SHOW)
        durations = [a.duration for a in appointments if a.duration is not None]
        days = Counter(a.appointment_date.strftime('%A') for a in appointments)
        hours = Counter(a.appointment_date.hour for a in appointments)
        analytics = {
            'avgDuration': round(sum(durations) / len(durations), 2) if durations else None,
            'noShowRate': round(no_shows / len(appointments) * 100, 2),
            'busiestDay': days.most_common(1)[0][0],
            'busiestHour': hours.most_common(1)[0][0],
        }
    else:
        analytics = dict(FALLBACK_ANALYTICS)

    return {
        'monthlyData': fallback(monthly, FALLBACK_MONTHLY_APPOINTMENTS),
        'typeData': fallback(ranked(types, 'name', 'value'), FALLBACK_APPOINTMENT_TYPES),
        'analytics': analytics,
    }


def get_diagnosis_data(date_range, species):
    query = (MedicalRecord.query
             .join(Pet, MedicalRecord.pet_id == Pet.id)
             .join(Appointment, MedicalRecord.appointment_id == Appointment.id))
    days = range_days(date_range)
    if days is not None:
        query = query.filter(Appointment.appointment_date >= clinic_now() - timedelta(days=days))
    species_name = normalize_species(species)
    if species_name:
        query = query.filter(Pet.species == species_name)
    records = query.all()

    diagnoses = Counter(
        classify(r.diagnosis, DIAGNOSIS_KEYWORDS) or 'Other'
        for r in records if r.diagnosis is not None
    )

    outcomes = {}
    for record in records:
        if record.treatment is None:
            continue
        closed, total = outcomes.get(record.treatment, (0, 0))
        outcomes[record.treatment] = (closed + (record.status == RecordStatus.CLOSED), total + 1)
    treatments = sorted(
        ({'treatment': name, 'effectiveness': round(closed / total * 100, 2)}
         for name, (closed, total) in outcomes.items() if total >= TREATMENT_MIN_RECORDS),
        key=lambda row: row['effectiveness'], reverse=True
    )[:TREATMENT_LIMIT]

    return {
        'diagnosisData': fallback(ranked(diagnoses, 'name', 'value', DIAGNOSIS_LIMIT), FALLBACK_DIAGNOSES),
        'treatmentData': fallback(treatments, FALLBACK_TREATMENTS),
    }


def get_revenue_data(date_range):
    days = range_days(date_range, default_days=REVENUE_FALLBACK_DAYS)
    query = Order.query
    if days is not None:
        query = query.filter(Order.order_date >= utcnow() - timedelta(days=days))
    orders = query.all()
    monthly = monthly_series([o.order_date for o in orders], [o.total_amount for o in orders], 'revenue')

    fee = current_app.config.get('APPOINTMENT_FEE', 50)
    completed = (db.session.query(Appointment.service_type, db.func.count(Appointment.id))
                 .filter(Appointment.status == AppointmentStatus.COMPLETED)
                 .group_by(Appointment.service_type)
                 .all())
    service_revenue = [{'service_type': service_type.value, 'revenue': count * fee}
                       for service_type, count in completed]

    subscription_revenue = []
    for plan in Subscription.query.filter_by(is_active=True).order_by(Subscription.id.asc()).all():
        subscribers = CustomerSubscription.query.filter_by(
            subscription_id=plan.id, status=CustomerSubscriptionStatus.ACTIVE).count()
        subscription_revenue.append({'name': plan.name, 'revenue': round(subscribers * plan.price, 2)})

    return {
        'monthlyRevenue': fallback(monthly, FALLBACK_MONTHLY_REVENUE),
        'serviceRevenue': fallback(service_revenue, FALLBACK_SERVICE_REVENUE),
        'subscriptionRevenue': fallback(subscription_revenue, FALLBACK_SUBSCRIPTION_REVENUE),
    }


def _top_breeds(species):
    rows = (db.session.query(Pet.breed, db.func.count(Pet.id))
            .filter(Pet.species == species, Pet.status == PetStatus.ACTIVE, Pet.breed.isnot(None))
            .group_by(Pet.breed)
            .order_by(db.func.count(Pet.id).desc(), Pet.breed.asc())
            .limit(BREED_LIMIT)
            .all())
    return [{'breed': breed, 'count': count} for breed, count in rows]


def get_demographics_data():
    pets = Pet.query.filter_by(status=PetStatus.ACTIVE).all()
    species = Counter(p.species for p in pets)

    today = clinic_today()
    ages = Counter(age_bucket(p.birth_date, today) for p in pets if p.birth_date is not None)
    age_rows = [{'age': bucket, 'count': ages[bucket]} for bucket in AGE_BUCKETS if ages[bucket]]

    return {
        'speciesData': fallback(ranked(species, 'name', 'value'), FALLBACK_SPECIES),
        'ageData': fallback(age_rows, FALLBACK_AGES),
        'breedData': {
            'dogs': fallback(_top_breeds('Dog'), FALLBACK_DOG_BREEDS),
            'cats': fallback(_top_breeds('Cat'), FALLBACK_CAT_BREEDS),
        },
    }


def build_report(report_type, date_range, species):
    """Assemble one report section, or all four for "all" and unrecognised types."""
    date_range = date_range or DEFAULT_DATE_RANGE
    species = species or 'all'
    logger.debug(f"Building report type={report_type} dateRange={date_range} species={species}")
    builders = {
        'appointments': lambda: get_appointment_data(date_range, species),
        'diagnoses': lambda: get_diagnosis_data(date_range, species),
        'revenue': lambda: get_revenue_data(date_range),
        'demographics': get_demographics_data,
    }
    if report_type in REPORT_TYPES:
        return builders[report_type]()
    return {name: builders[name]() for name in REPORT_TYPES}
