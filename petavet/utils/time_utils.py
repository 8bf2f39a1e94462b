"""Clock helpers.

Appointments are stored as naive datetimes holding the clinic's wall-clock
time. Audit columns (created_at, updated_at) are naive UTC. "Today" and
"now" for scheduling purposes are always resolved in CLINIC_TIMEZONE.
"""
from datetime import datetime, timezone

from dateutil import tz
from flask import current_app, has_app_context


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def clinic_timezone():
    name = current_app.config.get('CLINIC_TIMEZONE', 'UTC') if has_app_context() else 'UTC'
    return tz.gettz(name) or tz.UTC


def clinic_now():
    """Current clinic-local wall-clock time as a naive datetime."""
    return datetime.now(clinic_timezone()).replace(tzinfo=None)


def clinic_today():
    return clinic_now().date()
