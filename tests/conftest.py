"""
Pytest configuration and fixtures for the petavet API tests.

Each test gets a fresh application bound to an in-memory SQLite database,
an active application context, and small factories for the rows most
tests need.
"""

from datetime import datetime
from itertools import count

import pytest

from petavet import bcrypt, create_app, db
from petavet.config import TestingConfig
from petavet.models import Appointment, AppointmentStatus, Pet, Role, ServiceType, User
from petavet.utils.auth_middleware import create_token_for

DEFAULT_PASSWORD = 'secret123'

_sequence = count(1)


@pytest.fixture
def app():
    """Application with a clean database and a pushed app context."""
    app = create_app(TestingConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make_user(role=Role.CUSTOMER, **overrides):
        n = next(_sequence)
        fields = {
            'username': f'user{n}',
            'email': f'user{n}@example.com',
            'full_name': f'Test User {n}',
            'password': bcrypt.generate_password_hash(DEFAULT_PASSWORD).decode('utf-8'),
            'role': role,
        }
        fields.update(overrides)
        user = User(**fields)
        db.session.add(user)
        db.session.commit()
        return user
    return _make_user


@pytest.fixture
def make_pet(app):
    def _make_pet(owner, **overrides):
        fields = {'owner_id': owner.id, 'name': 'Rex', 'species': 'Dog', 'breed': 'Labrador Retriever'}
        fields.update(overrides)
        pet = Pet(**fields)
        db.session.add(pet)
        db.session.commit()
        return pet
    return _make_pet


@pytest.fixture
def make_appointment(app):
    def _make_appointment(pet, provider, when, **overrides):
        fields = {
            'pet_id': pet.id,
            'service_provider_id': provider.id,
            'creator_id': pet.owner_id,
            'service_type': ServiceType.MEDICAL,
            'appointment_date': when,
            'status': AppointmentStatus.SCHEDULED,
        }
        fields.update(overrides)
        appointment = Appointment(**fields)
        db.session.add(appointment)
        db.session.commit()
        return appointment
    return _make_appointment


@pytest.fixture
def auth_headers(app):
    def _auth_headers(user):
        return {'Authorization': f'Bearer {create_token_for(user)}'}
    return _auth_headers


@pytest.fixture
def customer(make_user):
    return make_user(Role.CUSTOMER, full_name='Jane Owner')


@pytest.fixture
def vet(make_user):
    return make_user(Role.VETERINARIAN, full_name='Dr. Vera Vet')


@pytest.fixture
def secretary(make_user):
    return make_user(Role.SECRETARY)


@pytest.fixture
def admin(make_user):
    return make_user(Role.ADMINISTRATOR)


@pytest.fixture
def pet(make_pet, customer):
    return make_pet(customer)


def at(day, hour, minute=0):
    """Clinic-local datetime on a fixed day, e.g. at('2030-06-10', 9, 30)."""
    year, month, dom = (int(p) for p in day.split('-'))
    return datetime(year, month, dom, hour, minute)
