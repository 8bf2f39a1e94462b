"""Endpoint tests for /api/reports."""

from datetime import timedelta

import pytest

from petavet import db
from petavet.models import (
    AppointmentStatus, CustomerSubscription, MedicalRecord, Order, PetStatus, RecordStatus, ServiceType,
    Subscription
)
from petavet.services import report_service
from petavet.services.subscription_service import seed_subscription_plans
from petavet.utils.time_utils import clinic_today, utcnow
from conftest import at


@pytest.fixture
def fetch(client, auth_headers, vet):
    def _fetch(query=''):
        resp = client.get(f'/api/reports{query}', headers=auth_headers(vet))
        assert resp.status_code == 200
        return resp.get_json()
    return _fetch


def add_record(pet, vet, appointment=None, **fields):
    record = MedicalRecord(pet_id=pet.id, veterinarian_id=vet.id,
                           appointment_id=appointment.id if appointment else None, **fields)
    db.session.add(record)
    db.session.commit()
    return record


class TestAccess:
    def test_customer_is_forbidden(self, client, auth_headers, customer):
        resp = client.get('/api/reports', headers=auth_headers(customer))
        assert resp.status_code == 403
        assert resp.get_json() == {'error': 'Forbidden'}

    def test_requires_login(self, client):
        assert client.get('/api/reports').status_code == 401

    def test_secretary_allowed(self, client, auth_headers, secretary):
        assert client.get('/api/reports?type=revenue', headers=auth_headers(secretary)).status_code == 200


class TestSampleData:
    def test_all_sections(self, fetch):
        body = fetch()
        assert set(body) == {'appointments', 'diagnoses', 'revenue', 'demographics'}

    def test_unknown_type_returns_all_sections(self, fetch):
        assert set(fetch('?type=everything')) == {'appointments', 'diagnoses', 'revenue', 'demographics'}

    def test_appointments(self, fetch):
        body = fetch('?type=appointments')
        assert body['monthlyData'] == report_service.FALLBACK_MONTHLY_APPOINTMENTS
        assert body['typeData'] == report_service.FALLBACK_APPOINTMENT_TYPES
        assert body['analytics'] == {'avgDuration': 45, 'noShowRate': 4.2,
                                     'busiestDay': 'Monday', 'busiestHour': 10}

    def test_diagnoses(self, fetch):
        body = fetch('?type=diagnoses')
        assert body['diagnosisData'] == report_service.FALLBACK_DIAGNOSES
        assert body['treatmentData'] == report_service.FALLBACK_TREATMENTS

    def test_revenue(self, fetch):
        body = fetch('?type=revenue')
        assert body['monthlyRevenue'] == report_service.FALLBACK_MONTHLY_REVENUE
        assert body['serviceRevenue'] == report_service.FALLBACK_SERVICE_REVENUE
        assert body['subscriptionRevenue'] == report_service.FALLBACK_SUBSCRIPTION_REVENUE

    def test_demographics(self, fetch):
        body = fetch('?type=demographics')
        assert body['speciesData'] == report_service.FALLBACK_SPECIES
        assert body['ageData'] == report_service.FALLBACK_AGES
        assert body['breedData'] == {'dogs': report_service.FALLBACK_DOG_BREEDS,
                                     'cats': report_service.FALLBACK_CAT_BREEDS}


class TestAppointmentReport:
    @pytest.fixture
    def history(self, make_appointment, pet, vet):
        # 2030-06-10 is a Monday
        make_appointment(pet, vet, at('2030-06-10', 10), reason='Annual checkup')
        make_appointment(pet, vet, at('2030-06-10', 10, 30), reason='Check-up follow up',
                         status=AppointmentStatus.COMPLETED)
        make_appointment(pet, vet, at('2030-07-02', 14), reason='Vaccine booster',
                         status=AppointmentStatus.NO_SHOW)

    def test_aggregates(self, fetch, history):
        body = fetch('?type=appointments&dateRange=allTime')
        assert body['monthlyData'] == [{'month': 'Jun', 'appointments': 2}, {'month': 'Jul', 'appointments': 1}]
        assert body['typeData'] == [{'name': 'Check-up', 'value': 2}]
        assert body['analytics'] == {'avgDuration': 30, 'noShowRate': 33.33,
                                     'busiestDay': 'Monday', 'busiestHour': 10}

    def test_species_filter(self, fetch, history):
        body = fetch('?type=appointments&dateRange=allTime&species=cat')
        assert body['monthlyData'] == report_service.FALLBACK_MONTHLY_APPOINTMENTS
        body = fetch('?type=appointments&dateRange=allTime&species=dog')
        assert body['typeData'] == [{'name': 'Check-up', 'value': 2}]

    def test_date_range_cutoff(self, fetch, make_appointment, pet, vet):
        make_appointment(pet, vet, at('2020-01-06', 9), reason='Dental cleaning')
        assert fetch('?type=appointments&dateRange=last7days')['typeData'] == \
            report_service.FALLBACK_APPOINTMENT_TYPES
        assert fetch('?type=appointments&dateRange=allTime')['typeData'] == [{'name': 'Dental', 'value': 1}]
        # Unrecognised ranges apply no cutoff
        assert fetch('?type=appointments&dateRange=forever')['typeData'] == [{'name': 'Dental', 'value': 1}]


class TestDiagnosisReport:
    def test_counts_only_records_linked_to_appointments(self, fetch, make_appointment, pet, vet):
        visit = make_appointment(pet, vet, at('2030-06-10', 9))
        add_record(pet, vet, visit, diagnosis='Allergic skin rash')
        add_record(pet, vet, visit, diagnosis='Otitis externa, left ear')
        add_record(pet, vet, visit, diagnosis='Broken claw')
        add_record(pet, vet, None, diagnosis='Dermatitis')

        body = fetch('?type=diagnoses&dateRange=allTime')
        assert sorted(body['diagnosisData'], key=lambda row: row['name']) == [
            {'name': 'Ear Infections', 'value': 1},
            {'name': 'Other', 'value': 1},
            {'name': 'Skin Conditions', 'value': 1},
        ]

    def test_treatment_effectiveness_needs_five_records(self, fetch, make_appointment, pet, vet):
        visit = make_appointment(pet, vet, at('2030-06-10', 9))
        for status in [RecordStatus.CLOSED] * 4 + [RecordStatus.OPEN]:
            add_record(pet, vet, visit, diagnosis='Ear infection', treatment='Antibiotics', status=status)
        for _ in range(3):
            add_record(pet, vet, visit, diagnosis='Arthritis', treatment='Rest', status=RecordStatus.CLOSED)

        body = fetch('?type=diagnoses&dateRange=allTime')
        assert body['treatmentData'] == [{'treatment': 'Antibiotics', 'effectiveness': 80.0}]
        assert body['diagnosisData'][0] == {'name': 'Ear Infections', 'value': 5}


class TestRevenueReport:
    def test_live_figures(self, app, fetch, make_appointment, customer, pet, vet):
        seed_subscription_plans()
        premium = Subscription.query.filter_by(code='premium').one()
        db.session.add(CustomerSubscription(customer_id=customer.id, subscription_id=premium.id,
                                            end_date=utcnow() + timedelta(days=365)))
        db.session.add(Order(customer_id=customer.id, total_amount=25.0))
        db.session.add(Order(customer_id=customer.id, total_amount=15.0))
        db.session.commit()
        make_appointment(pet, vet, at('2030-06-10', 9), status=AppointmentStatus.COMPLETED)
        make_appointment(pet, vet, at('2030-06-10', 11), status=AppointmentStatus.COMPLETED)
        make_appointment(pet, vet, at('2030-06-10', 13), status=AppointmentStatus.COMPLETED,
                         service_type=ServiceType.GROOMING)
        make_appointment(pet, vet, at('2030-06-10', 15))

        body = fetch('?type=revenue')
        assert body['monthlyRevenue'] == [{'month': utcnow().strftime('%b'), 'revenue': 40.0}]
        fee = app.config['APPOINTMENT_FEE']
        assert sorted(body['serviceRevenue'], key=lambda row: row['service_type']) == [
            {'service_type': 'GROOMING', 'revenue': fee},
            {'service_type': 'MEDICAL', 'revenue': 2 * fee},
        ]
        assert body['subscriptionRevenue'] == [
            {'name': 'Basic', 'revenue': 0},
            {'name': 'Premium', 'revenue': 19.99},
            {'name': 'Clinic', 'revenue': 0},
        ]

    def test_old_orders_fall_outside_range(self, fetch, customer):
        db.session.add(Order(customer_id=customer.id, total_amount=99.0,
                             order_date=utcnow() - timedelta(days=60)))
        db.session.commit()
        assert fetch('?type=revenue')['monthlyRevenue'] == report_service.FALLBACK_MONTHLY_REVENUE
        assert fetch('?type=revenue&dateRange=last90days')['monthlyRevenue'][0]['revenue'] == 99.0
        # Unrecognised ranges fall back to one week for revenue
        assert fetch('?type=revenue&dateRange=bogus')['monthlyRevenue'] == \
            report_service.FALLBACK_MONTHLY_REVENUE


class TestDemographicsReport:
    def test_live_figures(self, fetch, make_pet, customer):
        young = clinic_today() - timedelta(days=100)
        make_pet(customer, birth_date=young)
        make_pet(customer, name='Max', birth_date=young)
        make_pet(customer, name='Bella', breed='Beagle', birth_date=clinic_today() - timedelta(days=800))
        make_pet(customer, name='Luna', species='Cat', breed='Siamese')
        make_pet(customer, name='Gone', status=PetStatus.INACTIVE)

        body = fetch('?type=demographics')
        assert body['speciesData'] == [{'name': 'Dog', 'value': 3}, {'name': 'Cat', 'value': 1}]
        assert body['ageData'] == [{'age': '< 1 year', 'count': 2}, {'age': '1-3 years', 'count': 1}]
        assert body['breedData']['dogs'] == [{'breed': 'Labrador Retriever', 'count': 2},
                                             {'breed': 'Beagle', 'count': 1}]
        assert body['breedData']['cats'] == [{'breed': 'Siamese', 'count': 1}]


def test_range_days():
    assert report_service.range_days(None) == 30
    assert report_service.range_days('last90days') == 90
    assert report_service.range_days('allTime') is None
    assert report_service.range_days('nonsense') is None
    assert report_service.range_days('nonsense', default_days=7) == 7


def test_age_bucket_boundaries():
    today = clinic_today()
    assert report_service.age_bucket(today - timedelta(days=364), today) == '< 1 year'
    assert report_service.age_bucket(today - timedelta(days=1095), today) == '1-3 years'
    assert report_service.age_bucket(today - timedelta(days=1096), today) == '4-7 years'
    assert report_service.age_bucket(today - timedelta(days=4381), today) == '13+ years'
