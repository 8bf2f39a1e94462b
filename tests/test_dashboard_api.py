"""Endpoint tests for /api/dashboard."""

from datetime import timedelta

from petavet import db
from petavet.models import AppointmentStatus, Order, PetStatus, Product, Role
from petavet.utils.time_utils import clinic_now


class TestStats:
    def test_customer_counters(self, client, auth_headers, make_pet, make_appointment, customer, pet, vet):
        make_pet(customer, name='Old', status=PetStatus.INACTIVE)
        upcoming = clinic_now() + timedelta(days=2)
        make_appointment(pet, vet, upcoming)
        make_appointment(pet, vet, upcoming + timedelta(hours=1), status=AppointmentStatus.CANCELLED)
        make_appointment(pet, vet, clinic_now() - timedelta(days=3))
        db.session.add(Order(customer_id=customer.id, total_amount=10.0))
        db.session.commit()

        resp = client.get('/api/dashboard/stats', headers=auth_headers(customer))
        assert resp.status_code == 200
        assert resp.get_json() == {'pets': 1, 'upcomingAppointments': 1, 'recentOrders': 1}

    def test_staff_counters(self, client, auth_headers, make_appointment, customer, pet, vet):
        now = clinic_now()
        make_appointment(pet, vet, now.replace(hour=9, minute=0, second=0, microsecond=0))
        make_appointment(pet, vet, now.replace(hour=10, minute=0, second=0, microsecond=0),
                         status=AppointmentStatus.COMPLETED)
        db.session.add(Order(customer_id=customer.id, total_amount=120.4))
        db.session.commit()

        body = client.get('/api/dashboard/stats', headers=auth_headers(vet)).get_json()
        assert body == {'todayAppointments': 1, 'totalPets': 1, 'activeCustomers': 1, 'monthlyRevenue': 120}

    def test_admin_counters(self, client, auth_headers, admin, customer, vet):
        db.session.add(Product(name='Chew toy', category='toys', price=4.5, stock=12))
        db.session.add(Product(name='Leash', category='accessories', price=9.0, stock=3))
        db.session.add(Order(customer_id=customer.id, total_amount=30.0))
        db.session.commit()

        body = client.get('/api/dashboard/stats', headers=auth_headers(admin)).get_json()
        assert body['totalUsers'] == 3
        assert body['totalCustomers'] == 1
        assert body['totalProducts'] == 2
        assert body['inventoryItems'] == 15
        assert body['monthlyOrders'] == 1
        assert body['pendingOrders'] == 1
        assert body['recentSales'] == 30.0

    def test_admin_may_view_other_buckets(self, client, auth_headers, admin):
        body = client.get('/api/dashboard/stats?role=secretary', headers=auth_headers(admin)).get_json()
        assert set(body) == {'todayAppointments', 'totalPets', 'activeCustomers', 'monthlyRevenue'}
        assert client.get('/api/dashboard/stats?role=robot', headers=auth_headers(admin)).get_json() == {}

    def test_customer_cannot_view_staff_bucket(self, client, auth_headers, customer):
        resp = client.get('/api/dashboard/stats?role=veterinarian', headers=auth_headers(customer))
        assert resp.status_code == 403

    def test_staff_roles_share_a_bucket(self, client, auth_headers, make_user):
        groomer = make_user(Role.PETGROOMER)
        resp = client.get('/api/dashboard/stats?role=secretary', headers=auth_headers(groomer))
        assert resp.status_code == 200


class TestNavigation:
    def test_customer_menu(self, client, auth_headers, customer):
        body = client.get('/api/dashboard/navigation', headers=auth_headers(customer)).get_json()
        assert [item['title'] for item in body['items']] == [
            'Home Page', 'Pet Management', 'Appointments', 'Marketplace'
        ]
        assert body['user']['role'] == 'customer'
        assert 'read:reports' not in body['user']['permissions']['actions']

    def test_admin_menu(self, client, auth_headers, admin):
        body = client.get('/api/dashboard/navigation', headers=auth_headers(admin)).get_json()
        assert len(body['items']) == 7
        assert '/dashboard/reports' in body['user']['permissions']['interface_sections']

    def test_requires_login(self, client):
        resp = client.get('/api/dashboard/navigation')
        assert resp.status_code == 401
        assert resp.get_json() == {'error': 'Unauthorized'}


class TestWidget:
    def test_customer_cards_are_filled(self, client, auth_headers, customer, pet):
        body = client.get('/api/dashboard/widget', headers=auth_headers(customer)).get_json()
        assert body['role'] == 'customer'
        assert body['bucket'] == 'customer'
        assert body['cards'][0] == {'key': 'pets', 'title': 'My Pets', 'value': 1}
        assert [a['label'] for a in body['quickActions']] == ['Add Pet', 'Book Appointment', 'Shop Products']

    def test_admin_keeps_static_card(self, client, auth_headers, admin):
        body = client.get('/api/dashboard/widget', headers=auth_headers(admin)).get_json()
        health = [card for card in body['cards'] if card['key'] == 'systemHealth']
        assert health == [{'key': 'systemHealth', 'title': 'System Health', 'value': 'Good'}]
        assert body['role'] == 'administrator'
