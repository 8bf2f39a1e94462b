"""Endpoint tests for the marketplace: /api/store/products and /api/store/orders."""

import pytest

from petavet import db
from petavet.models import Order, Product, ProductStatus, Role


@pytest.fixture
def make_product(app):
    def _make_product(**overrides):
        fields = {'name': 'Chew Toy', 'category': 'toys', 'price': 5.5, 'stock': 10}
        fields.update(overrides)
        product = Product(**fields)
        db.session.add(product)
        db.session.commit()
        return product
    return _make_product


def place_order(client, headers, items, payment='credit-card'):
    return client.post('/api/store/orders', headers=headers, json={
        'items': items,
        'paymentMethod': payment,
        'shippingAddress': {'name': 'Jane Owner', 'street': '1 Main St', 'city': 'Springfield',
                            'state': 'IL', 'zip': '62701', 'country': 'US'}
    })


class TestProducts:
    def test_public_listing_hides_discontinued(self, client, make_product):
        make_product(name='Leash', category='accessories')
        make_product(name='Old Collar', category='accessories', status=ProductStatus.DISCONTINUED)
        make_product()

        resp = client.get('/api/store/products')
        assert resp.status_code == 200
        assert [p['name'] for p in resp.get_json()['products']] == ['Chew Toy', 'Leash']

    def test_category_and_search(self, client, make_product):
        make_product(name='Leash', category='accessories', description='Nylon lead')
        make_product()
        body = client.get('/api/store/products?category=accessories').get_json()
        assert [p['name'] for p in body['products']] == ['Leash']
        body = client.get('/api/store/products?search=nylon').get_json()
        assert [p['name'] for p in body['products']] == ['Leash']

    def test_featured_is_limited(self, client, make_product):
        for n in range(10):
            make_product(name=f'Toy {n}')
        assert len(client.get('/api/store/products?featured=true').get_json()['products']) == 8

    def test_single_product(self, client, make_product):
        product = make_product()
        assert client.get(f'/api/store/products?id={product.id}').get_json()['name'] == 'Chew Toy'
        assert client.get('/api/store/products?id=999').status_code == 404

    def test_create_requires_inventory_rights(self, client, auth_headers, customer, vet, admin):
        body = {'name': 'Shampoo', 'category': 'grooming', 'price': 12.0, 'stock': 0}
        assert client.post('/api/store/products', json=body, headers=auth_headers(customer)).status_code == 403
        assert client.post('/api/store/products', json=body, headers=auth_headers(vet)).status_code == 403

        resp = client.post('/api/store/products', json=body, headers=auth_headers(admin))
        assert resp.status_code == 201
        assert resp.get_json()['status'] == 'OUT_OF_STOCK'

    def test_create_validation(self, client, auth_headers, admin):
        headers = auth_headers(admin)
        assert client.post('/api/store/products', json={'name': 'x'}, headers=headers).status_code == 400
        resp = client.post('/api/store/products', headers=headers,
                           json={'name': 'x', 'category': 'y', 'price': -1})
        assert resp.status_code == 400

    def test_update_restock_reactivates(self, client, auth_headers, make_product, admin):
        product = make_product(stock=0, status=ProductStatus.OUT_OF_STOCK)
        resp = client.put(f'/api/store/products?id={product.id}', headers=auth_headers(admin),
                          json={'stock': 4, 'price': 6.0})
        assert resp.status_code == 200
        body = resp.get_json()
        assert body['status'] == 'ACTIVE'
        assert body['price'] == 6.0

    def test_delete_discontinues(self, client, auth_headers, make_product, admin):
        product = make_product()
        product_id = product.id
        resp = client.delete(f'/api/store/products?id={product_id}', headers=auth_headers(admin))
        assert resp.get_json() == {'success': True}
        assert db.session.get(Product, product_id).status == ProductStatus.DISCONTINUED
        assert client.delete('/api/store/products', headers=auth_headers(admin)).status_code == 400


class TestOrders:
    def test_place_order_reserves_stock(self, client, auth_headers, make_product, customer):
        toy = make_product(stock=3)
        leash = make_product(name='Leash', price=12.25, stock=1)
        resp = place_order(client, auth_headers(customer), [
            {'productId': str(toy.id), 'quantity': 2},
            {'productId': str(leash.id), 'quantity': 1},
        ])
        assert resp.status_code == 201
        body = resp.get_json()
        assert body['total'] == 23.25
        assert body['status'] == 'PENDING'
        assert body['paymentMethod'] == 'CARD'
        assert body['shippingAddress'].startswith('Jane Owner\n1 Main St\nSpringfield, IL 62701')
        assert db.session.get(Product, toy.id).stock == 1
        leash = db.session.get(Product, leash.id)
        assert leash.stock == 0
        assert leash.status == ProductStatus.OUT_OF_STOCK

    def test_insufficient_stock(self, client, auth_headers, make_product, customer):
        toy = make_product(stock=1)
        resp = place_order(client, auth_headers(customer), [{'productId': str(toy.id), 'quantity': 2}])
        assert resp.status_code == 400
        assert 'Insufficient stock' in resp.get_json()['error']
        assert db.session.get(Product, toy.id).stock == 1
        assert Order.query.count() == 0

    def test_repeated_lines_share_the_stock(self, client, auth_headers, make_product, customer):
        toy = make_product(stock=5)
        resp = place_order(client, auth_headers(customer), [
            {'productId': str(toy.id), 'quantity': 3},
            {'productId': str(toy.id), 'quantity': 3},
        ])
        assert resp.status_code == 400
        assert 'Insufficient stock' in resp.get_json()['error']
        assert db.session.get(Product, toy.id).stock == 5
        assert Order.query.count() == 0

    def test_repeated_lines_within_stock(self, client, auth_headers, make_product, customer):
        toy = make_product(stock=5)
        resp = place_order(client, auth_headers(customer), [
            {'productId': str(toy.id), 'quantity': 2},
            {'productId': str(toy.id), 'quantity': 3},
        ])
        assert resp.status_code == 201
        product = db.session.get(Product, toy.id)
        assert product.stock == 0
        assert product.status == ProductStatus.OUT_OF_STOCK

    def test_invalid_orders(self, client, auth_headers, make_product, customer):
        headers = auth_headers(customer)
        toy = make_product()
        assert client.post('/api/store/orders', headers=headers, json={}).status_code == 400
        assert place_order(client, headers, [{'productId': str(toy.id), 'quantity': 0}]).status_code == 400
        assert place_order(client, headers, [{'productId': '999', 'quantity': 1}]).status_code == 404

    def test_cash_payment(self, client, auth_headers, make_product, customer):
        toy = make_product()
        body = place_order(client, auth_headers(customer), [{'productId': str(toy.id), 'quantity': 1}],
                           payment='cash').get_json()
        assert body['paymentMethod'] == 'CASH'

    def test_listing_scoped_to_customer(self, client, auth_headers, make_product, make_user, customer, secretary):
        toy = make_product()
        other = make_user(Role.CUSTOMER)
        mine = place_order(client, auth_headers(customer), [{'productId': str(toy.id), 'quantity': 1}]).get_json()
        theirs = place_order(client, auth_headers(other), [{'productId': str(toy.id), 'quantity': 1}]).get_json()

        body = client.get('/api/store/orders', headers=auth_headers(customer)).get_json()
        assert [o['id'] for o in body['orders']] == [mine['id']]
        resp = client.get(f"/api/store/orders?id={theirs['id']}", headers=auth_headers(customer))
        assert resp.status_code == 403
        assert len(client.get('/api/store/orders', headers=auth_headers(secretary)).get_json()['orders']) == 2

    def test_customer_cancel_restocks(self, client, auth_headers, make_product, customer):
        toy = make_product(stock=2)
        order = place_order(client, auth_headers(customer), [{'productId': str(toy.id), 'quantity': 2}]).get_json()
        assert db.session.get(Product, toy.id).status == ProductStatus.OUT_OF_STOCK

        resp = client.put(f"/api/store/orders/{order['id']}", headers=auth_headers(customer),
                          json={'status': 'cancelled'})
        assert resp.status_code == 200
        assert resp.get_json()['status'] == 'CANCELLED'
        product = db.session.get(Product, toy.id)
        assert product.stock == 2
        assert product.status == ProductStatus.ACTIVE

    def test_customer_cannot_advance_order(self, client, auth_headers, make_product, customer):
        toy = make_product()
        order = place_order(client, auth_headers(customer), [{'productId': str(toy.id), 'quantity': 1}]).get_json()
        resp = client.put(f"/api/store/orders/{order['id']}", headers=auth_headers(customer),
                          json={'status': 'SHIPPED'})
        assert resp.status_code == 403

    def test_staff_without_inventory_rights_cannot_change_status(self, client, auth_headers, make_product,
                                                                   customer, vet):
        toy = make_product()
        order = place_order(client, auth_headers(customer), [{'productId': str(toy.id), 'quantity': 1}]).get_json()
        resp = client.put(f"/api/store/orders/{order['id']}", headers=auth_headers(vet),
                          json={'status': 'CANCELLED'})
        assert resp.status_code == 403

    def test_admin_walks_the_lifecycle(self, client, auth_headers, make_product, customer, admin):
        toy = make_product()
        order = place_order(client, auth_headers(customer), [{'productId': str(toy.id), 'quantity': 1}]).get_json()
        url = f"/api/store/orders/{order['id']}"
        headers = auth_headers(admin)

        assert client.put(url, headers=headers, json={'status': 'SHIPPED'}).status_code == 400
        for status in ('PROCESSING', 'SHIPPED'):
            assert client.put(url, headers=headers, json={'status': status}).status_code == 200
        # Shipped orders can no longer be cancelled
        assert client.put(url, headers=headers, json={'status': 'CANCELLED'}).status_code == 400
        body = client.put(url, headers=headers, json={'status': 'DELIVERED'}).get_json()
        assert body['status'] == 'DELIVERED'
        assert body['paymentStatus'] == 'PAID'

    def test_unknown_order(self, client, auth_headers, admin):
        resp = client.put('/api/store/orders/999', headers=auth_headers(admin), json={'status': 'PROCESSING'})
        assert resp.status_code == 404
