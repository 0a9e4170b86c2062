from tests.test_utils_seed import ensure_user, ensure_product, auth_headers, admin_headers
from storefront import get_db
from storefront.models.product import Product
from storefront.services.orders import can_transition, ORDER_TRANSITIONS

ADDRESS = {'line1': '1 Main St', 'city': 'Hanoi'}


def _stock(product_id: int) -> int:
    session = get_db()
    p = session.get(Product, product_id)
    session.refresh(p)
    return p.stock


def _place(client, headers, items, **extra):
    return client.post('/orders', json={'items': items, 'shipping_address': ADDRESS, **extra}, headers=headers)


def test_place_order_reserves_stock(client):
    ensure_user('buyer1@example.com')
    headers = auth_headers(client, 'buyer1@example.com')
    p = ensure_product('ORD-001', 'Order Widget', price_cents=250, stock=5)
    resp = _place(client, headers, [{'product_id': p.id, 'quantity': 2}, {'product_id': p.id, 'quantity': 1}])
    assert resp.status_code == 201, resp.get_json()
    body = resp.get_json()
    assert body['status'] == 'PENDING'
    assert body['payment_status'] == 'UNPAID'
    assert body['total_cents'] == 750
    assert body['items'] == [{'product_id': p.id, 'product_name': 'Order Widget', 'unit_price_cents': 250, 'quantity': 3}]
    assert body['next_statuses'] == ['CANCELLED', 'PROCESSING']
    assert _stock(p.id) == 2


def test_order_validation(client):
    ensure_user('buyer2@example.com')
    headers = auth_headers(client, 'buyer2@example.com')
    p = ensure_product('ORD-002', stock=1)
    draft = ensure_product('ORD-DRAFT', published=False)
    assert client.post('/orders', json={'items': [], 'shipping_address': ADDRESS}, headers=headers).status_code == 400
    assert client.post('/orders', json={'items': [{'product_id': p.id}]}, headers=headers).status_code == 400
    assert _place(client, headers, [{'product_id': p.id, 'quantity': 0}]).status_code == 400
    assert _place(client, headers, [{'product_id': 'x'}]).status_code == 400
    assert _place(client, headers, [{'product_id': draft.id}]).status_code == 400
    assert _place(client, headers, [{'product_id': p.id}], payment_method='barter').status_code == 400
    short = _place(client, headers, [{'product_id': p.id, 'quantity': 2}])
    assert short.status_code == 409
    assert _stock(p.id) == 1


def test_orders_require_login(client):
    assert client.get('/orders').status_code == 401


def test_cancel_releases_stock(client):
    ensure_user('buyer3@example.com')
    headers = auth_headers(client, 'buyer3@example.com')
    p = ensure_product('ORD-003', stock=4)
    order = _place(client, headers, [{'product_id': p.id, 'quantity': 3}]).get_json()
    assert _stock(p.id) == 1
    resp = client.post(f"/orders/{order['id']}/cancel", json={'reason': 'changed my mind'}, headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()['status'] == 'CANCELLED'
    assert resp.get_json()['cancel_reason'] == 'changed my mind'
    assert _stock(p.id) == 4
    # terminal state
    again = client.post(f"/orders/{order['id']}/cancel", headers=headers)
    assert again.status_code == 400


def test_other_customers_order_is_404(client):
    ensure_user('owner@example.com')
    ensure_user('snoop@example.com')
    owner = auth_headers(client, 'owner@example.com')
    snoop = auth_headers(client, 'snoop@example.com')
    p = ensure_product('ORD-004', stock=10)
    order = _place(client, owner, [{'product_id': p.id}]).get_json()
    assert client.get(f"/orders/{order['id']}", headers=snoop).status_code == 404
    assert client.post(f"/orders/{order['id']}/cancel", headers=snoop).status_code == 404
    assert client.get(f"/orders/{order['id']}", headers=owner).status_code == 200
    assert client.get(f"/orders/{order['id']}", headers=admin_headers(client)).status_code == 200


def test_my_orders_listing_is_scoped_and_conditional(client):
    ensure_user('lister@example.com')
    headers = auth_headers(client, 'lister@example.com')
    p = ensure_product('ORD-005', stock=10)
    _place(client, headers, [{'product_id': p.id}])
    first = client.get('/orders', headers=headers)
    assert first.status_code == 200
    rows = first.get_json()['data']
    assert len(rows) == 1
    etag = first.headers['ETag']
    assert client.get('/orders', headers={**headers, 'If-None-Match': etag}).status_code == 304
    _place(client, headers, [{'product_id': p.id}])
    changed = client.get('/orders', headers={**headers, 'If-None-Match': etag})
    assert changed.status_code == 200
    assert changed.get_json()['pagination']['total'] == 2
    assert client.get('/orders?status=LOST', headers=headers).status_code == 400


def test_admin_lifecycle_and_refund(client):
    ensure_user('buyer4@example.com')
    headers = auth_headers(client, 'buyer4@example.com')
    admin = admin_headers(client)
    p = ensure_product('ORD-006', stock=10)
    oid = _place(client, headers, [{'product_id': p.id, 'quantity': 2}]).get_json()['id']

    bad = client.post(f'/admin/orders/{oid}/status', json={'status': 'DELIVERED'}, headers=admin)
    assert bad.status_code == 400
    assert client.post(f'/admin/orders/{oid}/payment', json={'payment_status': 'REFUNDED'}, headers=admin).status_code == 400
    paid = client.post(f'/admin/orders/{oid}/payment', json={'payment_status': 'PAID'}, headers=admin)
    assert paid.get_json()['payment_status'] == 'PAID'
    proc = client.post(f'/admin/orders/{oid}/status', json={'status': 'PROCESSING'}, headers=admin)
    assert proc.status_code == 200
    assert proc.get_json()['next_statuses'] == ['CANCELLED', 'SHIPPED']
    cancelled = client.post(f'/admin/orders/{oid}/status', json={'status': 'CANCELLED'}, headers=admin)
    assert cancelled.get_json()['payment_status'] == 'REFUNDED'
    assert _stock(p.id) == 10
    # customers cannot drive the admin endpoints
    assert client.post(f'/admin/orders/{oid}/status', json={'status': 'SHIPPED'}, headers=headers).status_code == 403


def test_transition_table():
    assert can_transition('PENDING', 'PROCESSING')
    assert can_transition('SHIPPED', 'DELIVERED')
    assert not can_transition('SHIPPED', 'CANCELLED')
    assert not can_transition('DELIVERED', 'PENDING')
    assert ORDER_TRANSITIONS['CANCELLED'] == set()
