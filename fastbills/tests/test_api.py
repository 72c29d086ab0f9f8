import os

from fastbills.tests.conftest import login


def test_login_and_me(client):
    r = client.get('/api/me')
    assert r.status_code == 401
    assert r.get_json() == {'ok': False, 'error': 'No user logged in'}

    user = login(client, 'manager', 'manager123')
    assert user == {'id': '1', 'name': 'manager', 'role': 'manager'}

    r = client.get('/api/me')
    assert r.get_json()['user']['name'] == 'manager'


def test_login_invalid_credentials(client):
    r = client.post('/api/login', json={'name': 'manager', 'password': 'nope'})
    assert r.status_code == 401
    assert r.get_json()['ok'] is False

    r = client.post('/api/login', json={})
    assert r.status_code == 400


def test_logout(client):
    login(client, 'cashier', 'cashier123')
    assert client.post('/api/logout').get_json() == {'ok': True}
    assert client.get('/api/products').status_code == 401


def test_security_headers(client):
    r = client.get('/api/me')
    assert r.headers['X-Frame-Options'] == 'DENY'
    assert r.headers['X-Content-Type-Options'] == 'nosniff'


def test_product_endpoints(client):
    login(client, 'manager', 'manager123')

    r = client.get('/api/products', query_string={'category': 'Dairy'})
    assert len(r.get_json()['products']) == 4

    r = client.post('/api/products', json={'name': 'Honey', 'price': 6.5, 'category': 'Snacks',
                                           'stockQuantity': 4, 'lowStockThreshold': 5})
    assert r.status_code == 201
    honey = r.get_json()['product']

    r = client.put(f"/api/products/{honey['id']}", json={'price': 6.0})
    assert r.get_json()['product']['price'] == 6.0
    assert r.get_json()['product']['name'] == 'Honey'

    r = client.get('/api/products/low-stock')
    assert [p['name'] for p in r.get_json()['products']] == ['Honey']

    r = client.put(f"/api/products/{honey['id']}/stock", json={'stockQuantity': -2})
    assert r.status_code == 400

    r = client.get('/api/products/barcode/8901234567892')
    assert r.get_json()['product']['name'] == 'Milk'
    r = client.get('/api/products/barcode/000')
    assert r.get_json() == {'ok': True, 'product': None}

    assert client.delete(f"/api/products/{honey['id']}").status_code == 200
    assert client.get(f"/api/products/{honey['id']}").status_code == 404
    assert client.put('/api/products/missing', json={'price': 1}).status_code == 404


def test_product_endpoints_reject_bad_numbers(client):
    login(client, 'manager', 'manager123')

    r = client.post('/api/products', json={'name': 'X', 'price': 'abc'})
    assert r.status_code == 400
    assert r.get_json() == {'ok': False, 'error': 'Invalid product data'}

    r = client.post('/api/products', json={'name': 'X', 'price': 1, 'stockQuantity': 2.5})
    assert r.status_code == 400

    r = client.put('/api/products/1', json={'lowStockThreshold': 'few'})
    assert r.status_code == 400

    r = client.put('/api/products/1/stock', json={'stockQuantity': 2.9})
    assert r.status_code == 400
    assert client.get('/api/products/1').get_json()['product']['stockQuantity'] == 50

    assert len(client.get('/api/products').get_json()['products']) == 15


def test_cashier_cannot_manage_products(client):
    login(client, 'cashier', 'cashier123')
    r = client.post('/api/products', json={'name': 'X', 'price': 1})
    assert r.status_code == 403
    assert r.get_json()['ok'] is False


def test_checkout_flow(client):
    login(client, 'cashier', 'cashier123')

    r = client.post('/api/cart', json={'productId': '1', 'quantity': 3})
    assert r.get_json()['cart']['item_count'] == 3

    r = client.post('/api/cart', json={'productId': '1', 'quantity': 100})
    assert r.status_code == 409

    r = client.post('/api/cart', json={'productId': '1', 'quantity': 0.5})
    assert r.status_code == 400

    r = client.put('/api/cart/1/price', json={'price': 1})
    assert r.status_code == 403

    r = client.post('/api/bills', json={'paymentMethod': 'cash', 'cashAmount': 10})
    assert r.status_code == 201
    bill = r.get_json()['bill']
    assert abs(bill['finalAmount'] - 9.867) < 1e-9
    assert abs(bill['changeDue'] - 0.133) < 1e-9

    assert client.get('/api/cart').get_json()['cart']['line_count'] == 0
    assert client.get('/api/products/1').get_json()['product']['stockQuantity'] == 47

    r = client.post('/api/bills', json={})
    assert r.status_code == 400
    assert r.get_json()['error'] == 'Cart is empty'

    r = client.get(f"/api/bills/{bill['id']}/receipt", query_string={'format': 'text'})
    assert r.mimetype == 'text/plain'
    assert 'TOTAL' in r.get_data(as_text=True)

    r = client.get(f"/api/bills/{bill['id']}/receipt")
    assert r.mimetype == 'text/html'


def test_void_refund_and_delete(client):
    login(client, 'cashier', 'cashier123')
    client.post('/api/cart', json={'productId': '2', 'quantity': 2})
    bill = client.post('/api/bills', json={'paymentMethod': 'card'}).get_json()['bill']

    assert client.post(f"/api/bills/{bill['id']}/void", json={'reason': 'x'}).status_code == 403

    r = client.post(f"/api/bills/{bill['id']}/refund", json={'items': [{'productId': '2', 'quantity': 1}]})
    assert r.status_code == 201
    assert r.get_json()['bill']['refundReference'] == bill['id']

    login(client, 'manager', 'manager123')
    r = client.post(f"/api/bills/{bill['id']}/void", json={})
    assert r.status_code == 400
    r = client.post(f"/api/bills/{bill['id']}/void", json={'reason': 'wrong customer'})
    assert r.get_json()['bill']['voidStatus'] == 'voided'

    r = client.post(f"/api/bills/{bill['id']}/refund")
    assert r.status_code == 409

    assert client.delete(f"/api/bills/{bill['id']}").get_json() == {'ok': True, 'deleted': True}
    assert client.get(f"/api/bills/{bill['id']}").status_code == 404
    assert len(client.get('/api/bills').get_json()['bills']) == 1


def test_register_endpoints(client):
    login(client, 'cashier', 'cashier123')

    r = client.post('/api/register/close', json={'closingBalance': 10})
    assert r.status_code == 409

    r = client.post('/api/register/open', json={'openingBalance': 100})
    assert r.status_code == 201
    assert r.get_json()['register']['cashierId'] == '2'
    assert client.post('/api/register/open', json={'openingBalance': 5}).status_code == 409

    client.post('/api/cart', json={'productId': '4', 'quantity': 1})
    client.post('/api/bills', json={'paymentMethod': 'cash'})

    r = client.post('/api/register/close', json={'closingBalance': 102.519})
    summary = r.get_json()['register']['summary']
    assert summary['status'] == 'balanced'
    assert summary['transaction_count'] == 1

    r = client.get('/api/register')
    assert r.get_json()['register'] is None
    assert r.get_json()['lastClosed']['closingBalance'] == 102.519


def test_reports(client):
    login(client, 'cashier', 'cashier123')
    client.post('/api/cart', json={'productId': '3', 'quantity': 1})
    client.post('/api/bills', json={'paymentMethod': 'upi'})

    r = client.get('/api/reports/sales', query_string={'timeframe': 'daily'})
    data = r.get_json()
    assert len(data['bills']) == 1
    assert data['summary']['payment_method_sales']['upi'] > 0

    assert client.get('/api/reports/sales', query_string={'timeframe': 'yearly'}).status_code == 400

    r = client.get('/api/reports/inventory')
    stocks = [p['stockQuantity'] for p in r.get_json()['products']]
    assert stocks == sorted(stocks)


def test_backup_endpoints(client):
    login(client, 'cashier', 'cashier123')
    assert client.get('/api/backup').status_code == 403

    login(client, 'manager', 'manager123')
    doc = client.get('/api/backup').get_json()['backup']
    assert doc['version'] == '1.0.0'

    r = client.post('/api/backup/restore', json={'products': []})
    assert r.status_code == 400
    assert r.get_json()['error'] == 'Invalid backup file format'

    doc['products'] = doc['products'][:3]
    r = client.post('/api/backup/restore', json=doc)
    assert r.get_json()['restored'] == {'products': 3, 'bills': 0}

    r = client.post('/api/backup')
    assert r.status_code == 201
    name = r.get_json()['file']
    assert name.startswith('fastbills_backup_') and name.endswith('.json')
    assert os.sep not in name and '/' not in name
