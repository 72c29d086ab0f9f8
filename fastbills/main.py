# ==============================================================================
# HTTP API - Flask application
# ==============================================================================
# JSON endpoints over the state engine, all under /api. Business rules live
# in services/; routes only parse the request, call one service and shape
# the response:
#
#   success → {"ok": true, ...}
#   failure → {"ok": false, "error": "..."} with the error's status code
#
# Run with:  flask --app fastbills.main:create_app run
#       or:  gunicorn wsgi:app
# ==============================================================================

import atexit
import logging
import os
from functools import wraps

from flask import Blueprint, Flask, Response, current_app, g, request, session

from fastbills.app_container import AppContainer
from fastbills.config import Settings, configure_logging
from fastbills.errors import BillNotFound, NoSession, ProductNotFound, StoreError
from fastbills.models import UserRole
from fastbills.services.authorization import authorize
from fastbills.services.catalog_service import product_from_fields

logger = logging.getLogger(__name__)

api = Blueprint('api', __name__, url_prefix='/api')


def get_container() -> AppContainer:
    return current_app.extensions['fastbills']


def _payload() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _number(data: dict, key: str, default=None):
    value = data.get(key, default)
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise StoreError(f"Invalid value for {key}")


# ═══════════════════════════════════════════════════════════════════════════
# AUTHORIZATION DECORATORS
# ═══════════════════════════════════════════════════════════════════════════
# The browser session remembers who logged in on this client; the engine
# holds the single till session. Both must agree.

def _session_user():
    user = get_container().state.current_user
    if user is None or session.get('user_id') != user.id:
        return None
    return user


def login_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        authorize(_session_user()).enforce()
        return f(*args, **kwargs)
    return wrapper


def role_required(role: UserRole):
    def deco(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            user = _session_user()
            if user is None:
                raise NoSession()
            authorize(user, role).enforce()
            return f(*args, **kwargs)
        return wrapper
    return deco


# ═══════════════════════════════════════════════════════════════════════════
# ENGINE LOCK
# ═══════════════════════════════════════════════════════════════════════════
# One request at a time touches the engine.

@api.before_request
def _acquire_engine():
    get_container().lock.acquire()
    g.engine_locked = True


@api.teardown_request
def _release_engine(exc=None):
    if g.pop('engine_locked', False):
        get_container().lock.release()


@api.errorhandler(StoreError)
def _store_error(e: StoreError):
    return {'ok': False, 'error': e.message}, e.status_code


# ═══════════════════════════════════════════════════════════════════════════
# SESSION
# ═══════════════════════════════════════════════════════════════════════════

@api.route('/login', methods=['POST'])
def login():
    data = _payload()
    name = (data.get('name') or '').strip()
    password = data.get('password') or ''
    if not name or not password:
        return {'ok': False, 'error': 'Name and password are required'}, 400

    user = get_container().session_service.login(name, password)
    if user is None:
        return {'ok': False, 'error': 'Invalid credentials'}, 401

    session.clear()
    session['user_id'] = user.id
    return {'ok': True, 'user': user.to_public_dict()}


@api.route('/logout', methods=['POST'])
def logout():
    if _session_user() is not None:
        get_container().session_service.logout()
    session.clear()
    return {'ok': True}


@api.route('/me')
@login_required
def me():
    return {'ok': True, 'user': _session_user().to_public_dict()}


# ═══════════════════════════════════════════════════════════════════════════
# PRODUCTS
# ═══════════════════════════════════════════════════════════════════════════

@api.route('/products')
@login_required
def list_products():
    catalog = get_container().catalog_service
    query = request.args.get('q', '')
    category = request.args.get('category')
    products = catalog.search_products(query, category)
    return {'ok': True, 'products': [p.to_dict() for p in products]}


@api.route('/products', methods=['POST'])
@role_required(UserRole.MANAGER)
def add_product():
    product = get_container().catalog_service.add_product(_payload())
    return {'ok': True, 'product': product.to_dict()}, 201


@api.route('/products/<product_id>')
@login_required
def get_product(product_id):
    product = get_container().catalog_service.get_product(product_id)
    if product is None:
        raise ProductNotFound()
    return {'ok': True, 'product': product.to_dict()}


@api.route('/products/<product_id>', methods=['PUT'])
@role_required(UserRole.MANAGER)
def update_product(product_id):
    catalog = get_container().catalog_service
    existing = catalog.get_product(product_id)
    if existing is None:
        raise ProductNotFound()
    fields = existing.to_dict()
    fields.update(_payload())
    fields['id'] = product_id
    product = product_from_fields(fields)
    return {'ok': True, 'product': catalog.update_product(product).to_dict()}


@api.route('/products/<product_id>', methods=['DELETE'])
@role_required(UserRole.MANAGER)
def delete_product(product_id):
    get_container().catalog_service.delete_product(product_id)
    return {'ok': True}


@api.route('/products/<product_id>/stock', methods=['PUT'])
@login_required
def update_stock(product_id):
    quantity = _number(_payload(), 'stockQuantity')
    product = get_container().catalog_service.update_stock(product_id, quantity)
    if product is None:
        raise ProductNotFound()
    return {'ok': True, 'product': product.to_dict()}


@api.route('/products/low-stock')
@login_required
def low_stock():
    items = get_container().catalog_service.low_stock_items()
    return {'ok': True, 'products': [p.to_dict() for p in items]}


@api.route('/products/barcode/<code>')
@login_required
def find_by_barcode(code):
    product = get_container().catalog_service.find_by_barcode(code)
    return {'ok': True, 'product': product.to_dict() if product else None}


# ═══════════════════════════════════════════════════════════════════════════
# CART
# ═══════════════════════════════════════════════════════════════════════════

def _cart_response():
    return {'ok': True, 'cart': get_container().cart_service.get_cart_summary()}


@api.route('/cart')
@login_required
def get_cart():
    return _cart_response()


@api.route('/cart', methods=['POST'])
@login_required
def add_to_cart():
    data = _payload()
    product_id = str(data.get('productId') or '')
    quantity = _number(data, 'quantity', default=1)
    get_container().cart_service.add_to_cart(product_id, quantity)
    return _cart_response()


@api.route('/cart/<product_id>', methods=['PUT'])
@login_required
def update_cart_item(product_id):
    quantity = _number(_payload(), 'quantity')
    get_container().cart_service.update_cart_item_quantity(product_id, quantity)
    return _cart_response()


@api.route('/cart/<product_id>', methods=['DELETE'])
@login_required
def remove_from_cart(product_id):
    get_container().cart_service.remove_from_cart(product_id)
    return _cart_response()


@api.route('/cart/<product_id>/price', methods=['PUT'])
@role_required(UserRole.MANAGER)
def override_price(product_id):
    price = _number(_payload(), 'price')
    get_container().cart_service.override_price(product_id, price)
    return _cart_response()


@api.route('/cart', methods=['DELETE'])
@login_required
def clear_cart():
    get_container().cart_service.clear_cart()
    return _cart_response()


# ═══════════════════════════════════════════════════════════════════════════
# BILLS
# ═══════════════════════════════════════════════════════════════════════════

def _find_bill(bill_id):
    bill = get_container().billing_service.get_bill(bill_id)
    if bill is None:
        raise BillNotFound()
    return bill


@api.route('/bills', methods=['POST'])
@login_required
def checkout():
    data = _payload()
    bill = get_container().billing_service.generate_bill(
        customer_name=data.get('customerName'),
        customer_phone=data.get('customerPhone'),
        payment_method=data.get('paymentMethod') or 'cash',
        discount=_number(data, 'discount', default=0),
        cash_amount=_number(data, 'cashAmount'),
    )
    return {'ok': True, 'bill': bill.to_dict()}, 201


@api.route('/bills')
@login_required
def list_bills():
    bills = get_container().billing_service.list_bills()
    return {'ok': True, 'bills': [b.to_dict() for b in bills]}


@api.route('/bills/<bill_id>')
@login_required
def get_bill(bill_id):
    return {'ok': True, 'bill': _find_bill(bill_id).to_dict()}


@api.route('/bills/<bill_id>/void', methods=['POST'])
@role_required(UserRole.MANAGER)
def void_bill(bill_id):
    reason = (_payload().get('reason') or '').strip()
    if not reason:
        return {'ok': False, 'error': 'A reason is required to void a bill'}, 400
    bill = get_container().billing_service.void_bill(bill_id, reason)
    return {'ok': True, 'bill': bill.to_dict()}


@api.route('/bills/<bill_id>', methods=['DELETE'])
@role_required(UserRole.MANAGER)
def delete_bill(bill_id):
    removed = get_container().billing_service.delete_bill(bill_id)
    return {'ok': True, 'deleted': removed is not None}


@api.route('/bills/<bill_id>/refund', methods=['POST'])
@login_required
def refund_bill(bill_id):
    items = _payload().get('items')
    if items is not None and not isinstance(items, list):
        return {'ok': False, 'error': 'items must be a list'}, 400
    refund = get_container().billing_service.process_refund(bill_id, items)
    return {'ok': True, 'bill': refund.to_dict()}, 201


@api.route('/bills/<bill_id>/receipt')
@login_required
def receipt(bill_id):
    bill = _find_bill(bill_id)
    receipts = get_container().receipt_service
    if request.args.get('format') == 'text':
        return Response(receipts.render_receipt_text(bill), mimetype='text/plain')
    return Response(receipts.render_receipt_html(bill), mimetype='text/html')


# ═══════════════════════════════════════════════════════════════════════════
# CASH REGISTER
# ═══════════════════════════════════════════════════════════════════════════

def _register_dict(register):
    if register is None:
        return None
    registers = get_container().register_service
    return {**register.to_dict(), 'summary': registers.reconcile(register)}


@api.route('/register')
@login_required
def current_register():
    registers = get_container().register_service
    return {
        'ok': True,
        'register': _register_dict(registers.current_register),
        'lastClosed': _register_dict(registers.last_closed_register),
    }


@api.route('/register/open', methods=['POST'])
@login_required
def open_register():
    amount = _number(_payload(), 'openingBalance', default=0)
    register = get_container().register_service.open_register(_session_user().id, amount)
    return {'ok': True, 'register': _register_dict(register)}, 201


@api.route('/register/close', methods=['POST'])
@login_required
def close_register():
    amount = _number(_payload(), 'closingBalance')
    if amount is None:
        return {'ok': False, 'error': 'closingBalance is required'}, 400
    register = get_container().register_service.close_register(amount)
    return {'ok': True, 'register': _register_dict(register)}


# ═══════════════════════════════════════════════════════════════════════════
# REPORTS
# ═══════════════════════════════════════════════════════════════════════════

@api.route('/reports/sales')
@login_required
def sales_report():
    reports = get_container().reporting_service
    timeframe = request.args.get('timeframe', 'daily')
    category = request.args.get('category') or None
    try:
        bills = reports.generate_sales_report(timeframe, category)
    except ValueError:
        return {'ok': False, 'error': f'Unknown timeframe: {timeframe}'}, 400
    return {
        'ok': True,
        'bills': [b.to_dict() for b in bills],
        'summary': reports.summarize_sales(bills),
    }


@api.route('/reports/inventory')
@login_required
def inventory_report():
    products = get_container().reporting_service.generate_inventory_report()
    return {'ok': True, 'products': [p.to_dict() for p in products]}


# ═══════════════════════════════════════════════════════════════════════════
# BACKUP
# ═══════════════════════════════════════════════════════════════════════════

@api.route('/backup')
@role_required(UserRole.MANAGER)
def export_backup():
    return {'ok': True, 'backup': get_container().backup_service.export_backup()}


@api.route('/backup', methods=['POST'])
@role_required(UserRole.MANAGER)
def write_backup():
    path = get_container().backup_service.write_backup()
    return {'ok': True, 'file': os.path.basename(path)}, 201


@api.route('/backup/restore', methods=['POST'])
@role_required(UserRole.MANAGER)
def restore_backup():
    restored = get_container().backup_service.restore_backup(request.get_json(silent=True))
    return {'ok': True, 'restored': restored}


# ═══════════════════════════════════════════════════════════════════════════
# APPLICATION FACTORY
# ═══════════════════════════════════════════════════════════════════════════

def create_app(settings: Settings = None, storage=None, clock=None) -> Flask:
    """
    Builds the Flask application and loads the store.

    Args:
        settings: Runtime settings (from the environment if None)
        storage: Storage backend (JSON files in settings.data_dir if None)
        clock: Current-time callable for reports (tests)
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    container = AppContainer(settings, storage=storage, clock=clock)
    container.load()
    atexit.register(container.shutdown)

    app = Flask(__name__)
    app.secret_key = settings.secret_key
    app.config.update(
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SECURE=settings.production,
        SESSION_COOKIE_SAMESITE='Lax',
        MAX_CONTENT_LENGTH=5 * 1024 * 1024,
    )
    app.extensions['fastbills'] = container
    app.register_blueprint(api)

    @app.after_request
    def set_security_headers(response):
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['Referrer-Policy'] = 'no-referrer-when-downgrade'
        response.headers['Permissions-Policy'] = 'geolocation=(), microphone=()'
        if request.is_secure:
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
        return response

    logger.info("FastBills API ready (data dir: %s)", settings.data_dir)
    return app
