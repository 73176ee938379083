"""
Catalog blueprint: clients, products and sellers.

Any logged-in user manages clients and products; the seller directory is
edited by administrators only.
"""

from flask import Blueprint, jsonify, request, g
from lumberdesk.database import get_session
from lumberdesk.forms.catalog_forms import ClientForm, ProductForm, SellerForm
from lumberdesk.forms.validation import validate_or_raise
from lumberdesk.middleware import require_login, require_role
from lumberdesk.models import UserRole
from lumberdesk.services import catalog_service

catalog_bp = Blueprint('catalog', __name__)


def _submitted_keys():
    body = request.get_json(silent=True) if request.is_json else None
    return set(body or request.form)


def _without_unsent(data, *fields):
    """Drop optional fields the client did not send (keep stored values)."""
    sent = _submitted_keys()
    return {k: v for k, v in data.items() if k not in fields or k in sent}


# --- Clients ---

@catalog_bp.route('/clients')
@require_login
def list_clients():
    clients = catalog_service.list_clients(get_session(), search=request.args.get('q', '').strip())
    return jsonify({'clients': [c.to_dict() for c in clients]})


@catalog_bp.route('/clients/<client_id>')
@require_login
def get_client(client_id):
    return jsonify({'client': catalog_service.get_client(get_session(), client_id).to_dict()})


@catalog_bp.route('/clients', methods=['POST'])
@require_login
def save_client():
    """Create or update (upsert by id)."""
    data = validate_or_raise(ClientForm())
    client = catalog_service.save_client(get_session(), g.caller, data)
    return jsonify({'status': 'ok', 'client': client.to_dict()})


@catalog_bp.route('/clients/<client_id>', methods=['DELETE'])
@require_login
def delete_client(client_id):
    catalog_service.delete_client(get_session(), g.caller, client_id)
    return jsonify({'status': 'ok'})


# --- Products ---

@catalog_bp.route('/products')
@require_login
def list_products():
    products = catalog_service.list_products(get_session(), search=request.args.get('q', '').strip())
    return jsonify({'products': [p.to_dict() for p in products]})


@catalog_bp.route('/products/<product_id>')
@require_login
def get_product(product_id):
    return jsonify({'product': catalog_service.get_product(get_session(), product_id).to_dict()})


@catalog_bp.route('/products', methods=['POST'])
@require_login
def save_product():
    data = validate_or_raise(ProductForm())
    product = catalog_service.save_product(get_session(), g.caller, data)
    return jsonify({'status': 'ok', 'product': product.to_dict()})


@catalog_bp.route('/products/<product_id>', methods=['DELETE'])
@require_login
def delete_product(product_id):
    catalog_service.delete_product(get_session(), g.caller, product_id)
    return jsonify({'status': 'ok'})


# --- Sellers ---

@catalog_bp.route('/sellers')
@require_login
def list_sellers():
    """?active=1 for the order editor's dropdown; reports use the full list."""
    active_only = request.args.get('active') in ('1', 'true')
    sellers = catalog_service.list_sellers(get_session(), active_only=active_only)
    return jsonify({'sellers': [s.to_dict() for s in sellers]})


@catalog_bp.route('/sellers', methods=['POST'])
@require_role(UserRole.ADMIN.value)
def save_seller():
    data = _without_unsent(validate_or_raise(SellerForm()), 'is_active')
    seller = catalog_service.save_seller(get_session(), g.caller, data)
    return jsonify({'status': 'ok', 'seller': seller.to_dict()})


@catalog_bp.route('/sellers/<seller_id>', methods=['DELETE'])
@require_role(UserRole.ADMIN.value)
def delete_seller(seller_id):
    catalog_service.delete_seller(get_session(), g.caller, seller_id)
    return jsonify({'status': 'ok'})
