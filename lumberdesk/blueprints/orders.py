"""
Orders blueprint: quotes and orders, PDF export and WhatsApp hand-off.

Every read goes through order_service with g.caller, so sales users only
ever reach their own seller's documents.
"""

from flask import Blueprint, jsonify, request, g, send_file, current_app
from lumberdesk.blueprints.metrics import orders_saved_total, pdfs_generated_total
from lumberdesk.database import get_session
from lumberdesk.exceptions import ValidationError
from lumberdesk.middleware import require_login
from lumberdesk.models import Client
from lumberdesk.services import order_service
from lumberdesk.services.messaging_service import format_order_message, whatsapp_link
from lumberdesk.services.pdf_service import render_order_pdf, order_filename

orders_bp = Blueprint('orders', __name__, url_prefix='/orders')

ITEM_FIELDS = (
    'product_id', 'description', 'quantity', 'unit_price', 'unit',
    'discount_type', 'discount_value', 'length', 'width', 'is_processed'
)
HEADER_FIELDS = (
    'id', 'client_id', 'client_name', 'seller_id', 'date', 'status', 'type',
    'internal_notes', 'customer_notes'
)


def company_info():
    """Company header for PDFs and messages, from config."""
    config = current_app.config
    return {
        'name': config.get('COMPANY_NAME'),
        'cnpj': config.get('COMPANY_CNPJ'),
        'address': config.get('COMPANY_ADDRESS'),
        'email': config.get('COMPANY_EMAIL'),
        'whatsapp': config.get('COMPANY_WHATSAPP'),
        'phone_display': config.get('COMPANY_PHONE_DISPLAY'),
    }


def _items_from_form(form):
    """Parse items[i][field] keys; stops at the first missing index."""
    items = []
    index = 0
    while f'items[{index}][description]' in form or f'items[{index}][product_id]' in form:
        items.append({field: form.get(f'items[{index}][{field}]') for field in ITEM_FIELDS})
        index += 1
    return items


def _order_payload():
    """Order payload from a JSON body or a classic form post."""
    if request.is_json:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            raise ValidationError('Corpo da requisição inválido.')
        return payload
    payload = {field: request.form.get(field) for field in HEADER_FIELDS}
    payload['items'] = _items_from_form(request.form)
    return payload


@orders_bp.route('/')
@require_login
def list_orders():
    """?type=QUOTE|ORDER, ?status=..., ?q= client/seller name."""
    orders = order_service.list_orders(
        get_session(), g.caller,
        doc_type=request.args.get('type') or None,
        status=request.args.get('status') or None,
        search=request.args.get('q', '').strip() or None,
    )
    return jsonify({'orders': [o.to_dict(include_items=False) for o in orders]})


@orders_bp.route('/<order_id>')
@require_login
def view_order(order_id):
    order = order_service.get_order(get_session(), g.caller, order_id)
    return jsonify({'order': order.to_dict()})


@orders_bp.route('/', methods=['POST'])
@require_login
def save_order():
    """Save header and replace all items; totals are recomputed server side."""
    order = order_service.save_order(get_session(), g.caller, _order_payload())
    orders_saved_total.labels(type=order.type).inc()
    return jsonify({'status': 'ok', 'order': order.to_dict()})


@orders_bp.route('/preview', methods=['POST'])
@require_login
def preview_totals():
    """Price the editor's current lines without saving anything."""
    return jsonify(order_service.preview_order(get_session(), _order_payload()))


@orders_bp.route('/<order_id>', methods=['DELETE'])
@require_login
def delete_order(order_id):
    order_service.delete_order(get_session(), g.caller, order_id)
    return jsonify({'status': 'ok'})


@orders_bp.route('/<order_id>/convert', methods=['POST'])
@require_login
def convert_to_order(order_id):
    """Quote -> order (type reassignment)."""
    order = order_service.convert_to_order(get_session(), g.caller, order_id)
    return jsonify({'status': 'ok', 'order': order.to_dict()})


@orders_bp.route('/<order_id>/pdf')
@require_login
def download_pdf(order_id):
    db_session = get_session()
    order = order_service.get_order(db_session, g.caller, order_id)
    client = db_session.get(Client, order.client_id) if order.client_id else None

    pdf_buffer = render_order_pdf(order, client, company_info())
    pdfs_generated_total.inc()
    current_app.logger.info(f"PDF generated for order {order.id} by {g.user.email}")

    return send_file(
        pdf_buffer,
        mimetype='application/pdf',
        as_attachment=request.args.get('download', '1') != '0',
        download_name=order_filename(order)
    )


@orders_bp.route('/<order_id>/whatsapp')
@require_login
def whatsapp(order_id):
    """Message text plus a wa.me link (?to=client sends it to the client's phone)."""
    db_session = get_session()
    order = order_service.get_order(db_session, g.caller, order_id)
    company = company_info()

    phone = None
    if request.args.get('to') == 'client' and order.client_id:
        client = db_session.get(Client, order.client_id)
        phone = client.phone if client else None

    return jsonify({
        'message': format_order_message(order, company),
        'url': whatsapp_link(order, company, phone=phone),
    })
