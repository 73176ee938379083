"""
Dashboard blueprint.
KPIs, sales series and rankings for the caller's visible orders.
"""

from datetime import date
from flask import Blueprint, jsonify, request, g, current_app
from lumberdesk.database import get_session
from lumberdesk.exceptions import ValidationError
from lumberdesk.middleware import require_login
from lumberdesk.services import catalog_service, order_service
from lumberdesk.services.analytics_service import AnalyticsFilters, build_analytics, fetch_range, resolve_period

dashboard_bp = Blueprint('dashboard', __name__, url_prefix='/dashboard')


def _date_arg(name):
    value = request.args.get(name)
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f'Data inválida em {name}: {value}')


def analytics_for_request(top_products):
    """
    Resolve the period/filters in the query string and build every view.

    Query args: period (7, 30, 90, 12m, day, custom), start, end, date,
    seller (id, 'all' or 'unassigned'), type (QUOTE or ORDER).
    """
    today = date.today()
    start, end = resolve_period(
        request.args.get('period', '30'),
        today,
        start=_date_arg('start'),
        end=_date_arg('end'),
        specific_date=_date_arg('date'),
    )
    filters = AnalyticsFilters(
        start=start,
        end=end,
        seller_id=request.args.get('seller') or None,
        doc_type=request.args.get('type') or None,
    )

    db_session = get_session()
    fetch_start, fetch_end = fetch_range(filters, today)
    scoped = order_service.fetch_scoped_orders(db_session, g.caller, fetch_start, fetch_end)
    sellers = catalog_service.list_sellers(db_session)

    current_app.logger.debug(f"Analytics for {g.user.email}: {start}..{end}, {len(scoped)} orders loaded")
    return build_analytics(scoped, sellers, filters, today=today, top_products=top_products)


@dashboard_bp.route('/')
@require_login
def index():
    """Dashboard data (top 5 products)."""
    return jsonify(analytics_for_request(current_app.config.get('DASHBOARD_TOP_PRODUCTS', 5)))
