"""Reports blueprint: the dashboard views with longer rankings."""

from flask import Blueprint, jsonify, current_app
from lumberdesk.blueprints.dashboard import analytics_for_request
from lumberdesk.middleware import require_login

reports_bp = Blueprint('reports', __name__, url_prefix='/reports')


@reports_bp.route('/')
@require_login
def index():
    return jsonify(analytics_for_request(current_app.config.get('REPORTS_TOP_PRODUCTS', 10)))
