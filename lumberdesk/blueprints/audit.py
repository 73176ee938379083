"""Audit history blueprint (administrators only)."""

from flask import Blueprint, jsonify, request
from lumberdesk.database import get_session
from lumberdesk.exceptions import ValidationError
from lumberdesk.middleware import require_role
from lumberdesk.models import AuditAction, UserRole
from lumberdesk.services.audit_service import list_audit_logs, AUDITED_TABLES

audit_bp = Blueprint('audit', __name__, url_prefix='/audit')

MAX_LIMIT = 500


@audit_bp.route('/')
@require_role(UserRole.ADMIN.value)
def history():
    """?table=orders&action=DELETE&record=<id>&limit=100&offset=0"""
    action = request.args.get('action') or None
    if action and action not in {a.value for a in AuditAction}:
        raise ValidationError(f'Ação inválida: {action}')
    table = request.args.get('table') or None
    if table and table not in AUDITED_TABLES:
        raise ValidationError(f'Tabela inválida: {table}')

    try:
        limit = min(int(request.args.get('limit', 100)), MAX_LIMIT)
        offset = max(int(request.args.get('offset', 0)), 0)
    except ValueError:
        raise ValidationError('limit e offset devem ser números inteiros.')

    logs = list_audit_logs(
        get_session(),
        table_name=table,
        action=action,
        record_id=request.args.get('record') or None,
        limit=limit,
        offset=offset,
    )
    return jsonify({'logs': [log.to_dict() for log in logs]})
