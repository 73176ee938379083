"""
Audit logging service for tracking changes to clients, products, sellers and orders.
"""
from lumberdesk.models import AuditLog, AuditAction
import json
import logging

logger = logging.getLogger(__name__)

# Entity names recorded in AuditLog.table_name
CLIENTS = 'clients'
PRODUCTS = 'products'
SELLERS = 'sellers'
ORDERS = 'orders'
USERS = 'app_users'
AUDITED_TABLES = (CLIENTS, PRODUCTS, SELLERS, ORDERS, USERS)


def snapshot(record):
    """JSON-safe copy of a model's to_dict() (Decimals and dates become strings)."""
    if record is None:
        return None
    data = record.to_dict() if hasattr(record, 'to_dict') else record
    return json.loads(json.dumps(data, default=str))


def log_action(
    session,
    caller,
    action: AuditAction,
    table_name: str,
    record_id: str,
    before: dict = None,
    after: dict = None
):
    """
    Add an audit entry to the session.

    Args:
        session: Database session
        caller: Caller performing the change (may be None for CLI scripts)
        action: AuditAction enum value
        table_name: One of AUDITED_TABLES
        record_id: ID of the affected row
        before: Snapshot before the change
        after: Snapshot after the change
    """
    try:
        entry = AuditLog(
            table_name=table_name,
            action=action.value,
            record_id=record_id,
            user_id=caller.user_id if caller else None,
            user_email=caller.email if caller else None,
            before=before,
            after=after,
        )
        session.add(entry)
        # Note: Caller is responsible for committing the session

        logger.info(f"Audit log created: {action.value} on {table_name} {record_id} by {entry.user_email}")

    except Exception as e:
        logger.error(f"Failed to create audit log: {e}")
        # Audit failures must not block the business write


def list_audit_logs(
    session,
    table_name: str = None,
    action: str = None,
    record_id: str = None,
    limit: int = 100,
    offset: int = 0
):
    """
    Retrieve audit logs, newest first, with optional filters.

    Returns:
        List of AuditLog objects
    """
    query = session.query(AuditLog)

    if table_name:
        query = query.filter(AuditLog.table_name == table_name)

    if action:
        query = query.filter(AuditLog.action == action)

    if record_id:
        query = query.filter(AuditLog.record_id == record_id)

    query = query.order_by(AuditLog.created_at.desc())
    query = query.limit(limit).offset(offset)

    return query.all()
