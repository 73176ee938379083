"""Models package - exports all SQLAlchemy models."""
# Accounts
from lumberdesk.models.app_user import AppUser, UserRole

# Business Models
from lumberdesk.models.client import Client, ClientType
from lumberdesk.models.product import Product, ProductUnit, UNIT_LABELS
from lumberdesk.models.seller import Seller
from lumberdesk.models.order import Order, OrderStatus, DocumentType, STATUS_LABELS, TYPE_LABELS
from lumberdesk.models.order_item import OrderItem, DiscountType
from lumberdesk.models.audit_log import AuditLog, AuditAction

__all__ = [
    'AppUser', 'UserRole',
    'Client', 'ClientType',
    'Product', 'ProductUnit', 'UNIT_LABELS',
    'Seller',
    'Order', 'OrderStatus', 'DocumentType', 'STATUS_LABELS', 'TYPE_LABELS',
    'OrderItem', 'DiscountType',
    'AuditLog', 'AuditAction',
]
