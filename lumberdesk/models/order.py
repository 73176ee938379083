"""Order model: one entity for both quotes (orçamentos) and orders (pedidos)."""
import enum
from sqlalchemy import Column, String, Numeric, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from lumberdesk.database import Base, new_id


class OrderStatus(enum.Enum):
    """Order status enum."""
    DRAFT = "DRAFT"
    SENT = "SENT"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class DocumentType(enum.Enum):
    """Lifecycle stage of the document. A quote becomes an order by reassignment."""
    QUOTE = "QUOTE"
    ORDER = "ORDER"


STATUS_LABELS = {
    'DRAFT': 'Rascunho',
    'SENT': 'Enviado',
    'APPROVED': 'Aprovado',
    'REJECTED': 'Recusado',
}

TYPE_LABELS = {
    'QUOTE': 'Orçamento',
    'ORDER': 'Pedido',
}


class Order(Base):
    """
    Order header.

    client_id and seller_id are plain references with name snapshots: a
    client or seller may be deleted later without touching past documents.
    subtotal, total_discount and total are computed from the items by the
    pricing service and are never edited by hand.
    """

    __tablename__ = 'orders'

    id = Column(String(36), primary_key=True, default=new_id)
    client_id = Column(String(36), nullable=True, index=True)
    client_name = Column(String(200), nullable=False)
    seller_id = Column(String(36), nullable=True, index=True)
    seller_name = Column(String(200), nullable=True)
    date = Column(DateTime, nullable=False, index=True)
    status = Column(String(20), nullable=False, default=OrderStatus.DRAFT.value)
    type = Column(String(10), nullable=False, default=DocumentType.QUOTE.value)
    subtotal = Column(Numeric(14, 2), nullable=False, default=0)
    total_discount = Column(Numeric(14, 2), nullable=False, default=0)
    total = Column(Numeric(14, 2), nullable=False, default=0)
    internal_notes = Column(Text, nullable=True)  # Staff only
    customer_notes = Column(Text, nullable=True)  # Printed on the PDF
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    # Relationships
    items = relationship(
        'OrderItem',
        back_populates='order',
        cascade='all, delete-orphan',
        order_by='OrderItem.position'
    )

    @property
    def is_quote(self):
        return self.type == DocumentType.QUOTE.value

    @property
    def type_label(self):
        return TYPE_LABELS.get(self.type, self.type)

    @property
    def status_label(self):
        return STATUS_LABELS.get(self.status, self.status)

    @property
    def short_id(self):
        """Last six characters of the id, as printed on documents."""
        return (self.id or '')[-6:].upper()

    def to_dict(self, include_items=True):
        data = {
            'id': self.id,
            'client_id': self.client_id,
            'client_name': self.client_name,
            'seller_id': self.seller_id,
            'seller_name': self.seller_name,
            'date': self.date.isoformat() if self.date else None,
            'status': self.status,
            'type': self.type,
            'subtotal': self.subtotal,
            'total_discount': self.total_discount,
            'total': self.total,
            'internal_notes': self.internal_notes,
            'customer_notes': self.customer_notes,
        }
        if include_items:
            data['items'] = [item.to_dict() for item in self.items]
        return data

    def __repr__(self):
        return f"<Order(id={self.id}, type='{self.type}', status='{self.status}', total={self.total})>"
