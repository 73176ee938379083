"""OrderItem model for order line items."""
import enum
from sqlalchemy import Column, String, Integer, Numeric, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from lumberdesk.database import Base, new_id


class DiscountType(enum.Enum):
    """How discount_value is interpreted."""
    PERCENTAGE = 'percentage'
    FIXED = 'fixed'


class OrderItem(Base):
    """
    Order Item (item do pedido).

    Stores its own snapshot of description, quantity, unit price and unit so
    later catalog price changes do not affect past documents. product_id is
    optional: ad hoc items are not tied to the catalog.
    """

    __tablename__ = 'order_item'

    id = Column(String(36), primary_key=True, default=new_id)
    order_id = Column(String(36), ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    product_id = Column(String(36), nullable=True)
    description = Column(String(255), nullable=False)
    quantity = Column(Numeric(12, 3), nullable=False)
    unit_price = Column(Numeric(14, 2), nullable=False)
    unit = Column(String(4), nullable=False, default='un')
    discount_type = Column(String(12), nullable=False, default=DiscountType.FIXED.value)
    discount_value = Column(Numeric(14, 2), nullable=False, default=0)
    length = Column(Numeric(10, 3), nullable=True)  # meters
    width = Column(Numeric(10, 2), nullable=True)  # centimeters
    is_processed = Column(Boolean, nullable=False, default=False)  # beneficiado price
    total = Column(Numeric(14, 2), nullable=False, default=0)

    # Relationships
    order = relationship('Order', back_populates='items')

    def to_pricing_input(self):
        """Build the pricing engine input from this item's snapshot fields."""
        from lumberdesk.services.pricing_service import LineItemInput
        return LineItemInput(
            quantity=self.quantity,
            unit_price=self.unit_price,
            unit=self.unit,
            length=self.length,
            width=self.width,
            discount_type=self.discount_type or DiscountType.FIXED.value,
            discount_value=self.discount_value or 0,
            description=self.description,
        )

    def to_dict(self):
        return {
            'id': self.id,
            'product_id': self.product_id,
            'description': self.description,
            'quantity': self.quantity,
            'unit_price': self.unit_price,
            'unit': self.unit,
            'discount_type': self.discount_type,
            'discount_value': self.discount_value,
            'length': self.length,
            'width': self.width,
            'is_processed': self.is_processed,
            'total': self.total,
        }

    def __repr__(self):
        return f"<OrderItem(id={self.id}, order_id={self.order_id}, description='{self.description}', total={self.total})>"
