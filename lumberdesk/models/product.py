"""Product model."""
import enum
from decimal import Decimal
from sqlalchemy import Column, String, Numeric, DateTime
from sqlalchemy.sql import func
from lumberdesk.database import Base, new_id


class ProductUnit(enum.Enum):
    """Units of measure a product (or an order item) can be sold in."""
    AREA = 'm2'
    VOLUME = 'm3'
    LENGTH = 'm'
    COUNT = 'un'
    LINEAR = 'ML'
    PIECE = 'Pç'
    WEIGHT = 'Kg'
    SET = 'JG'

    @classmethod
    def parse(cls, value):
        """Return the member for a stored unit string, or None if unknown."""
        if isinstance(value, cls):
            return value
        for unit in cls:
            if unit.value == value:
                return unit
        return None


UNIT_LABELS = {
    'm2': 'm²', 'm3': 'm³', 'm': 'm', 'un': 'un', 'ML': 'ML', 'Pç': 'Pç', 'Kg': 'Kg', 'JG': 'JG'
}


class Product(Base):
    """
    Catalog product with two price points.

    ``price_bruto`` is the raw (unprocessed) price and the single source of
    truth for the legacy ``price`` field, which is exposed read-only.
    """

    __tablename__ = 'product'

    id = Column(String(36), primary_key=True, default=new_id)
    code = Column(String(64), nullable=False)
    name = Column(String(200), nullable=False)
    category = Column(String(120), nullable=True)
    unit = Column(String(4), nullable=False, default=ProductUnit.COUNT.value)
    price_bruto = Column(Numeric(14, 2), nullable=False, default=0)
    price_benef = Column(Numeric(14, 2), nullable=False, default=0)
    cost = Column(Numeric(14, 2), nullable=True)  # Margin tracking only
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    @property
    def price(self):
        """Deprecated alias of price_bruto."""
        return self.price_bruto

    def unit_price(self, processed=False):
        """Catalog price for a new item: beneficiado when requested and set, else bruto."""
        if processed and self.price_benef and Decimal(str(self.price_benef)) > 0:
            return Decimal(str(self.price_benef))
        return Decimal(str(self.price_bruto or 0))

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'name': self.name,
            'category': self.category,
            'unit': self.unit,
            'price': self.price,
            'price_bruto': self.price_bruto,
            'price_benef': self.price_benef,
            'cost': self.cost,
        }

    def __repr__(self):
        return f"<Product(id={self.id}, code='{self.code}', name='{self.name}')>"
