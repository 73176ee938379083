"""Seller directory entry."""
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.sql import func
from lumberdesk.database import Base, new_id


class Seller(Base):
    """
    Seller (vendedor).

    Independent of login accounts. Orders keep referencing a seller by id
    after it is deactivated or deleted, so reports can still attribute them.
    """

    __tablename__ = 'seller'

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(200), nullable=False)
    whatsapp = Column(String(50), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'whatsapp': self.whatsapp,
            'is_active': self.is_active,
        }

    def __repr__(self):
        return f"<Seller(id={self.id}, name='{self.name}', active={self.is_active})>"
