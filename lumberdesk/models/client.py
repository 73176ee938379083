"""Client model."""
import enum
from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from lumberdesk.database import Base, new_id


class ClientType(enum.Enum):
    """Individual (CPF) or organization (CNPJ)."""
    PF = 'PF'
    PJ = 'PJ'


class Client(Base):
    """Client (cliente)."""

    __tablename__ = 'client'

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(200), nullable=False)
    document = Column(String(32), nullable=True)  # CPF or CNPJ
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    type = Column(String(2), nullable=False, default=ClientType.PF.value)
    internal_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'document': self.document,
            'phone': self.phone,
            'email': self.email,
            'address': self.address,
            'type': self.type,
            'internal_notes': self.internal_notes,
        }

    def __repr__(self):
        return f"<Client(id={self.id}, name='{self.name}', type='{self.type}')>"
