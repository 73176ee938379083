"""
Audit Log model for tracking changes to business records.
"""
import enum
from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.sql import func
from lumberdesk.database import Base, new_id


class AuditAction(enum.Enum):
    """Enumeration of auditable actions."""
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class AuditLog(Base):
    """
    Audit log entry with before/after snapshots of the affected row.
    """
    __tablename__ = 'audit_log'

    id = Column(String(36), primary_key=True, default=new_id)
    table_name = Column(String(50), nullable=False, index=True)
    action = Column(String(10), nullable=False, index=True)
    record_id = Column(String(36), nullable=False)
    user_id = Column(String(36), nullable=True)
    user_email = Column(String(255), nullable=True)
    before = Column(JSON, nullable=True)
    after = Column(JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now(), index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'table_name': self.table_name,
            'action': self.action,
            'record_id': self.record_id,
            'user_id': self.user_id,
            'user_email': self.user_email,
            'before': self.before,
            'after': self.after,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<AuditLog {self.action} {self.table_name}:{self.record_id} by {self.user_email}>"
