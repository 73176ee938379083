"""AppUser model - staff accounts with email/password authentication."""
import enum
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.sql import func
from werkzeug.security import generate_password_hash, check_password_hash
from lumberdesk.database import Base, new_id


class UserRole(enum.Enum):
    """Staff roles."""
    ADMIN = 'admin'
    SALES = 'sales'


class AppUser(Base):
    """
    Staff user.

    seller_id links a sales account to the seller identity whose orders it
    may see; administrators see everything regardless.
    """

    __tablename__ = 'app_user'

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(200), nullable=True)
    password_hash = Column(String(255), nullable=True)
    role = Column(String(10), nullable=False, default=UserRole.SALES.value)
    seller_id = Column(String(36), nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    def set_password(self, password):
        """Set password hash."""
        self.password_hash = generate_password_hash(password, method='scrypt')

    def check_password(self, password):
        """Check password against hash."""
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def is_admin(self):
        return self.role == UserRole.ADMIN.value

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'role': self.role,
            'seller_id': self.seller_id,
            'active': self.active,
        }

    def __repr__(self):
        return f"<AppUser(id={self.id}, email='{self.email}', role='{self.role}')>"
