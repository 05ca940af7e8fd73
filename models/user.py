"""
Staff user accounts (administrators and cashiers)
"""
import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime

from core.database import Base


USER_ROLES = ("ADMIN", "CASHIER")


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)

    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)  # bcrypt hash
    role = Column(String(32), nullable=False, default="CASHIER")  # ADMIN, CASHIER

    # Timestamps
    last_active = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self):
        """Convert to dict for API responses. The password hash is never included."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "lastActive": self.last_active.isoformat() if self.last_active else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
