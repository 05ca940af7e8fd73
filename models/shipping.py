import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime, Float

from core.database import Base


class ShippingOption(Base):
    __tablename__ = "shipping_options"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    name = Column(String(255), nullable=False)
    price = Column(Float, nullable=False)  # no sign check
    delivery_time = Column(String(255), nullable=False)  # e.g. "2-3 business days"
    status = Column(String(16), nullable=False, default="ACTIVE")  # ACTIVE, INACTIVE

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "deliveryTime": self.delivery_time,
            "status": self.status,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
