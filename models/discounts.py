import uuid
from datetime import datetime

from sqlalchemy import Column, String, Text, DateTime, Integer, Float, Boolean, ForeignKey, Table
from sqlalchemy.orm import relationship

from core.database import Base
from models.product import Product, ProductVariant


DISCOUNT_TYPES = ("percentage", "fixed_amount", "free_shipping")


discount_products = Table(
    "discount_products",
    Base.metadata,
    Column("discount_id", String(32), ForeignKey("discounts.id", ondelete="CASCADE"), primary_key=True),
    Column("product_id", String(32), ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
)

discount_variants = Table(
    "discount_variants",
    Base.metadata,
    Column("discount_id", String(32), ForeignKey("discounts.id", ondelete="CASCADE"), primary_key=True),
    Column("variant_id", String(32), ForeignKey("product_variants.id", ondelete="CASCADE"), primary_key=True),
)


class Discount(Base):
    __tablename__ = "discounts"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    code = Column(String(64), nullable=False, index=True)
    description = Column(Text, nullable=True)
    type = Column(String(32), nullable=False)  # percentage, fixed_amount, free_shipping
    value = Column(Float, nullable=False)

    usage_limit = Column(Integer, nullable=True)
    usage_count = Column(Integer, nullable=False, default=0)

    starts_at = Column(DateTime, nullable=False)
    ends_at = Column(DateTime, nullable=True)  # not checked against starts_at
    is_active = Column(Boolean, nullable=False, default=True)
    min_subtotal = Column(Float, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Empty sets mean the discount applies to the whole order
    products = relationship(Product, secondary=discount_products, lazy="selectin", backref="discounts")
    variants = relationship(ProductVariant, secondary=discount_variants, lazy="selectin", backref="discounts")

    def to_dict(self):
        return {
            "id": self.id,
            "code": self.code,
            "description": self.description,
            "type": self.type,
            "value": self.value,
            "usageLimit": self.usage_limit,
            "usageCount": self.usage_count,
            "startsAt": self.starts_at.isoformat() if self.starts_at else None,
            "endsAt": self.ends_at.isoformat() if self.ends_at else None,
            "isActive": bool(self.is_active),
            "minSubtotal": self.min_subtotal,
            "products": [p.to_dict(include_variants=False) for p in self.products],
            "variants": [v.to_dict() for v in self.variants],
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
