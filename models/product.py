"""
Catalog models: products and their purchasable variants
"""
import uuid
from datetime import datetime

from sqlalchemy import Column, String, Text, DateTime, Integer, Float, ForeignKey, JSON
from sqlalchemy.orm import relationship

from core.database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(100), nullable=False)
    subcategory = Column(String(100), nullable=True)
    tags = Column(JSON, default=list)

    # Only set when the product has no variants
    price = Column(Float, nullable=True)
    inventory = Column(Integer, nullable=True)

    barcode = Column(String(64), unique=True, index=True, nullable=True)
    image_url = Column(Text, nullable=True)
    image_public_id = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    variants = relationship(
        "ProductVariant",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductVariant.created_at",
    )

    def to_dict(self, include_variants: bool = True):
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "inventory": self.inventory,
            "category": self.category,
            "subcategory": self.subcategory,
            "tags": self.tags or [],
            "barcode": self.barcode,
            "imageUrl": self.image_url,
            "imagePublicId": self.image_public_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_variants:
            data["variants"] = [v.to_dict() for v in self.variants]
        return data


class ProductVariant(Base):
    """A purchasable configuration of a product (size, color...) with its own SKU"""
    __tablename__ = "product_variants"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    product_id = Column(String(32), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)

    sku = Column(String(128), nullable=True, index=True)
    name = Column(String(255), nullable=True)  # e.g. "M", "Red/XL"
    price = Column(Float, nullable=True)
    inventory = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    product = relationship("Product", back_populates="variants")

    def to_dict(self):
        return {
            "id": self.id,
            "productId": self.product_id,
            "sku": self.sku,
            "name": self.name,
            "price": self.price,
            "inventory": self.inventory,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
