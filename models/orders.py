"""
Order models
Orders are created either from the storefront checkout (customer fields required)
or from the admin point of sale (cashier_id set).
"""
import enum
import uuid
from datetime import datetime

from sqlalchemy import Column, String, Text, DateTime, Integer, Float, ForeignKey
from sqlalchemy.orm import relationship

from core.database import Base
from models.discounts import Discount
from models.product import Product, ProductVariant
from models.shipping import ShippingOption
from models.user import User


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


# Orders in these states have already taken stock out of inventory
FULFILLED_STATUSES = (OrderStatus.SHIPPED.value, OrderStatus.DELIVERED.value)


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)

    # Customer contact
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    postal_code = Column(String(20), nullable=True)
    country = Column(String(100), nullable=True)

    cashier_id = Column(String(32), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    status = Column(String(16), nullable=False, default=OrderStatus.PENDING.value)

    # Money
    subtotal = Column(Float, nullable=False, default=0)
    shipping_option_id = Column(String(32), ForeignKey("shipping_options.id", ondelete="SET NULL"), nullable=True)
    shipping_cost = Column(Float, nullable=True, default=0)
    total = Column(Float, nullable=False, default=0)
    discount_id = Column(String(32), ForeignKey("discounts.id", ondelete="SET NULL"), nullable=True)
    payment_reference = Column(String(255), nullable=True, unique=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    discount = relationship(Discount)
    shipping_option = relationship(ShippingOption)
    cashier = relationship(User)

    def to_dict(self):
        return {
            "id": self.id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "postalCode": self.postal_code,
            "country": self.country,
            "cashierId": self.cashier_id,
            "status": self.status,
            "subtotal": self.subtotal,
            "shippingOptionId": self.shipping_option_id,
            "shippingOption": self.shipping_option.to_dict() if self.shipping_option else None,
            "shippingCost": self.shipping_cost,
            "total": self.total,
            "discountId": self.discount_id,
            "discount": self.discount.to_dict() if self.discount else None,
            "paymentReference": self.payment_reference,
            "items": [i.to_dict() for i in self.items],
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    order_id = Column(String(32), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(String(32), ForeignKey("products.id"), nullable=False)
    variant_id = Column(String(32), ForeignKey("product_variants.id"), nullable=True)
    quantity = Column(Integer, nullable=False)
    subtotal = Column(Float, nullable=False)  # unit price * quantity

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    order = relationship("Order", back_populates="items")
    product = relationship(Product)
    variant = relationship(ProductVariant)

    def to_dict(self):
        return {
            "id": self.id,
            "orderId": self.order_id,
            "productId": self.product_id,
            "product": self.product.to_dict(include_variants=False) if self.product else None,
            "variantId": self.variant_id,
            "variant": self.variant.to_dict() if self.variant else None,
            "quantity": self.quantity,
            "subtotal": self.subtotal,
        }
