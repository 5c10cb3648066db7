import enum

from sqlalchemy import Column, String, DateTime, Numeric, Text, JSON, func

from bepawa.infrastructure.database import Base, gen_uuid


class OrderStatus(str, enum.Enum):
    CART = "cart"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    UNPAID = "unpaid"
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"
    FAILED = "failed"


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    order_number = Column(String(64), nullable=False, unique=True, index=True)
    user_id = Column(String(36), nullable=False, index=True)
    pharmacy_id = Column(String(36), nullable=True, index=True)
    wholesaler_id = Column(String(36), nullable=True, index=True)
    status = Column(String(16), nullable=False, default=OrderStatus.PENDING.value, index=True)
    payment_status = Column(String(16), nullable=False, default=PaymentStatus.UNPAID.value)
    # Line items: [{"id", "name", "price", "quantity", ...}]
    items = Column(JSON, nullable=False, default=list)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    shipping_address = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now(), index=True)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())


class OrderStatusHistory(Base):
    __tablename__ = "order_status_history"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    order_id = Column(String(36), nullable=False, index=True)
    status = Column(String(16), nullable=False)
    changed_by = Column(String(36), nullable=True)
    changed_at = Column(DateTime, default=func.now())
    notes = Column(Text, nullable=True)
