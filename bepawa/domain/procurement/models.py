import enum

from sqlalchemy import Column, String, DateTime, Date, Boolean, Integer, Numeric, Text, func

from bepawa.infrastructure.database import Base, gen_uuid


class PurchaseOrderStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    RECEIVED = "received"
    CANCELLED = "cancelled"


class Supplier(Base):
    __tablename__ = "suppliers"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    contact_person = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)
    address = Column(Text, nullable=True)
    payment_terms = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())


class PurchaseOrder(Base):
    __tablename__ = "purchase_orders"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    po_number = Column(String(32), nullable=False, unique=True, index=True)
    user_id = Column(String(36), nullable=False, index=True)
    supplier_id = Column(String(36), nullable=True, index=True)
    order_date = Column(Date, nullable=True)
    expected_delivery = Column(Date, nullable=True)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)
    status = Column(String(16), nullable=False, default=PurchaseOrderStatus.PENDING.value)
    created_at = Column(DateTime, default=func.now(), index=True)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())


class PurchaseOrderItem(Base):
    __tablename__ = "purchase_order_items"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    purchase_order_id = Column(String(36), nullable=False, index=True)
    product_id = Column(String(36), nullable=True)
    product_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    received_quantity = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=func.now())
