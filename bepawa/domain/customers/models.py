import enum

from sqlalchemy import Column, String, DateTime, Integer, Numeric, Text, func

from bepawa.infrastructure.database import Base, gen_uuid


class CustomerStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class CommunicationType(str, enum.Enum):
    CALL = "call"
    EMAIL = "email"
    SMS = "sms"
    MEETING = "meeting"


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)
    address = Column(Text, nullable=True)
    business_type = Column(String(100), nullable=True)
    total_orders = Column(Integer, nullable=False, default=0)
    total_spent = Column(Numeric(12, 2), nullable=False, default=0)
    last_order_date = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(String(16), nullable=False, default=CustomerStatus.ACTIVE.value)
    created_at = Column(DateTime, default=func.now(), index=True)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())


class CustomerCommunication(Base):
    __tablename__ = "customer_communications"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    customer_id = Column(String(36), nullable=False, index=True)
    type = Column(String(16), nullable=False)
    subject = Column(String(255), nullable=False)
    notes = Column(Text, nullable=True)
    communication_date = Column(DateTime, default=func.now())
    created_at = Column(DateTime, default=func.now())
