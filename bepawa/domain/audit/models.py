import enum

from sqlalchemy import Column, String, DateTime, Text, JSON, func

from bepawa.infrastructure.database import Base, gen_uuid


class AuditAction(str, enum.Enum):
    """Audit action types"""
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    LOGIN = "LOGIN"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    STATUS_CHANGE = "STATUS_CHANGE"
    STOCK_ADJUSTMENT = "STOCK_ADJUSTMENT"
    EXPORT = "EXPORT"


class AuditCategory(str, enum.Enum):
    SECURITY = "SECURITY"
    DATA = "DATA"
    INVENTORY = "INVENTORY"
    FINANCIAL = "FINANCIAL"
    SYSTEM = "SYSTEM"


class AuditLog(Base):
    """Append-only record of who changed what"""
    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    user_id = Column(String(36), nullable=True, index=True)
    action = Column(String(32), nullable=False, index=True)
    resource_type = Column(String(64), nullable=False, index=True)
    resource_id = Column(String(36), nullable=True, index=True)
    old_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=True)
    category = Column(String(32), nullable=True, index=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now(), index=True)
