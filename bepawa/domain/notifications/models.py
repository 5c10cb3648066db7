import enum

from sqlalchemy import Column, String, DateTime, Boolean, Text, JSON, func

from bepawa.infrastructure.database import Base, gen_uuid


class NotificationType(str, enum.Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class AlertSeverity(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AlertCategory(str, enum.Enum):
    SYSTEM = "system"
    SECURITY = "security"
    MAINTENANCE = "maintenance"
    UPDATE = "update"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(16), nullable=False, default=NotificationType.INFO.value)
    is_read = Column(Boolean, nullable=False, default=False, index=True)
    action_url = Column(String(512), nullable=True)
    # "metadata" is reserved on declarative classes
    payload = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=func.now(), index=True)
    expires_at = Column(DateTime, nullable=True)


class SystemAlert(Base):
    __tablename__ = "system_alerts"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    severity = Column(String(16), nullable=False, default=AlertSeverity.LOW.value)
    category = Column(String(16), nullable=False, default=AlertCategory.SYSTEM.value)
    is_active = Column(Boolean, nullable=False, default=True)
    target_roles = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=func.now())
    expires_at = Column(DateTime, nullable=True)
