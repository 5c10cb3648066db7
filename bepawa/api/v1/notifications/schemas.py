from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from bepawa.core.permissions import UserRole
from bepawa.domain.notifications.models import AlertCategory, AlertSeverity


class UnreadCountResponse(BaseModel):
    unread: int


class MarkAllReadResponse(BaseModel):
    updated: int


class SystemAlertCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    severity: AlertSeverity = AlertSeverity.LOW
    category: AlertCategory = AlertCategory.SYSTEM
    target_roles: List[UserRole] = []
    expires_at: Optional[datetime] = None


class SystemAlertResponse(BaseModel):
    id: str
    title: str
    message: str
    severity: str
    category: str
    is_active: bool
    target_roles: Optional[List[str]] = None
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    class Config:
        from_attributes = True
