from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.api.deps import get_current_user, require_permissions
from bepawa.api.v1.notifications.schemas import (
    MarkAllReadResponse,
    SystemAlertCreate,
    SystemAlertResponse,
    UnreadCountResponse,
)
from bepawa.core.permissions import Permissions
from bepawa.domain.catalog.mappers import NotificationView
from bepawa.domain.notifications.service import NotificationService
from bepawa.domain.profiles.models import Profile
from bepawa.infrastructure.database import get_db

router = APIRouter(tags=["Notifications"])


@router.get("/notifications", response_model=List[NotificationView])
async def list_notifications(
    limit: int = Query(50, ge=1, le=200),
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await NotificationService(db).list_for_user(current_user.id, limit=limit)


@router.get("/notifications/unread-count", response_model=UnreadCountResponse)
async def unread_count(current_user: Profile = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return UnreadCountResponse(unread=await NotificationService(db).unread_count(current_user.id))


@router.post("/notifications/{notification_id}/read", response_model=NotificationView)
async def mark_as_read(
    notification_id: str,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await NotificationService(db).mark_as_read(notification_id, current_user.id)


@router.post("/notifications/read-all", response_model=MarkAllReadResponse)
async def mark_all_as_read(current_user: Profile = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return MarkAllReadResponse(updated=await NotificationService(db).mark_all_as_read(current_user.id))


@router.get("/system-alerts", response_model=List[SystemAlertResponse])
async def active_alerts(current_user: Profile = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    alerts = await NotificationService(db).active_alerts(current_user.role)
    return [SystemAlertResponse.model_validate(a) for a in alerts]


@router.post("/system-alerts", response_model=SystemAlertResponse, status_code=status.HTTP_201_CREATED)
async def create_alert(
    data: SystemAlertCreate,
    current_user: Profile = Depends(require_permissions([Permissions.ALERTS_MANAGE])),
    db: AsyncSession = Depends(get_db),
):
    alert_data = data.model_dump()
    alert_data.update({
        "severity": data.severity.value,
        "category": data.category.value,
        "target_roles": [role.value for role in data.target_roles],
    })
    alert = await NotificationService(db).create_alert(alert_data)
    return SystemAlertResponse.model_validate(alert)


@router.delete("/system-alerts/{alert_id}", response_model=SystemAlertResponse)
async def deactivate_alert(
    alert_id: str,
    current_user: Profile = Depends(require_permissions([Permissions.ALERTS_MANAGE])),
    db: AsyncSession = Depends(get_db),
):
    return SystemAlertResponse.model_validate(await NotificationService(db).deactivate_alert(alert_id))
