from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.api.deps import get_current_user, require_permissions
from bepawa.core.permissions import Permissions
from bepawa.domain.audit.service import AuditService
from bepawa.domain.catalog.mappers import AuditLogView
from bepawa.domain.profiles.models import Profile
from bepawa.infrastructure.database import get_db

router = APIRouter(prefix="/audit", tags=["Audit"])


@router.get("/logs", response_model=List[AuditLogView])
async def list_logs(
    resource_type: Optional[str] = None,
    resource_id: Optional[str] = None,
    category: Optional[str] = None,
    limit: int = Query(50, ge=1, le=500),
    current_user: Profile = Depends(require_permissions([Permissions.AUDIT_READ])),
    db: AsyncSession = Depends(get_db),
):
    return await AuditService(db).list_logs(
        resource_type=resource_type, resource_id=resource_id, category=category, limit=limit
    )


@router.get("/users/{user_id}", response_model=List[AuditLogView])
async def user_activity(
    user_id: str,
    limit: int = Query(50, ge=1, le=500),
    current_user: Profile = Depends(require_permissions([Permissions.AUDIT_READ])),
    db: AsyncSession = Depends(get_db),
):
    return await AuditService(db).user_activity(user_id, limit=limit)


@router.get("/me", response_model=List[AuditLogView])
async def my_activity(
    limit: int = Query(50, ge=1, le=500),
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AuditService(db).user_activity(current_user.id, limit=limit)
