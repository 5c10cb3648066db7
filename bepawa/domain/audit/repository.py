from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from bepawa.domain.audit.models import AuditLog


class AuditRepository:
    """Insert and read only; audit rows are never updated or deleted"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(self, data: dict) -> AuditLog:
        entry = AuditLog(**data)
        self.db.add(entry)
        await self.db.commit()
        await self.db.refresh(entry)
        return entry

    async def list(
        self,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        user_id: Optional[str] = None,
        category: Optional[str] = None,
        limit: int = 50,
    ) -> List[AuditLog]:
        query = select(AuditLog)
        if resource_type:
            query = query.where(AuditLog.resource_type == resource_type)
        if resource_id:
            query = query.where(AuditLog.resource_id == resource_id)
        if user_id:
            query = query.where(AuditLog.user_id == user_id)
        if category:
            query = query.where(AuditLog.category == category)
        result = await self.db.execute(query.order_by(AuditLog.created_at.desc()).limit(limit))
        return list(result.scalars().all())
