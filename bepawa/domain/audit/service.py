from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.core.exceptions import ErrorHandler
from bepawa.domain.audit.models import AuditCategory, AuditLog
from bepawa.domain.audit.repository import AuditRepository
from bepawa.domain.catalog.mappers import AuditLogView, map_audit_log_row

logger = logging.getLogger(__name__)


class AuditService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = AuditRepository(db)

    async def log_action(
        self,
        user_id: Optional[str],
        action: str,
        resource_type: str,
        resource_id: Optional[str] = None,
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None,
        category: str = AuditCategory.DATA.value,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Optional[AuditLog]:
        """Record an action. Failures are logged and never reach the caller."""
        data = {
            "user_id": user_id,
            "action": action,
            "resource_type": resource_type,
            "resource_id": resource_id,
            "old_values": old_values,
            "new_values": new_values,
            "category": category,
            "ip_address": ip_address,
            "user_agent": user_agent,
        }
        try:
            return await self.repo.append(data)
        except SQLAlchemyError as e:
            logger.error(f"Error logging audit action {action} on {resource_type}: {e}")
            await self.db.rollback()
            return None

    async def list_logs(
        self,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        category: Optional[str] = None,
        limit: int = 50,
    ) -> List[AuditLogView]:
        with ErrorHandler("fetch audit logs"):
            rows = await self.repo.list(
                resource_type=resource_type,
                resource_id=resource_id,
                category=category,
                limit=limit,
            )
        return [map_audit_log_row(row) for row in rows]

    async def user_activity(self, user_id: str, limit: int = 50) -> List[AuditLogView]:
        with ErrorHandler("fetch user activity"):
            rows = await self.repo.list(user_id=user_id, limit=limit)
        return [map_audit_log_row(row) for row in rows]
