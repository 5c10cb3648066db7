from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.core.exceptions import ErrorHandler, NotFoundError
from bepawa.core.permissions import UserRole
from bepawa.domain.catalog.mappers import NotificationView, map_notification_row
from bepawa.domain.notifications.models import Notification, NotificationType, SystemAlert
from bepawa.domain.notifications.repository import NotificationRepository, SystemAlertRepository

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = NotificationRepository(db)
        self.alert_repo = SystemAlertRepository(db)

    async def list_for_user(self, user_id: str, limit: int = 50) -> List[NotificationView]:
        with ErrorHandler("fetch notifications"):
            rows = await self.repo.list_for_user(user_id, limit=limit)
        return [map_notification_row(row) for row in rows]

    async def notify(
        self,
        user_id: str,
        title: str,
        message: str,
        type: str = NotificationType.INFO.value,
        action_url: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        expires_at: Optional[datetime] = None,
        commit: bool = True,
    ) -> Notification:
        """
        Create a notification for ``user_id``.

        With ``commit=False`` the row is only flushed, so callers running a
        larger unit of work commit it together with their own changes.
        """
        data = {
            "user_id": user_id,
            "title": title,
            "message": message,
            "type": NotificationType(type).value,
            "action_url": action_url,
            "payload": metadata or {},
            "expires_at": expires_at,
            "is_read": False,
        }
        with ErrorHandler("create notification"):
            notification = await self.repo.add(data, commit=commit)
        logger.info(f"Notification '{title}' queued for user {user_id}")
        return notification

    async def mark_as_read(self, notification_id: str, user_id: str) -> NotificationView:
        notification = await self.repo.get(notification_id)
        if not notification or notification.user_id != user_id:
            raise NotFoundError("Notification not found")
        with ErrorHandler("mark notification as read"):
            await self.repo.mark_read(notification_id)
            await self.db.refresh(notification)
        return map_notification_row(notification)

    async def mark_all_as_read(self, user_id: str) -> int:
        with ErrorHandler("mark all notifications as read"):
            return await self.repo.mark_all_read(user_id)

    async def unread_count(self, user_id: str) -> int:
        # Badge counters degrade to zero rather than failing the page
        try:
            return await self.repo.count_unread(user_id)
        except SQLAlchemyError as e:
            logger.error(f"Error getting unread count for {user_id}: {e}")
            return 0

    # ==================== System Alerts ====================

    async def active_alerts(self, role: Optional[str] = None) -> List[SystemAlert]:
        """Active, unexpired alerts addressed to ``role`` (or to everyone)"""
        with ErrorHandler("fetch system alerts"):
            alerts = await self.alert_repo.list_active()

        now = datetime.utcnow()
        parsed = UserRole.parse(role)
        visible = []
        for alert in alerts:
            if alert.expires_at and alert.expires_at < now:
                continue
            targets = alert.target_roles or []
            if targets and (parsed is None or parsed.value not in targets):
                continue
            visible.append(alert)
        return visible

    async def create_alert(self, data: dict) -> SystemAlert:
        with ErrorHandler("create system alert"):
            return await self.alert_repo.create(data)

    async def deactivate_alert(self, alert_id: str) -> SystemAlert:
        alert = await self.alert_repo.get(alert_id)
        if not alert:
            raise NotFoundError("System alert not found")
        with ErrorHandler("deactivate system alert"):
            return await self.alert_repo.deactivate(alert)
