from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func

from bepawa.domain.notifications.models import Notification, SystemAlert


class NotificationRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, data: dict, commit: bool = True) -> Notification:
        notification = Notification(**data)
        self.db.add(notification)
        if commit:
            await self.db.commit()
            await self.db.refresh(notification)
        else:
            await self.db.flush()
        return notification

    async def get(self, notification_id: str) -> Optional[Notification]:
        result = await self.db.execute(select(Notification).where(Notification.id == notification_id))
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: str, limit: int = 50) -> List[Notification]:
        result = await self.db.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def mark_read(self, notification_id: str) -> None:
        await self.db.execute(
            update(Notification).where(Notification.id == notification_id).values(is_read=True)
        )
        await self.db.commit()

    async def mark_all_read(self, user_id: str) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
        )
        await self.db.commit()
        return result.rowcount or 0

    async def count_unread(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id, Notification.is_read.is_(False)
            )
        )
        return result.scalar_one()


class SystemAlertRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, data: dict) -> SystemAlert:
        alert = SystemAlert(**data)
        self.db.add(alert)
        await self.db.commit()
        await self.db.refresh(alert)
        return alert

    async def list_active(self) -> List[SystemAlert]:
        result = await self.db.execute(
            select(SystemAlert)
            .where(SystemAlert.is_active.is_(True))
            .order_by(SystemAlert.created_at.desc())
        )
        return list(result.scalars().all())

    async def get(self, alert_id: str) -> Optional[SystemAlert]:
        result = await self.db.execute(select(SystemAlert).where(SystemAlert.id == alert_id))
        return result.scalar_one_or_none()

    async def deactivate(self, alert: SystemAlert) -> SystemAlert:
        alert.is_active = False
        await self.db.commit()
        await self.db.refresh(alert)
        return alert
