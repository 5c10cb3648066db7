"""
Appointments Repository Layer

Data access for appointments.
"""

from datetime import date
from typing import Optional, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.domain.appointments.models import Appointment


class AppointmentRepository:
    """Repository for appointment operations"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, data: dict) -> Appointment:
        appointment = Appointment(**data)
        self.db.add(appointment)
        await self.db.commit()
        await self.db.refresh(appointment)
        return appointment

    async def get(self, appointment_id: str) -> Optional[Appointment]:
        result = await self.db.execute(select(Appointment).where(Appointment.id == appointment_id))
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: str) -> List[Appointment]:
        result = await self.db.execute(
            select(Appointment)
            .where(Appointment.user_id == user_id)
            .order_by(Appointment.appointment_date, Appointment.appointment_time)
        )
        return list(result.scalars().all())

    async def list_for_provider(
        self,
        provider_id: str,
        on_date: Optional[date] = None,
        status: Optional[str] = None,
    ) -> List[Appointment]:
        query = select(Appointment).where(Appointment.provider_id == provider_id)
        if on_date:
            query = query.where(Appointment.appointment_date == on_date)
        if status:
            query = query.where(Appointment.status == status)
        result = await self.db.execute(
            query.order_by(Appointment.appointment_date, Appointment.appointment_time)
        )
        return list(result.scalars().all())
