from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from bepawa.domain.prescriptions.models import Prescription


class PrescriptionRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, data: dict) -> Prescription:
        prescription = Prescription(**data)
        self.db.add(prescription)
        await self.db.commit()
        await self.db.refresh(prescription)
        return prescription

    async def get(self, prescription_id: str) -> Optional[Prescription]:
        result = await self.db.execute(select(Prescription).where(Prescription.id == prescription_id))
        return result.scalar_one_or_none()

    async def list(
        self,
        user_id: Optional[str] = None,
        pharmacy_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Prescription]:
        query = select(Prescription)
        if user_id:
            query = query.where(Prescription.user_id == user_id)
        if pharmacy_id:
            query = query.where(Prescription.pharmacy_id == pharmacy_id)
        if status:
            query = query.where(Prescription.status == status)
        result = await self.db.execute(query.order_by(Prescription.created_at.desc()))
        return list(result.scalars().all())
