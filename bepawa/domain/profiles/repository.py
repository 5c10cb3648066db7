from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from bepawa.domain.profiles.models import Profile


class ProfileRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, data: dict) -> Profile:
        profile = Profile(**data)
        self.db.add(profile)
        await self.db.commit()
        await self.db.refresh(profile)
        return profile

    async def get(self, profile_id: str) -> Optional[Profile]:
        result = await self.db.execute(select(Profile).where(Profile.id == profile_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[Profile]:
        result = await self.db.execute(select(Profile).where(Profile.email == email.lower()))
        return result.scalar_one_or_none()

    async def list(self, role: Optional[str] = None, approved: Optional[bool] = None) -> List[Profile]:
        query = select(Profile)
        if role:
            query = query.where(Profile.role == role)
        if approved is not None:
            query = query.where(Profile.is_approved == approved)
        result = await self.db.execute(query.order_by(Profile.created_at.desc()))
        return list(result.scalars().all())

    async def update(self, profile: Profile, update_data: dict) -> Profile:
        for key, value in update_data.items():
            if hasattr(profile, key) and value is not None:
                setattr(profile, key, value)
        await self.db.commit()
        await self.db.refresh(profile)
        return profile
