from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.domain.categories.models import ProductCategory


class CategoryRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, data: dict) -> ProductCategory:
        category = ProductCategory(**data)
        self.db.add(category)
        await self.db.commit()
        await self.db.refresh(category)
        return category

    async def get(self, category_id: str) -> Optional[ProductCategory]:
        result = await self.db.execute(select(ProductCategory).where(ProductCategory.id == category_id))
        return result.scalar_one_or_none()

    async def get_active_by_name(self, name: str) -> Optional[ProductCategory]:
        result = await self.db.execute(
            select(ProductCategory).where(
                func.lower(ProductCategory.name) == name.lower(),
                ProductCategory.is_active.is_(True),
            )
        )
        return result.scalars().first()

    async def list(self, include_inactive: bool = False) -> List[ProductCategory]:
        query = select(ProductCategory)
        if not include_inactive:
            query = query.where(ProductCategory.is_active.is_(True))
        result = await self.db.execute(query.order_by(ProductCategory.name))
        return list(result.scalars().all())
