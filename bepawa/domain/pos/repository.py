from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from bepawa.domain.pos.models import PosSale, PosSaleItem


class PosRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def stage_sale(self, data: dict) -> PosSale:
        """Add the sale and flush so its id is available to the item rows"""
        sale = PosSale(**data)
        self.db.add(sale)
        await self.db.flush()
        return sale

    def stage_item(self, data: dict) -> PosSaleItem:
        item = PosSaleItem(**data)
        self.db.add(item)
        return item

    async def get_sale(self, sale_id: str) -> Optional[PosSale]:
        result = await self.db.execute(select(PosSale).where(PosSale.id == sale_id))
        return result.scalar_one_or_none()

    async def list_sales(self, user_id: str, limit: int = 100) -> List[PosSale]:
        result = await self.db.execute(
            select(PosSale)
            .where(PosSale.user_id == user_id)
            .order_by(PosSale.sale_date.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_items(self, sale_id: str) -> List[PosSaleItem]:
        result = await self.db.execute(select(PosSaleItem).where(PosSaleItem.pos_sale_id == sale_id))
        return list(result.scalars().all())
