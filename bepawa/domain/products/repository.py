from datetime import date
from typing import Optional, List
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from bepawa.domain.catalog.visibility import VisibilityFilter
from bepawa.domain.products.models import Product, InventoryMovement

logger = logging.getLogger(__name__)


class ProductRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, data: dict) -> Product:
        product = Product(**data)
        self.db.add(product)
        await self.db.commit()
        await self.db.refresh(product)
        return product

    async def get(self, product_id: str, for_update: bool = False) -> Optional[Product]:
        query = select(Product).where(Product.id == product_id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def list_visible(self, visibility: VisibilityFilter, limit: Optional[int] = None) -> List[Product]:
        if visibility.is_empty:
            return []
        logger.debug(f"Product visibility filter: {visibility.describe()}")
        query = select(Product).where(visibility.to_clause(Product)).order_by(Product.name)
        if limit:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_low_stock(self, owner_id: Optional[str] = None) -> List[Product]:
        query = select(Product).where(Product.stock <= Product.min_stock_level)
        if owner_id:
            query = query.where(Product.user_id == owner_id)
        result = await self.db.execute(query.order_by(Product.stock))
        return list(result.scalars().all())

    async def list_expiring(self, before: date, owner_id: Optional[str] = None) -> List[Product]:
        query = select(Product).where(
            Product.expiry_date.isnot(None),
            Product.expiry_date <= before,
        )
        if owner_id:
            query = query.where(Product.user_id == owner_id)
        result = await self.db.execute(query.order_by(Product.expiry_date))
        return list(result.scalars().all())

    async def update(self, product: Product, update_data: dict) -> Product:
        for key, value in update_data.items():
            if hasattr(product, key):
                setattr(product, key, value)
        await self.db.commit()
        await self.db.refresh(product)
        return product

    async def delete(self, product: Product) -> None:
        await self.db.delete(product)
        await self.db.commit()

    # ==================== Inventory Movements ====================

    def add_movement(self, data: dict) -> InventoryMovement:
        """Stage a movement in the current unit of work without committing"""
        movement = InventoryMovement(**data)
        self.db.add(movement)
        return movement

    async def list_movements(
        self,
        product_id: Optional[str] = None,
        user_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[InventoryMovement]:
        query = select(InventoryMovement)
        if product_id:
            query = query.where(InventoryMovement.product_id == product_id)
        if user_id:
            query = query.where(InventoryMovement.user_id == user_id)
        result = await self.db.execute(
            query.order_by(InventoryMovement.created_at.desc()).limit(limit)
        )
        return list(result.scalars().all())
