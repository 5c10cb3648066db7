from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from bepawa.domain.catalog.visibility import VisibilityFilter
from bepawa.domain.orders.models import Order, OrderStatus, OrderStatusHistory


class OrderRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, order_id: str) -> Optional[Order]:
        result = await self.db.execute(select(Order).where(Order.id == order_id))
        return result.scalar_one_or_none()

    async def get_cart(self, user_id: str) -> Optional[Order]:
        result = await self.db.execute(
            select(Order).where(Order.user_id == user_id, Order.status == OrderStatus.CART.value)
        )
        return result.scalars().first()

    async def list_visible(
        self,
        visibility: VisibilityFilter,
        status: Optional[str] = None,
        limit: int = 100,
    ) -> List[Order]:
        if visibility.is_empty:
            return []
        query = select(Order).where(
            visibility.to_clause(Order),
            Order.status != OrderStatus.CART.value,
        )
        if status:
            query = query.where(Order.status == status)
        result = await self.db.execute(query.order_by(Order.created_at.desc()).limit(limit))
        return list(result.scalars().all())

    def add(self, order: Order) -> Order:
        self.db.add(order)
        return order

    def add_history(self, data: dict) -> OrderStatusHistory:
        entry = OrderStatusHistory(**data)
        self.db.add(entry)
        return entry

    async def list_history(self, order_id: str) -> List[OrderStatusHistory]:
        result = await self.db.execute(
            select(OrderStatusHistory)
            .where(OrderStatusHistory.order_id == order_id)
            .order_by(OrderStatusHistory.changed_at)
        )
        return list(result.scalars().all())
