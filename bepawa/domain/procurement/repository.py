from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from bepawa.domain.procurement.models import Supplier, PurchaseOrder, PurchaseOrderItem


class ProcurementRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ==================== Suppliers ====================

    async def create_supplier(self, data: dict) -> Supplier:
        supplier = Supplier(**data)
        self.db.add(supplier)
        await self.db.commit()
        await self.db.refresh(supplier)
        return supplier

    async def get_supplier(self, supplier_id: str) -> Optional[Supplier]:
        result = await self.db.execute(select(Supplier).where(Supplier.id == supplier_id))
        return result.scalar_one_or_none()

    async def list_suppliers(self, user_id: str, include_inactive: bool = False) -> List[Supplier]:
        query = select(Supplier).where(Supplier.user_id == user_id)
        if not include_inactive:
            query = query.where(Supplier.is_active.is_(True))
        result = await self.db.execute(query.order_by(Supplier.name))
        return list(result.scalars().all())

    # ==================== Purchase Orders ====================

    async def create_purchase_order(self, data: dict) -> PurchaseOrder:
        purchase_order = PurchaseOrder(**data)
        self.db.add(purchase_order)
        await self.db.commit()
        await self.db.refresh(purchase_order)
        return purchase_order

    async def get_purchase_order(self, purchase_order_id: str) -> Optional[PurchaseOrder]:
        result = await self.db.execute(select(PurchaseOrder).where(PurchaseOrder.id == purchase_order_id))
        return result.scalar_one_or_none()

    async def list_purchase_orders(self, user_id: str, status: Optional[str] = None) -> List[PurchaseOrder]:
        query = select(PurchaseOrder).where(PurchaseOrder.user_id == user_id)
        if status:
            query = query.where(PurchaseOrder.status == status)
        result = await self.db.execute(query.order_by(PurchaseOrder.created_at.desc()))
        return list(result.scalars().all())

    def add_item(self, data: dict) -> PurchaseOrderItem:
        item = PurchaseOrderItem(**data)
        self.db.add(item)
        return item

    async def list_items(self, purchase_order_id: str) -> List[PurchaseOrderItem]:
        result = await self.db.execute(
            select(PurchaseOrderItem)
            .where(PurchaseOrderItem.purchase_order_id == purchase_order_id)
            .order_by(PurchaseOrderItem.created_at)
        )
        return list(result.scalars().all())
