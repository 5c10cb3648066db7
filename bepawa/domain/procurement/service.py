from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Mapping, Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.core.exceptions import BusinessLogicError, ConflictError, ErrorHandler, NotFoundError, ValidationError
from bepawa.domain.catalog.mappers import PurchaseOrderItemView, map_purchase_order_item_row
from bepawa.domain.catalog.stock import derive_status
from bepawa.domain.procurement.models import PurchaseOrder, PurchaseOrderStatus, Supplier
from bepawa.domain.procurement.repository import ProcurementRepository
from bepawa.domain.products.models import MovementType
from bepawa.domain.products.repository import ProductRepository
from bepawa.domain.profiles.models import Profile

logger = logging.getLogger(__name__)

# Allowed purchase order transitions; receiving goes through ``receive``
_TRANSITIONS = {
    PurchaseOrderStatus.PENDING: {PurchaseOrderStatus.APPROVED, PurchaseOrderStatus.CANCELLED},
    PurchaseOrderStatus.APPROVED: {PurchaseOrderStatus.CANCELLED},
    PurchaseOrderStatus.RECEIVED: set(),
    PurchaseOrderStatus.CANCELLED: set(),
}

_SUPPLIER_FIELDS = {"name", "contact_person", "email", "phone", "address", "payment_terms", "is_active"}


def generate_po_number(now: Optional[datetime] = None) -> str:
    now = now or datetime.utcnow()
    millis = str(int(now.timestamp() * 1000))
    return f"PO-{now.year}{millis[-6:]}"


class ProcurementService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = ProcurementRepository(db)
        self.products = ProductRepository(db)

    # ==================== Suppliers ====================

    async def list_suppliers(self, owner: Profile, include_inactive: bool = False) -> List[Supplier]:
        with ErrorHandler("fetch suppliers"):
            return await self.repo.list_suppliers(owner.id, include_inactive=include_inactive)

    async def create_supplier(self, data: Mapping[str, Any], owner: Profile) -> Supplier:
        supplier_data = {k: v for k, v in data.items() if k in _SUPPLIER_FIELDS}
        supplier_data["user_id"] = owner.id
        with ErrorHandler("create supplier"):
            return await self.repo.create_supplier(supplier_data)

    async def get_supplier(self, supplier_id: str, owner: Profile) -> Supplier:
        with ErrorHandler("fetch supplier"):
            supplier = await self.repo.get_supplier(supplier_id)
        if not supplier or supplier.user_id != owner.id:
            raise NotFoundError("Supplier not found")
        return supplier

    async def update_supplier(self, supplier_id: str, data: Mapping[str, Any], owner: Profile) -> Supplier:
        supplier = await self.get_supplier(supplier_id, owner)
        for key, value in data.items():
            if key in _SUPPLIER_FIELDS and value is not None:
                setattr(supplier, key, value)
        with ErrorHandler("update supplier"):
            await self.db.commit()
            await self.db.refresh(supplier)
        return supplier

    async def deactivate_supplier(self, supplier_id: str, owner: Profile) -> Supplier:
        return await self.update_supplier(supplier_id, {"is_active": False}, owner)

    # ==================== Purchase Orders ====================

    async def list_purchase_orders(self, owner: Profile, status: Optional[str] = None) -> List[PurchaseOrder]:
        with ErrorHandler("fetch purchase orders"):
            return await self.repo.list_purchase_orders(owner.id, status=status)

    async def get_purchase_order(self, purchase_order_id: str, owner: Profile) -> PurchaseOrder:
        with ErrorHandler("fetch purchase order"):
            purchase_order = await self.repo.get_purchase_order(purchase_order_id)
        if not purchase_order or purchase_order.user_id != owner.id:
            raise NotFoundError("Purchase order not found")
        return purchase_order

    async def create_purchase_order(self, data: Mapping[str, Any], owner: Profile) -> PurchaseOrder:
        if data.get("supplier_id"):
            await self.get_supplier(data["supplier_id"], owner)

        po_data = {
            "po_number": data.get("po_number") or generate_po_number(),
            "user_id": owner.id,
            "supplier_id": data.get("supplier_id"),
            "order_date": data.get("order_date") or date.today(),
            "expected_delivery": data.get("expected_delivery"),
            "notes": data.get("notes"),
            "total_amount": Decimal("0"),
            "status": PurchaseOrderStatus.PENDING.value,
        }
        try:
            purchase_order = await self.repo.create_purchase_order(po_data)
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(f"Purchase order number {po_data['po_number']} already exists")
        logger.info(f"Purchase order {purchase_order.po_number} created by {owner.id}")
        return purchase_order

    async def update_status(self, purchase_order_id: str, status: PurchaseOrderStatus, owner: Profile) -> PurchaseOrder:
        purchase_order = await self.get_purchase_order(purchase_order_id, owner)
        current = PurchaseOrderStatus(purchase_order.status)
        status = PurchaseOrderStatus(status)
        if status is PurchaseOrderStatus.RECEIVED:
            return await self.receive(purchase_order_id, owner)
        if status not in _TRANSITIONS[current]:
            raise BusinessLogicError(f"Cannot move purchase order from {current.value} to {status.value}")

        purchase_order.status = status.value
        with ErrorHandler("update purchase order"):
            await self.db.commit()
            await self.db.refresh(purchase_order)
        return purchase_order

    async def list_items(self, purchase_order_id: str, owner: Profile) -> List[PurchaseOrderItemView]:
        await self.get_purchase_order(purchase_order_id, owner)
        with ErrorHandler("fetch purchase order items"):
            rows = await self.repo.list_items(purchase_order_id)
        return [map_purchase_order_item_row(row) for row in rows]

    async def add_item(self, purchase_order_id: str, data: Mapping[str, Any], owner: Profile) -> PurchaseOrderItemView:
        purchase_order = await self.get_purchase_order(purchase_order_id, owner)
        if purchase_order.status != PurchaseOrderStatus.PENDING.value:
            raise BusinessLogicError("Items can only be added to pending purchase orders")

        quantity = int(data["quantity"])
        unit_price = Decimal(str(data["unit_price"]))
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")
        if unit_price < 0:
            raise ValidationError("Unit price cannot be negative")

        product_name = data.get("product_name")
        if data.get("product_id"):
            product = await self.products.get(data["product_id"])
            if not product or product.user_id != owner.id:
                raise NotFoundError("Product not found")
            product_name = product_name or product.name
        if not product_name:
            raise ValidationError("Product name is required")

        total_price = (unit_price * quantity).quantize(Decimal("0.01"))
        item = self.repo.add_item({
            "purchase_order_id": purchase_order.id,
            "product_id": data.get("product_id"),
            "product_name": product_name,
            "quantity": quantity,
            "unit_price": unit_price,
            "total_price": total_price,
            "received_quantity": 0,
        })
        purchase_order.total_amount = Decimal(str(purchase_order.total_amount or 0)) + total_price
        with ErrorHandler("create purchase order item"):
            await self.db.commit()
            await self.db.refresh(item)
        return map_purchase_order_item_row(item)

    async def receive(self, purchase_order_id: str, owner: Profile) -> PurchaseOrder:
        """
        Mark the order received and book its goods into stock.

        Stock increments, inventory movements and the status change are
        committed together or not at all.
        """
        purchase_order = await self.get_purchase_order(purchase_order_id, owner)
        if purchase_order.status not in (PurchaseOrderStatus.PENDING.value, PurchaseOrderStatus.APPROVED.value):
            raise BusinessLogicError(f"Purchase order is already {purchase_order.status}")

        try:
            with ErrorHandler("receive purchase order"):
                items = await self.repo.list_items(purchase_order.id)
                for item in items:
                    outstanding = item.quantity - (item.received_quantity or 0)
                    if outstanding <= 0:
                        continue
                    item.received_quantity = item.quantity
                    if not item.product_id:
                        continue
                    product = await self.products.get(item.product_id, for_update=True)
                    if not product:
                        logger.warning(f"Product {item.product_id} on {purchase_order.po_number} no longer exists")
                        continue
                    product.stock = (product.stock or 0) + outstanding
                    product.status = derive_status(
                        product.stock, product.min_stock_level, product.expiry_date
                    ).value
                    self.products.add_movement({
                        "user_id": owner.id,
                        "product_id": product.id,
                        "movement_type": MovementType.IN.value,
                        "quantity": outstanding,
                        "reason": f"Received purchase order {purchase_order.po_number}",
                        "created_by": owner.id,
                    })

                purchase_order.status = PurchaseOrderStatus.RECEIVED.value
                await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(purchase_order)
        logger.info(f"Purchase order {purchase_order.po_number} received")
        return purchase_order
