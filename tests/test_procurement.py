from decimal import Decimal

import pytest
from sqlalchemy import select

from bepawa.core.exceptions import BusinessLogicError, NotFoundError
from bepawa.core.permissions import UserRole
from bepawa.domain.procurement.models import PurchaseOrderStatus
from bepawa.domain.procurement.service import ProcurementService, generate_po_number
from bepawa.domain.products.models import InventoryMovement, Product


@pytest.mark.unit
def test_po_number_format():
    number = generate_po_number()
    assert number.startswith("PO-")
    assert len(number) == len("PO-") + 4 + 6


@pytest.mark.inventory
@pytest.mark.asyncio
async def test_receive_books_stock_and_movements(db, make_profile, make_product):
    pharmacy = await make_profile(UserRole.RETAIL)
    product = await make_product(pharmacy, stock=2, min_stock_level=5, status="low-stock")
    service = ProcurementService(db)

    supplier = await service.create_supplier({"name": "MSD Depot", "email": "orders@msd.go.tz"}, pharmacy)
    po = await service.create_purchase_order({"supplier_id": supplier.id}, pharmacy)
    item = await service.add_item(po.id, {"product_id": product.id, "quantity": 12, "unit_price": "450"}, pharmacy)
    assert item.product_name == product.name
    assert item.total_cost == 5400.0
    await service.add_item(po.id, {"product_name": "Gauze rolls", "quantity": 3, "unit_price": 100}, pharmacy)

    received = await service.receive(po.id, pharmacy)
    assert received.status == PurchaseOrderStatus.RECEIVED.value
    assert Decimal(str(received.total_amount)) == Decimal("5700.00")

    refreshed = await db.get(Product, product.id)
    await db.refresh(refreshed)
    assert refreshed.stock == 14
    assert refreshed.status == "in-stock"

    movements = (await db.execute(select(InventoryMovement))).scalars().all()
    assert [(m.movement_type, m.quantity) for m in movements] == [("in", 12)]

    items = await service.list_items(po.id, pharmacy)
    assert all(i.received_quantity == i.quantity for i in items)

    with pytest.raises(BusinessLogicError):
        await service.receive(po.id, pharmacy)


@pytest.mark.inventory
@pytest.mark.asyncio
async def test_status_transitions(db, make_profile):
    pharmacy = await make_profile(UserRole.RETAIL)
    service = ProcurementService(db)
    po = await service.create_purchase_order({}, pharmacy)

    po = await service.update_status(po.id, PurchaseOrderStatus.APPROVED, pharmacy)
    assert po.status == "approved"
    po = await service.update_status(po.id, PurchaseOrderStatus.CANCELLED, pharmacy)
    with pytest.raises(BusinessLogicError):
        await service.update_status(po.id, PurchaseOrderStatus.APPROVED, pharmacy)


@pytest.mark.inventory
@pytest.mark.asyncio
async def test_purchase_orders_are_private_to_their_owner(db, make_profile):
    pharmacy = await make_profile(UserRole.RETAIL)
    rival = await make_profile(UserRole.RETAIL)
    service = ProcurementService(db)
    po = await service.create_purchase_order({}, pharmacy)

    with pytest.raises(NotFoundError):
        await service.get_purchase_order(po.id, rival)
    assert await service.list_purchase_orders(rival) == []


@pytest.mark.inventory
@pytest.mark.asyncio
async def test_deactivated_suppliers_are_hidden_by_default(db, make_profile):
    wholesaler = await make_profile(UserRole.WHOLESALE)
    service = ProcurementService(db)
    supplier = await service.create_supplier({"name": "Old supplier"}, wholesaler)
    await service.deactivate_supplier(supplier.id, wholesaler)

    assert await service.list_suppliers(wholesaler) == []
    assert len(await service.list_suppliers(wholesaler, include_inactive=True)) == 1
