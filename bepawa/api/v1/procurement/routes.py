from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.api.deps import require_permissions
from bepawa.api.v1.procurement.schemas import (
    PurchaseOrderCreate,
    PurchaseOrderItemCreate,
    PurchaseOrderResponse,
    PurchaseOrderStatusUpdate,
    SupplierCreate,
    SupplierResponse,
    SupplierUpdate,
)
from bepawa.core.permissions import Permissions
from bepawa.domain.catalog.mappers import PurchaseOrderItemView
from bepawa.domain.procurement.service import ProcurementService
from bepawa.domain.profiles.models import Profile
from bepawa.infrastructure.database import get_db

router = APIRouter(prefix="/procurement", tags=["Procurement"])

buyer = require_permissions([Permissions.PROCUREMENT_MANAGE])


@router.get("/suppliers", response_model=List[SupplierResponse])
async def list_suppliers(
    include_inactive: bool = False,
    current_user: Profile = Depends(buyer),
    db: AsyncSession = Depends(get_db),
):
    suppliers = await ProcurementService(db).list_suppliers(current_user, include_inactive)
    return [SupplierResponse.model_validate(s) for s in suppliers]


@router.post("/suppliers", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
async def create_supplier(
    data: SupplierCreate,
    current_user: Profile = Depends(buyer),
    db: AsyncSession = Depends(get_db),
):
    supplier = await ProcurementService(db).create_supplier(data.model_dump(), current_user)
    return SupplierResponse.model_validate(supplier)


@router.patch("/suppliers/{supplier_id}", response_model=SupplierResponse)
async def update_supplier(
    supplier_id: str,
    data: SupplierUpdate,
    current_user: Profile = Depends(buyer),
    db: AsyncSession = Depends(get_db),
):
    supplier = await ProcurementService(db).update_supplier(
        supplier_id, data.model_dump(exclude_unset=True), current_user
    )
    return SupplierResponse.model_validate(supplier)


@router.delete("/suppliers/{supplier_id}", response_model=SupplierResponse)
async def deactivate_supplier(
    supplier_id: str,
    current_user: Profile = Depends(buyer),
    db: AsyncSession = Depends(get_db),
):
    supplier = await ProcurementService(db).deactivate_supplier(supplier_id, current_user)
    return SupplierResponse.model_validate(supplier)


@router.get("/purchase-orders", response_model=List[PurchaseOrderResponse])
async def list_purchase_orders(
    status: Optional[str] = None,
    current_user: Profile = Depends(buyer),
    db: AsyncSession = Depends(get_db),
):
    orders = await ProcurementService(db).list_purchase_orders(current_user, status=status)
    return [PurchaseOrderResponse.model_validate(o) for o in orders]


@router.post("/purchase-orders", response_model=PurchaseOrderResponse, status_code=status.HTTP_201_CREATED)
async def create_purchase_order(
    data: PurchaseOrderCreate,
    current_user: Profile = Depends(buyer),
    db: AsyncSession = Depends(get_db),
):
    order = await ProcurementService(db).create_purchase_order(data.model_dump(), current_user)
    return PurchaseOrderResponse.model_validate(order)


@router.patch("/purchase-orders/{purchase_order_id}/status", response_model=PurchaseOrderResponse)
async def update_purchase_order_status(
    purchase_order_id: str,
    data: PurchaseOrderStatusUpdate,
    current_user: Profile = Depends(buyer),
    db: AsyncSession = Depends(get_db),
):
    order = await ProcurementService(db).update_status(purchase_order_id, data.status, current_user)
    return PurchaseOrderResponse.model_validate(order)


@router.post("/purchase-orders/{purchase_order_id}/receive", response_model=PurchaseOrderResponse)
async def receive_purchase_order(
    purchase_order_id: str,
    current_user: Profile = Depends(buyer),
    db: AsyncSession = Depends(get_db),
):
    order = await ProcurementService(db).receive(purchase_order_id, current_user)
    return PurchaseOrderResponse.model_validate(order)


@router.get("/purchase-orders/{purchase_order_id}/items", response_model=List[PurchaseOrderItemView])
async def list_purchase_order_items(
    purchase_order_id: str,
    current_user: Profile = Depends(buyer),
    db: AsyncSession = Depends(get_db),
):
    return await ProcurementService(db).list_items(purchase_order_id, current_user)


@router.post(
    "/purchase-orders/{purchase_order_id}/items",
    response_model=PurchaseOrderItemView,
    status_code=status.HTTP_201_CREATED,
)
async def add_purchase_order_item(
    purchase_order_id: str,
    data: PurchaseOrderItemCreate,
    current_user: Profile = Depends(buyer),
    db: AsyncSession = Depends(get_db),
):
    return await ProcurementService(db).add_item(purchase_order_id, data.model_dump(), current_user)
