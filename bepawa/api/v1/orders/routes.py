from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.api.deps import get_current_user
from bepawa.api.v1.orders.schemas import OrderHistoryResponse, OrderResponse, OrderStatusUpdate
from bepawa.domain.orders.service import OrderService
from bepawa.domain.profiles.models import Profile
from bepawa.infrastructure.database import get_db

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.get("", response_model=List[OrderResponse])
async def list_orders(
    status: Optional[str] = None,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    orders = await OrderService(db).list_visible(current_user, status=status)
    return [OrderResponse.model_validate(o) for o in orders]


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return OrderResponse.model_validate(await OrderService(db).get(order_id, current_user))


@router.get("/{order_id}/items", response_model=List[Dict[str, Any]])
async def list_items(
    order_id: str,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService(db).list_items(order_id, current_user)


@router.get("/{order_id}/history", response_model=List[OrderHistoryResponse])
async def status_history(
    order_id: str,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    history = await OrderService(db).status_history(order_id, current_user)
    return [OrderHistoryResponse.model_validate(h) for h in history]


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_status(
    order_id: str,
    data: OrderStatusUpdate,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderService(db).update_status(order_id, data.status, current_user, data.notes)
    return OrderResponse.model_validate(order)
