from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.api.deps import require_permissions
from bepawa.api.v1.orders.schemas import CartItemAdd, CartQuantityUpdate, CheckoutRequest, OrderResponse
from bepawa.core.permissions import Permissions
from bepawa.domain.orders.cart import CartService
from bepawa.domain.profiles.models import Profile
from bepawa.infrastructure.database import get_db

router = APIRouter(prefix="/cart", tags=["Cart"])

shopper = require_permissions([Permissions.CART_MANAGE])


@router.get("", response_model=OrderResponse)
async def get_cart(current_user: Profile = Depends(shopper), db: AsyncSession = Depends(get_db)):
    return OrderResponse.model_validate(await CartService(db).get_cart(current_user))


@router.post("/items", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def add_item(
    data: CartItemAdd,
    current_user: Profile = Depends(shopper),
    db: AsyncSession = Depends(get_db),
):
    cart = await CartService(db).add_item(current_user, data.product_id, data.quantity)
    return OrderResponse.model_validate(cart)


@router.patch("/items/{item_id}", response_model=OrderResponse)
async def update_quantity(
    item_id: str,
    data: CartQuantityUpdate,
    current_user: Profile = Depends(shopper),
    db: AsyncSession = Depends(get_db),
):
    cart = await CartService(db).update_quantity(current_user, item_id, data.quantity)
    return OrderResponse.model_validate(cart)


@router.delete("/items/{item_id}", response_model=OrderResponse)
async def remove_item(
    item_id: str,
    current_user: Profile = Depends(shopper),
    db: AsyncSession = Depends(get_db),
):
    return OrderResponse.model_validate(await CartService(db).remove_item(current_user, item_id))


@router.delete("", response_model=OrderResponse)
async def clear_cart(current_user: Profile = Depends(shopper), db: AsyncSession = Depends(get_db)):
    return OrderResponse.model_validate(await CartService(db).clear(current_user))


@router.post("/checkout", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def checkout(
    data: CheckoutRequest,
    current_user: Profile = Depends(shopper),
    db: AsyncSession = Depends(get_db),
):
    order = await CartService(db).checkout(current_user, data.shipping_address, data.notes)
    return OrderResponse.model_validate(order)
