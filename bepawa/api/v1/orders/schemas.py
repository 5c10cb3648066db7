from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from bepawa.domain.orders.models import OrderStatus


class OrderResponse(BaseModel):
    id: str
    order_number: str
    user_id: str
    pharmacy_id: Optional[str] = None
    wholesaler_id: Optional[str] = None
    status: str
    payment_status: str
    items: List[Dict[str, Any]] = []
    total_amount: float
    shipping_address: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    notes: Optional[str] = Field(None, max_length=1000)


class OrderHistoryResponse(BaseModel):
    id: str
    order_id: str
    status: str
    changed_by: Optional[str] = None
    changed_at: Optional[datetime] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class CartItemAdd(BaseModel):
    product_id: str
    quantity: int = Field(1, ge=1)


class CartQuantityUpdate(BaseModel):
    quantity: int


class CheckoutRequest(BaseModel):
    shipping_address: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=1000)
