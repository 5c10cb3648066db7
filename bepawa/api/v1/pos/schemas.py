from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class SaleItemCreate(BaseModel):
    product_id: str
    quantity: int = Field(..., gt=0)
    unit_price: Optional[Decimal] = Field(None, ge=0)


class SaleCreate(BaseModel):
    payment_method: str = "cash"
    customer_name: Optional[str] = None
    sale_date: Optional[datetime] = None
    items: List[SaleItemCreate] = Field(..., min_length=1)


class SaleItemResponse(BaseModel):
    id: str
    pos_sale_id: str
    product_id: str
    quantity: int
    unit_price: float
    total_price: float

    class Config:
        from_attributes = True


class SaleResponse(BaseModel):
    id: str
    user_id: str
    sale_date: Optional[datetime] = None
    total_amount: float
    payment_method: str
    customer_name: Optional[str] = None

    class Config:
        from_attributes = True
