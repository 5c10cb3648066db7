from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ProductBase(BaseModel):
    description: Optional[str] = None
    category: Optional[str] = None
    sku: Optional[str] = None
    manufacturer: Optional[str] = None
    supplier: Optional[str] = None
    dosage_form: Optional[str] = None
    strength: Optional[str] = None
    pack_size: Optional[str] = None
    batch_number: Optional[str] = None
    max_stock: Optional[int] = Field(None, ge=0)
    buy_price: Optional[Decimal] = Field(None, ge=0)
    expiry_date: Optional[date] = None
    image_url: Optional[str] = None


class ProductCreate(ProductBase):
    name: str = Field(..., min_length=1, max_length=255)
    stock: int = Field(0, ge=0)
    min_stock_level: int = Field(0, ge=0)
    sell_price: Decimal = Field(..., ge=0)
    requires_prescription: bool = False
    is_public_product: Optional[bool] = None
    is_retail_product: Optional[bool] = None
    is_wholesale_product: Optional[bool] = None


class ProductUpdate(ProductBase):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    stock: Optional[int] = Field(None, ge=0)
    min_stock_level: Optional[int] = Field(None, ge=0)
    sell_price: Optional[Decimal] = Field(None, ge=0)
    requires_prescription: Optional[bool] = None
    is_public_product: Optional[bool] = None

    @field_validator("name", "stock", "min_stock_level", "sell_price", "requires_prescription", "is_public_product")
    @classmethod
    def not_null(cls, v, info):
        # Omit a field to keep its value; null would clear a required column
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class StockUpdate(BaseModel):
    stock: int = Field(..., ge=0)
    reason: Optional[str] = None


class MovementCreate(BaseModel):
    product_id: str
    movement_type: str = Field(..., pattern="^(in|out|adjustment)$")
    quantity: int = Field(..., gt=0)
    reason: Optional[str] = None


class MovementResponse(BaseModel):
    id: str
    user_id: Optional[str] = None
    product_id: str
    movement_type: str
    quantity: int
    reason: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
