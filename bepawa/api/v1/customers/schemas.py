from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from bepawa.domain.customers.models import CommunicationType, CustomerStatus


class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    business_type: Optional[str] = None
    notes: Optional[str] = None
    status: CustomerStatus = CustomerStatus.ACTIVE


class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    business_type: Optional[str] = None
    total_orders: Optional[int] = Field(None, ge=0)
    total_spent: Optional[Decimal] = Field(None, ge=0)
    last_order_date: Optional[datetime] = None
    notes: Optional[str] = None
    status: Optional[CustomerStatus] = None


class CustomerResponse(BaseModel):
    id: str
    user_id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    business_type: Optional[str] = None
    total_orders: int
    total_spent: float
    last_order_date: Optional[datetime] = None
    notes: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CommunicationCreate(BaseModel):
    customer_id: str
    type: CommunicationType
    subject: str = Field(..., min_length=1, max_length=255)
    notes: Optional[str] = None
    communication_date: Optional[datetime] = None


class CommunicationResponse(BaseModel):
    id: str
    customer_id: str
    type: str
    subject: str
    notes: Optional[str] = None
    communication_date: Optional[datetime] = None

    class Config:
        from_attributes = True


class TopCustomer(BaseModel):
    id: str
    name: str
    total_spent: float
    total_orders: int


class MonthlyGrowth(BaseModel):
    month: str
    new_customers: int


class CustomerAnalyticsResponse(BaseModel):
    total_customers: int
    active_customers: int
    top_customers: List[TopCustomer]
    recent_communications: List[CommunicationResponse]
    customer_growth: List[MonthlyGrowth]
