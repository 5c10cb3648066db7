from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, computed_field

from bepawa.domain.credit.models import CreditAccountStatus, CreditRequestStatus, CreditTransactionType


class CreditRequestCreate(BaseModel):
    wholesaler_id: str
    business_name: str = Field(..., min_length=1, max_length=255)
    requested_amount: Decimal = Field(..., gt=0)
    business_type: Optional[str] = None
    monthly_revenue: Optional[Decimal] = Field(None, ge=0)
    years_in_business: Optional[int] = Field(None, ge=0)
    credit_purpose: Optional[str] = None
    documents: Optional[List[Dict[str, Any]]] = None


class CreditRequestReview(BaseModel):
    status: CreditRequestStatus
    review_notes: Optional[str] = None
    # Defaults to the requested amount on approval
    credit_limit: Optional[Decimal] = Field(None, gt=0)


class CreditRequestResponse(BaseModel):
    id: str
    user_id: str
    wholesaler_id: str
    business_name: str
    requested_amount: Decimal
    business_type: Optional[str] = None
    monthly_revenue: Optional[Decimal] = None
    years_in_business: Optional[int] = None
    credit_purpose: Optional[str] = None
    documents: Optional[List[Dict[str, Any]]] = None
    status: str
    reviewed_by: Optional[str] = None
    review_notes: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CreditAccountCreate(BaseModel):
    retailer_id: str
    credit_limit: Decimal = Field(..., gt=0)


class CreditAccountStatusUpdate(BaseModel):
    status: CreditAccountStatus


class CreditAccountResponse(BaseModel):
    id: str
    wholesaler_id: str
    retailer_id: str
    credit_limit: Decimal
    current_balance: Decimal
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @computed_field
    @property
    def available_credit(self) -> Decimal:
        return self.credit_limit - self.current_balance


class CreditTransactionCreate(BaseModel):
    transaction_type: CreditTransactionType
    amount: Decimal = Field(..., gt=0)
    reference: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None


class CreditTransactionResponse(BaseModel):
    id: str
    credit_account_id: str
    transaction_type: str
    amount: Decimal
    reference: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    transaction_date: Optional[datetime] = None

    class Config:
        from_attributes = True
