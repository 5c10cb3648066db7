from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from bepawa.domain.finance.models import TransactionType


class TransactionCreate(BaseModel):
    type: TransactionType
    amount: Decimal = Field(..., gt=0)
    category: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    transaction_date: Optional[date] = None
    reference: Optional[str] = Field(None, max_length=100)


class TransactionResponse(BaseModel):
    id: str
    user_id: str
    type: str
    amount: float
    category: str
    description: Optional[str] = None
    transaction_date: date
    reference: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MonthlyFigures(BaseModel):
    month: str
    income: float
    expenses: float
    profit: float


class CategoryShare(BaseModel):
    category: str
    amount: float
    percentage: float


class FinancialSummaryResponse(BaseModel):
    total_income: float
    total_expenses: float
    net_profit: float
    profit_margin: float
    monthly_data: List[MonthlyFigures]
    category_breakdown: List[CategoryShare]
