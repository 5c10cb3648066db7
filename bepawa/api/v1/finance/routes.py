from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.api.deps import require_permissions
from bepawa.api.v1.finance.schemas import (
    CategoryShare,
    FinancialSummaryResponse,
    TransactionCreate,
    TransactionResponse,
)
from bepawa.core.permissions import Permissions
from bepawa.domain.finance.service import FinancialService
from bepawa.domain.profiles.models import Profile
from bepawa.infrastructure.database import get_db

router = APIRouter(prefix="/finance", tags=["Finance"])

accountant = require_permissions([Permissions.FINANCE_MANAGE])


@router.get("/transactions", response_model=List[TransactionResponse])
async def list_transactions(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    current_user: Profile = Depends(accountant),
    db: AsyncSession = Depends(get_db),
):
    transactions = await FinancialService(db).list_transactions(current_user, date_from, date_to)
    return [TransactionResponse.model_validate(t) for t in transactions]


@router.post("/transactions", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def add_transaction(
    data: TransactionCreate,
    current_user: Profile = Depends(accountant),
    db: AsyncSession = Depends(get_db),
):
    transaction = await FinancialService(db).add_transaction(data.model_dump(), current_user)
    return TransactionResponse.model_validate(transaction)


@router.delete("/transactions/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transaction(
    transaction_id: str,
    current_user: Profile = Depends(accountant),
    db: AsyncSession = Depends(get_db),
):
    await FinancialService(db).delete_transaction(transaction_id, current_user)


@router.get("/summary", response_model=FinancialSummaryResponse)
async def summary(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    current_user: Profile = Depends(accountant),
    db: AsyncSession = Depends(get_db),
):
    return await FinancialService(db).summary(current_user, date_from, date_to)


@router.get("/top-expense-categories", response_model=List[CategoryShare])
async def top_expense_categories(
    limit: int = Query(5, ge=1, le=50),
    current_user: Profile = Depends(accountant),
    db: AsyncSession = Depends(get_db),
):
    return await FinancialService(db).top_expense_categories(current_user, limit)
