from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.api.deps import require_permissions
from bepawa.api.v1.credit.schemas import (
    CreditAccountCreate,
    CreditAccountResponse,
    CreditAccountStatusUpdate,
    CreditRequestCreate,
    CreditRequestResponse,
    CreditRequestReview,
    CreditTransactionCreate,
    CreditTransactionResponse,
)
from bepawa.core.permissions import Permissions
from bepawa.domain.credit.service import CreditService
from bepawa.domain.profiles.models import Profile
from bepawa.infrastructure.database import get_db

router = APIRouter(prefix="/credit", tags=["Credit"])

applicant = require_permissions([Permissions.CREDIT_REQUEST])
lender = require_permissions([Permissions.CREDIT_MANAGE])
party = require_permissions([Permissions.CREDIT_REQUEST, Permissions.CREDIT_MANAGE])


@router.post("/requests", response_model=CreditRequestResponse, status_code=status.HTTP_201_CREATED)
async def submit_credit_request(
    data: CreditRequestCreate,
    current_user: Profile = Depends(applicant),
    db: AsyncSession = Depends(get_db),
):
    request = await CreditService(db).submit_request(data.model_dump(), current_user)
    return CreditRequestResponse.model_validate(request)


@router.get("/requests", response_model=List[CreditRequestResponse])
async def list_my_credit_requests(
    current_user: Profile = Depends(applicant),
    db: AsyncSession = Depends(get_db),
):
    requests = await CreditService(db).list_mine(current_user)
    return [CreditRequestResponse.model_validate(r) for r in requests]


@router.get("/requests/incoming", response_model=List[CreditRequestResponse])
async def list_incoming_credit_requests(
    status: Optional[str] = None,
    current_user: Profile = Depends(lender),
    db: AsyncSession = Depends(get_db),
):
    requests = await CreditService(db).list_incoming(current_user, status=status)
    return [CreditRequestResponse.model_validate(r) for r in requests]


@router.patch("/requests/{request_id}/status", response_model=CreditRequestResponse)
async def review_credit_request(
    request_id: str,
    data: CreditRequestReview,
    current_user: Profile = Depends(lender),
    db: AsyncSession = Depends(get_db),
):
    request = await CreditService(db).review(
        request_id,
        data.status,
        current_user,
        review_notes=data.review_notes,
        credit_limit=data.credit_limit,
    )
    return CreditRequestResponse.model_validate(request)


@router.get("/accounts", response_model=List[CreditAccountResponse])
async def list_credit_accounts(
    current_user: Profile = Depends(party),
    db: AsyncSession = Depends(get_db),
):
    accounts = await CreditService(db).list_accounts(current_user)
    return [CreditAccountResponse.model_validate(a) for a in accounts]


@router.post("/accounts", response_model=CreditAccountResponse, status_code=status.HTTP_201_CREATED)
async def create_credit_account(
    data: CreditAccountCreate,
    current_user: Profile = Depends(lender),
    db: AsyncSession = Depends(get_db),
):
    account = await CreditService(db).create_account(data.model_dump(), current_user)
    return CreditAccountResponse.model_validate(account)


@router.patch("/accounts/{account_id}/status", response_model=CreditAccountResponse)
async def update_credit_account_status(
    account_id: str,
    data: CreditAccountStatusUpdate,
    current_user: Profile = Depends(lender),
    db: AsyncSession = Depends(get_db),
):
    account = await CreditService(db).update_account_status(account_id, data.status, current_user)
    return CreditAccountResponse.model_validate(account)


@router.get("/accounts/{account_id}/transactions", response_model=List[CreditTransactionResponse])
async def list_credit_transactions(
    account_id: str,
    current_user: Profile = Depends(party),
    db: AsyncSession = Depends(get_db),
):
    transactions = await CreditService(db).list_transactions(account_id, current_user)
    return [CreditTransactionResponse.model_validate(t) for t in transactions]


@router.post(
    "/accounts/{account_id}/transactions",
    response_model=CreditTransactionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_credit_transaction(
    account_id: str,
    data: CreditTransactionCreate,
    current_user: Profile = Depends(lender),
    db: AsyncSession = Depends(get_db),
):
    transaction = await CreditService(db).record_transaction(account_id, data.model_dump(), current_user)
    return CreditTransactionResponse.model_validate(transaction)
