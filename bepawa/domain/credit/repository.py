from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from bepawa.domain.credit.models import CreditRequest, CreditAccount, CreditTransaction


class CreditRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ==================== Requests ====================

    async def create_request(self, data: dict) -> CreditRequest:
        request = CreditRequest(**data)
        self.db.add(request)
        await self.db.commit()
        await self.db.refresh(request)
        return request

    async def get_request(self, request_id: str) -> Optional[CreditRequest]:
        result = await self.db.execute(select(CreditRequest).where(CreditRequest.id == request_id))
        return result.scalar_one_or_none()

    async def list_requests(
        self, user_id: Optional[str] = None, wholesaler_id: Optional[str] = None, status: Optional[str] = None
    ) -> List[CreditRequest]:
        query = select(CreditRequest)
        if user_id:
            query = query.where(CreditRequest.user_id == user_id)
        if wholesaler_id:
            query = query.where(CreditRequest.wholesaler_id == wholesaler_id)
        if status:
            query = query.where(CreditRequest.status == status)
        result = await self.db.execute(query.order_by(CreditRequest.created_at.desc()))
        return list(result.scalars().all())

    # ==================== Accounts ====================

    def add_account(self, data: dict) -> CreditAccount:
        account = CreditAccount(**data)
        self.db.add(account)
        return account

    async def get_account(self, account_id: str, for_update: bool = False) -> Optional[CreditAccount]:
        query = select(CreditAccount).where(CreditAccount.id == account_id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def find_account(self, wholesaler_id: str, retailer_id: str) -> Optional[CreditAccount]:
        result = await self.db.execute(
            select(CreditAccount).where(
                CreditAccount.wholesaler_id == wholesaler_id,
                CreditAccount.retailer_id == retailer_id,
            )
        )
        return result.scalars().first()

    async def list_accounts(
        self, wholesaler_id: Optional[str] = None, retailer_id: Optional[str] = None
    ) -> List[CreditAccount]:
        query = select(CreditAccount)
        if wholesaler_id:
            query = query.where(CreditAccount.wholesaler_id == wholesaler_id)
        if retailer_id:
            query = query.where(CreditAccount.retailer_id == retailer_id)
        result = await self.db.execute(query.order_by(CreditAccount.created_at.desc()))
        return list(result.scalars().all())

    # ==================== Transactions ====================

    def add_transaction(self, data: dict) -> CreditTransaction:
        transaction = CreditTransaction(**data)
        self.db.add(transaction)
        return transaction

    async def list_transactions(self, account_id: str) -> List[CreditTransaction]:
        result = await self.db.execute(
            select(CreditTransaction)
            .where(CreditTransaction.credit_account_id == account_id)
            .order_by(CreditTransaction.transaction_date.desc())
        )
        return list(result.scalars().all())
