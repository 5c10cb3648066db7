from datetime import date
from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from bepawa.domain.finance.models import FinancialTransaction


class FinancialRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    def add(self, data: dict) -> FinancialTransaction:
        """Stage a transaction; the caller commits"""
        transaction = FinancialTransaction(**data)
        self.db.add(transaction)
        return transaction

    async def get(self, transaction_id: str) -> Optional[FinancialTransaction]:
        result = await self.db.execute(select(FinancialTransaction).where(FinancialTransaction.id == transaction_id))
        return result.scalar_one_or_none()

    async def list(
        self,
        user_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[FinancialTransaction]:
        query = select(FinancialTransaction).where(FinancialTransaction.user_id == user_id)
        if date_from:
            query = query.where(FinancialTransaction.transaction_date >= date_from)
        if date_to:
            query = query.where(FinancialTransaction.transaction_date <= date_to)
        result = await self.db.execute(query.order_by(FinancialTransaction.transaction_date.desc()))
        return list(result.scalars().all())

    async def delete(self, transaction: FinancialTransaction) -> None:
        await self.db.delete(transaction)
        await self.db.commit()
