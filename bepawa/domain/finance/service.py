from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.core.exceptions import ErrorHandler, NotFoundError, ValidationError
from bepawa.domain.finance.models import FinancialTransaction, TransactionType
from bepawa.domain.finance.repository import FinancialRepository
from bepawa.domain.profiles.models import Profile

logger = logging.getLogger(__name__)


def _money(value: Decimal) -> float:
    return float(Decimal(value).quantize(Decimal("0.01")))


def summarize(transactions: Sequence[FinancialTransaction]) -> Dict[str, Any]:
    """
    Income, expenses and profit for a set of transactions.

    The category breakdown covers expenses only, each as a share of total
    expenses, largest first.
    """
    income = Decimal("0")
    expenses = Decimal("0")
    monthly: Dict[tuple, Dict[str, Decimal]] = {}
    categories: Dict[str, Decimal] = {}

    for t in transactions:
        amount = Decimal(str(t.amount or 0))
        key = (t.transaction_date.year, t.transaction_date.month)
        bucket = monthly.setdefault(key, {"income": Decimal("0"), "expenses": Decimal("0")})
        if t.type == TransactionType.INCOME.value:
            income += amount
            bucket["income"] += amount
        else:
            expenses += amount
            bucket["expenses"] += amount
            categories[t.category] = categories.get(t.category, Decimal("0")) + amount

    net = income - expenses
    margin = (net / income * 100) if income > 0 else Decimal("0")

    breakdown = [
        {
            "category": category,
            "amount": _money(amount),
            "percentage": _money(amount / expenses * 100) if expenses > 0 else 0.0,
        }
        for category, amount in categories.items()
    ]
    breakdown.sort(key=lambda row: row["amount"], reverse=True)

    return {
        "total_income": _money(income),
        "total_expenses": _money(expenses),
        "net_profit": _money(net),
        "profit_margin": _money(margin),
        "monthly_data": [
            {
                "month": date(year, month, 1).strftime("%b %Y"),
                "income": _money(values["income"]),
                "expenses": _money(values["expenses"]),
                "profit": _money(values["income"] - values["expenses"]),
            }
            for (year, month), values in sorted(monthly.items())
        ],
        "category_breakdown": breakdown,
    }


class FinancialService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = FinancialRepository(db)

    async def list_transactions(
        self,
        owner: Profile,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[FinancialTransaction]:
        if date_from and date_to and date_from > date_to:
            raise ValidationError("Start date must not be after end date")
        with ErrorHandler("fetch financial transactions"):
            return await self.repo.list(owner.id, date_from=date_from, date_to=date_to)

    async def add_transaction(self, data: Mapping[str, Any], owner: Profile) -> FinancialTransaction:
        amount = Decimal(str(data["amount"]))
        if amount <= 0:
            raise ValidationError("Amount must be positive")
        transaction = self.repo.add({
            "user_id": owner.id,
            "type": TransactionType(data["type"]).value,
            "amount": amount,
            "category": data["category"],
            "description": data.get("description"),
            "transaction_date": data.get("transaction_date") or date.today(),
            "reference": data.get("reference"),
        })
        with ErrorHandler("create financial transaction"):
            await self.db.commit()
            await self.db.refresh(transaction)
        return transaction

    async def delete_transaction(self, transaction_id: str, owner: Profile) -> None:
        with ErrorHandler("fetch financial transaction"):
            transaction = await self.repo.get(transaction_id)
        if not transaction or transaction.user_id != owner.id:
            raise NotFoundError("Transaction not found")
        with ErrorHandler("delete financial transaction"):
            await self.repo.delete(transaction)

    async def summary(
        self,
        owner: Profile,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> Dict[str, Any]:
        transactions = await self.list_transactions(owner, date_from, date_to)
        return summarize(transactions)

    async def top_expense_categories(self, owner: Profile, limit: int = 5) -> List[Dict[str, Any]]:
        return (await self.summary(owner))["category_breakdown"][:limit]
