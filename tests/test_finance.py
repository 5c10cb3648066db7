from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from bepawa.core.exceptions import NotFoundError, ValidationError
from bepawa.core.permissions import UserRole
from bepawa.domain.finance.service import FinancialService, summarize


def _t(type_, amount, category, day):
    return SimpleNamespace(type=type_, amount=Decimal(amount), category=category, transaction_date=day)


@pytest.mark.unit
def test_summary_figures():
    summary = summarize([
        _t("income", "10000", "sales", date(2026, 1, 5)),
        _t("expense", "3000", "rent", date(2026, 1, 10)),
        _t("expense", "1000", "utilities", date(2026, 2, 1)),
        _t("income", "5000", "sales", date(2026, 2, 3)),
    ])
    assert summary["total_income"] == 15000.0
    assert summary["total_expenses"] == 4000.0
    assert summary["net_profit"] == 11000.0
    assert summary["profit_margin"] == 73.33
    assert [m["month"] for m in summary["monthly_data"]] == ["Jan 2026", "Feb 2026"]
    assert summary["monthly_data"][1]["profit"] == 4000.0


@pytest.mark.unit
def test_category_breakdown_covers_expenses_only():
    summary = summarize([
        _t("income", "9000", "sales", date(2026, 1, 1)),
        _t("expense", "750", "salaries", date(2026, 1, 2)),
        _t("expense", "250", "transport", date(2026, 1, 3)),
    ])
    assert summary["category_breakdown"] == [
        {"category": "salaries", "amount": 750.0, "percentage": 75.0},
        {"category": "transport", "amount": 250.0, "percentage": 25.0},
    ]


@pytest.mark.unit
def test_empty_summary_has_zero_margin():
    summary = summarize([])
    assert summary["profit_margin"] == 0.0
    assert summary["category_breakdown"] == []


@pytest.mark.asyncio
async def test_transactions_are_scoped_and_validated(db, make_profile):
    lab = await make_profile(UserRole.LAB)
    other = await make_profile(UserRole.RETAIL)
    service = FinancialService(db)

    kept = await service.add_transaction(
        {"type": "income", "amount": "1200", "category": "tests", "transaction_date": date(2026, 3, 1)}, lab
    )
    await service.add_transaction(
        {"type": "expense", "amount": "200", "category": "reagents", "transaction_date": date(2026, 4, 1)}, lab
    )

    march = await service.list_transactions(lab, date(2026, 3, 1), date(2026, 3, 31))
    assert [t.id for t in march] == [kept.id]
    assert await service.list_transactions(other) == []

    with pytest.raises(ValidationError):
        await service.list_transactions(lab, date(2026, 4, 1), date(2026, 3, 1))
    with pytest.raises(ValidationError):
        await service.add_transaction({"type": "income", "amount": 0, "category": "x"}, lab)
    with pytest.raises(NotFoundError):
        await service.delete_transaction(kept.id, other)

    top = await service.top_expense_categories(lab)
    assert top == [{"category": "reagents", "amount": 200.0, "percentage": 100.0}]
