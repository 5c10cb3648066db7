import enum
from datetime import date, datetime
from typing import Any, Optional


class StockStatus(str, enum.Enum):
    IN_STOCK = "in-stock"
    LOW_STOCK = "low-stock"
    OUT_OF_STOCK = "out-of-stock"
    EXPIRED = "expired"


def parse_date(value: Any) -> Optional[date]:
    """Best-effort conversion of a stored date value; ``None`` when unreadable"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def derive_status(
    stock: Optional[int],
    min_stock: Optional[int] = 0,
    expiry_date: Any = None,
    today: Optional[date] = None,
) -> StockStatus:
    """Status implied by a product's stock, its own minimum and its expiry date."""
    today = today or date.today()
    expires = parse_date(expiry_date)
    if expires is not None and expires < today:
        return StockStatus.EXPIRED

    stock = stock or 0
    if stock <= 0:
        return StockStatus.OUT_OF_STOCK
    if stock <= (min_stock or 0):
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK
