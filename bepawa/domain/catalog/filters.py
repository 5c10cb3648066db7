"""
Product filter/sort pipeline

Narrows an already-fetched product list by search term, category, price range
and stock bucket, then orders it. Absent or malformed criteria never raise;
they simply impose no constraint.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union
import re

# Stock buckets used by the catalog filter; independent of each product's own minimum
LOW_STOCK_CEILING = 10

STOCK_FILTERS = ("in-stock", "low-stock", "out-of-stock")
SORT_KEYS = ("name", "name-desc", "price", "price-desc", "stock", "stock-desc")

_ALIASES = {
    "searchTerm": "search_term",
    "selectedCategory": "category",
    "priceRange": "price_range",
    "stockFilter": "stock_filter",
    "sortBy": "sort_by",
}


@dataclass(frozen=True)
class ProductFilters:
    search_term: Optional[str] = None
    category: Optional[str] = None
    price_range: Optional[Tuple[float, float]] = None
    stock_filter: Optional[str] = None
    sort_by: str = "name"

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "ProductFilters":
        """Build from query params or a UI payload; camelCase keys are accepted."""
        if not data:
            return cls()
        normalized: Dict[str, Any] = {}
        for key, value in data.items():
            normalized[_ALIASES.get(key, key)] = value
        return cls(
            search_term=normalized.get("search_term") if isinstance(normalized.get("search_term"), str) else None,
            category=normalized.get("category") if isinstance(normalized.get("category"), str) else None,
            price_range=_coerce_price_range(normalized.get("price_range")),
            stock_filter=normalized.get("stock_filter") if isinstance(normalized.get("stock_filter"), str) else None,
            sort_by=normalized.get("sort_by") if isinstance(normalized.get("sort_by"), str) else "name",
        )


def sanitize_search_term(term: str) -> str:
    return re.sub(r"[<>]", "", term).strip()


def _coerce_price_range(value: Any) -> Optional[Tuple[float, float]]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        return None
    try:
        lo, hi = float(value[0]), float(value[1])
    except (TypeError, ValueError):
        return None
    return lo, hi


def _read(row: Any, field: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(field)
    return getattr(row, field, None)


def _number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _text(value: Any) -> str:
    return value.lower() if isinstance(value, str) else ""


def _matches_search(row: Any, term: str) -> bool:
    return any(
        term in _text(_read(row, field))
        for field in ("name", "description", "manufacturer")
    )


def _in_stock_bucket(stock: float, bucket: str) -> bool:
    if bucket == "in-stock":
        return stock > LOW_STOCK_CEILING
    if bucket == "low-stock":
        return 0 < stock <= LOW_STOCK_CEILING
    if bucket == "out-of-stock":
        return stock == 0
    return True


_SORTS: Dict[str, Tuple[Callable[[Any], Any], bool]] = {
    "name": (lambda row: _text(_read(row, "name")), False),
    "name-desc": (lambda row: _text(_read(row, "name")), True),
    "price": (lambda row: _number(_read(row, "price")), False),
    "price-desc": (lambda row: _number(_read(row, "price")), True),
    "stock": (lambda row: _number(_read(row, "stock")), False),
    "stock-desc": (lambda row: _number(_read(row, "stock")), True),
}


def filter_products(
    products: Sequence[Any],
    filters: Union[ProductFilters, Mapping[str, Any], None] = None,
) -> List[Any]:
    """Return a new, filtered and sorted list; ``products`` is left untouched."""
    if not isinstance(filters, ProductFilters):
        filters = ProductFilters.from_mapping(filters)

    result = list(products)

    if filters.search_term:
        term = sanitize_search_term(filters.search_term).lower()
        if term:
            result = [row for row in result if _matches_search(row, term)]

    if filters.category and filters.category != "all":
        result = [row for row in result if _read(row, "category") == filters.category]

    price_range = _coerce_price_range(filters.price_range)
    if price_range:
        lo, hi = price_range
        result = [row for row in result if lo <= _number(_read(row, "price")) <= hi]

    if filters.stock_filter in STOCK_FILTERS:
        result = [
            row for row in result
            if _in_stock_bucket(_number(_read(row, "stock")), filters.stock_filter)
        ]

    key, reverse = _SORTS.get(filters.sort_by, _SORTS["name"])
    # sorted() is stable in both directions, so ties keep their input order
    return sorted(result, key=key, reverse=reverse)
