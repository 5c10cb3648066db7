# Catalog: role-scoped visibility, filter pipeline, row mappers
from bepawa.domain.catalog.filters import ProductFilters, filter_products
from bepawa.domain.catalog.mappers import ProductView, map_product_row
from bepawa.domain.catalog.stock import StockStatus, derive_status
from bepawa.domain.catalog.visibility import (
    VisibilityFilter,
    visible_orders_predicate,
    visible_products_predicate,
)

__all__ = [
    "ProductFilters",
    "filter_products",
    "ProductView",
    "map_product_row",
    "StockStatus",
    "derive_status",
    "VisibilityFilter",
    "visible_orders_predicate",
    "visible_products_predicate",
]
