from datetime import date, timedelta
from typing import Any, Dict, List, Mapping, Optional, Union
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.core.config import settings
from bepawa.core.exceptions import AuthorizationError, ErrorHandler, NotFoundError, ValidationError
from bepawa.core.permissions import Permissions, UserRole, check_resource_access, has_any_permission
from bepawa.domain.catalog.filters import ProductFilters, filter_products
from bepawa.domain.catalog.mappers import ProductView, map_product_row
from bepawa.domain.catalog.stock import derive_status, parse_date
from bepawa.domain.catalog.visibility import visible_products_predicate
from bepawa.domain.products.models import InventoryMovement, MovementType, Product
from bepawa.domain.products.repository import ProductRepository
from bepawa.domain.profiles.models import Profile

logger = logging.getLogger(__name__)

WRITE_PERMISSIONS = [Permissions.PRODUCTS_WRITE_OWN, Permissions.PRODUCTS_WRITE]

# Alternative field names accepted from UI payloads
_FIELD_ALIASES = {
    "min_stock": "min_stock_level",
    "price": "sell_price",
    "image": "image_url",
}

_WRITABLE_FIELDS = {
    "name", "description", "category", "sku", "manufacturer", "supplier",
    "dosage_form", "strength", "pack_size", "batch_number", "stock",
    "min_stock_level", "max_stock", "buy_price", "sell_price",
    "requires_prescription", "expiry_date", "image_url",
    # Owners decide whether a listing is published to the marketplace
    "is_public_product",
}

# Columns that must always hold a value
_REQUIRED_FIELDS = {
    "name", "stock", "min_stock_level", "sell_price",
    "requires_prescription", "is_public_product",
}


def _normalize(data: Mapping[str, Any]) -> Dict[str, Any]:
    normalized = {}
    for key, value in data.items():
        key = _FIELD_ALIASES.get(key, key)
        if key in _WRITABLE_FIELDS:
            normalized[key] = value
    if "expiry_date" in normalized:
        normalized["expiry_date"] = parse_date(normalized["expiry_date"])
    return normalized


def visibility_flags_for(role) -> Dict[str, Any]:
    """Catalog flags a new product gets from its creator's role"""
    parsed = UserRole.parse(role)
    if parsed is UserRole.WHOLESALE:
        return {"is_wholesale_product": True}
    if parsed is UserRole.RETAIL:
        return {"is_retail_product": True, "is_public_product": True}
    return {}


class ProductService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = ProductRepository(db)

    # ==================== Catalog ====================

    async def list_visible(self, caller: Profile, limit: Optional[int] = None) -> List[ProductView]:
        visibility = visible_products_predicate(caller.role, caller.id)
        with ErrorHandler("fetch products"):
            rows = await self.repo.list_visible(visibility, limit=limit)
        return [map_product_row(row) for row in rows]

    async def search(
        self,
        caller: Profile,
        filters: Union[ProductFilters, Mapping[str, Any], None] = None,
    ) -> List[ProductView]:
        """Visible products narrowed and ordered by the catalog filters"""
        products = await self.list_visible(caller)
        return filter_products(products, filters)

    async def get(self, product_id: str, caller: Profile) -> ProductView:
        product = await self._get_visible(product_id, caller)
        return map_product_row(product)

    async def _get_visible(self, product_id: str, caller: Profile) -> Product:
        with ErrorHandler("fetch product"):
            product = await self.repo.get(product_id)
        if not product or not visible_products_predicate(caller.role, caller.id).matches(product):
            raise NotFoundError("Product not found")
        return product

    async def get_writable(self, product_id: str, caller: Profile, for_update: bool = False) -> Product:
        with ErrorHandler("fetch product"):
            product = await self.repo.get(product_id, for_update=for_update)
        if not product:
            raise NotFoundError("Product not found")
        if not check_resource_access(caller.role, caller.id, [product.user_id], WRITE_PERMISSIONS):
            raise AuthorizationError("You can only modify your own products")
        return product

    # ==================== Writes ====================

    async def create(self, data: Mapping[str, Any], caller: Profile) -> ProductView:
        if not has_any_permission(caller.role, WRITE_PERMISSIONS):
            raise AuthorizationError("Your role cannot list products")

        product_data = _normalize(data)
        if not product_data.get("name"):
            raise ValidationError("Product name is required")

        product_data["user_id"] = caller.id
        role = UserRole.parse(caller.role)
        if role is UserRole.WHOLESALE:
            product_data["wholesaler_id"] = caller.id
        elif role is UserRole.RETAIL:
            product_data["pharmacy_id"] = caller.id

        if role is UserRole.ADMIN:
            for flag in ("is_public_product", "is_retail_product", "is_wholesale_product"):
                if flag in data:
                    product_data[flag] = bool(data[flag])
        else:
            product_data.update(visibility_flags_for(role))

        product_data["status"] = derive_status(
            product_data.get("stock", 0),
            product_data.get("min_stock_level", 0),
            product_data.get("expiry_date"),
        ).value

        with ErrorHandler("create product"):
            product = await self.repo.create(product_data)
        logger.info(f"Product {product.id} created by {caller.id}")
        return map_product_row(product)

    async def update(self, product_id: str, data: Mapping[str, Any], caller: Profile) -> ProductView:
        product = await self.get_writable(product_id, caller)
        update_data = _normalize(data)
        cleared = sorted(key for key in _REQUIRED_FIELDS if key in update_data and update_data[key] is None)
        if cleared:
            raise ValidationError("Required product fields cannot be cleared", details={"fields": cleared})

        stock = update_data.get("stock", product.stock)
        min_stock = update_data.get("min_stock_level", product.min_stock_level)
        expiry = update_data["expiry_date"] if "expiry_date" in update_data else product.expiry_date
        update_data["status"] = derive_status(stock, min_stock, expiry).value

        with ErrorHandler("update product"):
            product = await self.repo.update(product, update_data)
        return map_product_row(product)

    async def delete(self, product_id: str, caller: Profile) -> None:
        product = await self.get_writable(product_id, caller)
        with ErrorHandler("delete product"):
            await self.repo.delete(product)
        logger.info(f"Product {product_id} deleted by {caller.id}")

    async def update_stock(
        self,
        product_id: str,
        new_stock: int,
        reason: Optional[str],
        caller: Profile,
    ) -> ProductView:
        """Set the stock level and record the difference as a movement"""
        if new_stock < 0:
            raise ValidationError("Stock cannot be negative")

        product = await self.get_writable(product_id, caller, for_update=True)
        delta = new_stock - (product.stock or 0)
        if delta > 0:
            movement_type = MovementType.IN
        elif delta < 0:
            movement_type = MovementType.OUT
        else:
            movement_type = MovementType.ADJUSTMENT

        product.stock = new_stock
        product.status = derive_status(new_stock, product.min_stock_level, product.expiry_date).value
        self.repo.add_movement({
            "user_id": product.user_id,
            "product_id": product.id,
            "movement_type": movement_type.value,
            "quantity": abs(delta),
            "reason": reason or "Stock update",
            "created_by": caller.id,
        })
        with ErrorHandler("update stock"):
            await self.db.commit()
            await self.db.refresh(product)
        return map_product_row(product)

    # ==================== Movements and Alerts ====================

    async def list_movements(self, caller: Profile, product_id: Optional[str] = None) -> List[InventoryMovement]:
        owner = None if UserRole.parse(caller.role) is UserRole.ADMIN else caller.id
        with ErrorHandler("fetch inventory movements"):
            return await self.repo.list_movements(product_id=product_id, user_id=owner)

    async def create_movement(self, data: Mapping[str, Any], caller: Profile) -> InventoryMovement:
        """Record a movement as-is; stock levels are left to the caller"""
        await self.get_writable(data["product_id"], caller)
        movement = self.repo.add_movement({
            "user_id": caller.id,
            "product_id": data["product_id"],
            "movement_type": MovementType(data["movement_type"]).value,
            "quantity": data["quantity"],
            "reason": data.get("reason"),
            "created_by": caller.id,
        })
        with ErrorHandler("create inventory movement"):
            await self.db.commit()
            await self.db.refresh(movement)
        return movement

    async def list_low_stock(self, owner_id: Optional[str] = None) -> List[ProductView]:
        with ErrorHandler("fetch low stock products"):
            rows = await self.repo.list_low_stock(owner_id)
        return [map_product_row(row) for row in rows]

    async def list_expiring(
        self,
        owner_id: Optional[str] = None,
        days: Optional[int] = None,
        today: Optional[date] = None,
    ) -> List[ProductView]:
        horizon = (today or date.today()) + timedelta(days=days if days is not None else settings.EXPIRY_WARNING_DAYS)
        with ErrorHandler("fetch expiring products"):
            rows = await self.repo.list_expiring(horizon, owner_id)
        return [map_product_row(row) for row in rows]
