from typing import Any, List, Mapping, Optional
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.core.exceptions import BusinessLogicError, ConflictError, ErrorHandler, NotFoundError, ValidationError
from bepawa.domain.categories.models import ProductCategory
from bepawa.domain.categories.repository import CategoryRepository

logger = logging.getLogger(__name__)

_FIELDS = {"name", "description", "parent_category_id"}


class CategoryService:
    """Product categories offered by the catalog filter and product forms"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = CategoryRepository(db)

    async def list(self, include_inactive: bool = False) -> List[ProductCategory]:
        with ErrorHandler("fetch product categories"):
            return await self.repo.list(include_inactive=include_inactive)

    async def get(self, category_id: str) -> ProductCategory:
        with ErrorHandler("fetch product category"):
            category = await self.repo.get(category_id)
        if not category:
            raise NotFoundError("Category not found")
        return category

    async def _check_name(self, name: Optional[str], exclude_id: Optional[str] = None) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name is required")
        with ErrorHandler("check category name"):
            existing = await self.repo.get_active_by_name(name)
        if existing and existing.id != exclude_id:
            raise ConflictError(f"Category '{name}' already exists")
        return name

    async def _check_parent(self, parent_id: Optional[str], category_id: Optional[str] = None) -> None:
        if not parent_id:
            return
        if parent_id == category_id:
            raise BusinessLogicError("A category cannot be its own parent")
        parent = await self.get(parent_id)
        if not parent.is_active:
            raise BusinessLogicError("Parent category is inactive")

    async def create(self, data: Mapping[str, Any]) -> ProductCategory:
        category_data = {k: v for k, v in data.items() if k in _FIELDS}
        category_data["name"] = await self._check_name(category_data.get("name"))
        await self._check_parent(category_data.get("parent_category_id"))
        category_data["is_active"] = True
        with ErrorHandler("create product category"):
            category = await self.repo.create(category_data)
        logger.info(f"Category {category.name} created")
        return category

    async def update(self, category_id: str, data: Mapping[str, Any]) -> ProductCategory:
        category = await self.get(category_id)
        updates = {k: v for k, v in data.items() if k in _FIELDS | {"is_active"}}
        if "name" in updates:
            updates["name"] = await self._check_name(updates["name"], exclude_id=category.id)
        if "parent_category_id" in updates:
            await self._check_parent(updates["parent_category_id"], category.id)
        if updates.get("is_active") is None:
            updates.pop("is_active", None)

        for key, value in updates.items():
            setattr(category, key, value)
        with ErrorHandler("update product category"):
            await self.db.commit()
            await self.db.refresh(category)
        return category

    async def delete(self, category_id: str) -> None:
        category = await self.get(category_id)
        category.is_active = False
        with ErrorHandler("delete product category"):
            await self.db.commit()
        logger.info(f"Category {category_id} deactivated")
