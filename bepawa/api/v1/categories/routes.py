from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.api.deps import get_current_user, require_permissions
from bepawa.api.v1.categories.schemas import CategoryCreate, CategoryResponse, CategoryUpdate
from bepawa.core.permissions import Permissions
from bepawa.domain.categories.service import CategoryService
from bepawa.domain.profiles.models import Profile
from bepawa.infrastructure.database import get_db

router = APIRouter(prefix="/categories", tags=["Categories"])

admin = require_permissions([Permissions.CATEGORIES_MANAGE])


@router.get("", response_model=List[CategoryResponse])
async def list_categories(
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    categories = await CategoryService(db).list()
    return [CategoryResponse.model_validate(c) for c in categories]


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(
    category_id: str,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return CategoryResponse.model_validate(await CategoryService(db).get(category_id))


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    data: CategoryCreate,
    current_user: Profile = Depends(admin),
    db: AsyncSession = Depends(get_db),
):
    category = await CategoryService(db).create(data.model_dump())
    return CategoryResponse.model_validate(category)


@router.patch("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: str,
    data: CategoryUpdate,
    current_user: Profile = Depends(admin),
    db: AsyncSession = Depends(get_db),
):
    category = await CategoryService(db).update(category_id, data.model_dump(exclude_unset=True))
    return CategoryResponse.model_validate(category)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: str,
    current_user: Profile = Depends(admin),
    db: AsyncSession = Depends(get_db),
):
    await CategoryService(db).delete(category_id)
