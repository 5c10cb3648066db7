from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.api.deps import get_current_user, get_storage, require_permissions
from bepawa.api.v1.products.schemas import (
    MovementCreate,
    MovementResponse,
    ProductCreate,
    ProductUpdate,
    StockUpdate,
)
from bepawa.core.permissions import Permissions
from bepawa.domain.catalog.filters import ProductFilters
from bepawa.domain.catalog.mappers import ProductView
from bepawa.domain.products.service import ProductService
from bepawa.domain.profiles.models import Profile
from bepawa.infrastructure.database import get_db
from bepawa.infrastructure.storage import Bucket, StorageService

router = APIRouter(prefix="/products", tags=["Products"])

WRITERS = [Permissions.PRODUCTS_WRITE_OWN, Permissions.PRODUCTS_WRITE]


@router.get("", response_model=List[ProductView])
async def list_products(
    search: Optional[str] = Query(None, max_length=100),
    category: Optional[str] = None,
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    stock_filter: Optional[str] = None,
    sort_by: str = "name",
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Catalog visible to the caller's role, narrowed by the optional filters"""
    price_range = None
    if min_price is not None or max_price is not None:
        price_range = (min_price or 0.0, max_price if max_price is not None else float("inf"))
    filters = ProductFilters(
        search_term=search,
        category=category,
        price_range=price_range,
        stock_filter=stock_filter,
        sort_by=sort_by,
    )
    return await ProductService(db).search(current_user, filters)


@router.get("/low-stock", response_model=List[ProductView])
async def low_stock(
    current_user: Profile = Depends(require_permissions(WRITERS)),
    db: AsyncSession = Depends(get_db),
):
    return await ProductService(db).list_low_stock(current_user.id)


@router.get("/expiring", response_model=List[ProductView])
async def expiring(
    days: int = Query(30, ge=0, le=365),
    current_user: Profile = Depends(require_permissions(WRITERS)),
    db: AsyncSession = Depends(get_db),
):
    return await ProductService(db).list_expiring(current_user.id, days=days)


@router.get("/movements", response_model=List[MovementResponse])
async def list_movements(
    product_id: Optional[str] = None,
    current_user: Profile = Depends(require_permissions(WRITERS)),
    db: AsyncSession = Depends(get_db),
):
    movements = await ProductService(db).list_movements(current_user, product_id=product_id)
    return [MovementResponse.model_validate(m) for m in movements]


@router.post("/movements", response_model=MovementResponse, status_code=status.HTTP_201_CREATED)
async def create_movement(
    data: MovementCreate,
    current_user: Profile = Depends(require_permissions(WRITERS)),
    db: AsyncSession = Depends(get_db),
):
    movement = await ProductService(db).create_movement(data.model_dump(), current_user)
    return MovementResponse.model_validate(movement)


@router.get("/{product_id}", response_model=ProductView)
async def get_product(
    product_id: str,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ProductService(db).get(product_id, current_user)


@router.post("", response_model=ProductView, status_code=status.HTTP_201_CREATED)
async def create_product(
    data: ProductCreate,
    current_user: Profile = Depends(require_permissions(WRITERS)),
    db: AsyncSession = Depends(get_db),
):
    return await ProductService(db).create(data.model_dump(exclude_none=True), current_user)


@router.patch("/{product_id}", response_model=ProductView)
async def update_product(
    product_id: str,
    data: ProductUpdate,
    current_user: Profile = Depends(require_permissions(WRITERS)),
    db: AsyncSession = Depends(get_db),
):
    return await ProductService(db).update(product_id, data.model_dump(exclude_unset=True), current_user)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: str,
    current_user: Profile = Depends(require_permissions(WRITERS)),
    db: AsyncSession = Depends(get_db),
):
    await ProductService(db).delete(product_id, current_user)


@router.put("/{product_id}/stock", response_model=ProductView)
async def update_stock(
    product_id: str,
    data: StockUpdate,
    current_user: Profile = Depends(require_permissions(WRITERS)),
    db: AsyncSession = Depends(get_db),
):
    return await ProductService(db).update_stock(product_id, data.stock, data.reason, current_user)


@router.post("/{product_id}/image", response_model=ProductView)
async def upload_image(
    product_id: str,
    file: UploadFile = File(...),
    current_user: Profile = Depends(require_permissions(WRITERS)),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    service = ProductService(db)
    # Ownership is checked before anything is uploaded
    await service.get_writable(product_id, current_user)
    stored = await storage.upload(
        Bucket.PRODUCT_IMAGES, current_user.id, file.file, file.filename or "image", extra_path=f"{product_id}/"
    )
    return await service.update(product_id, {"image_url": stored.public_url}, current_user)
