from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.api.deps import require_permissions
from bepawa.api.v1.pos.schemas import SaleCreate, SaleItemResponse, SaleResponse
from bepawa.core.permissions import Permissions
from bepawa.domain.pos.service import PosService
from bepawa.domain.profiles.models import Profile
from bepawa.infrastructure.database import get_db

router = APIRouter(prefix="/pos", tags=["Point of Sale"])

cashier = require_permissions([Permissions.POS_MANAGE])


@router.post("/sales", response_model=SaleResponse, status_code=status.HTTP_201_CREATED)
async def create_sale(data: SaleCreate, current_user: Profile = Depends(cashier), db: AsyncSession = Depends(get_db)):
    sale = await PosService(db).create_sale(
        current_user,
        data.model_dump(exclude={"items"}),
        [item.model_dump() for item in data.items],
    )
    return SaleResponse.model_validate(sale)


@router.get("/sales", response_model=List[SaleResponse])
async def list_sales(
    limit: int = Query(100, ge=1, le=500),
    current_user: Profile = Depends(cashier),
    db: AsyncSession = Depends(get_db),
):
    return [SaleResponse.model_validate(s) for s in await PosService(db).list_sales(current_user, limit)]


@router.get("/sales/{sale_id}/items", response_model=List[SaleItemResponse])
async def list_sale_items(sale_id: str, current_user: Profile = Depends(cashier), db: AsyncSession = Depends(get_db)):
    items = await PosService(db).list_sale_items(sale_id, current_user)
    return [SaleItemResponse.model_validate(i) for i in items]
