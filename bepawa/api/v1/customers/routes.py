from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.api.deps import require_permissions
from bepawa.api.v1.customers.schemas import (
    CommunicationCreate,
    CommunicationResponse,
    CustomerAnalyticsResponse,
    CustomerCreate,
    CustomerResponse,
    CustomerUpdate,
)
from bepawa.core.permissions import Permissions
from bepawa.domain.customers.service import CustomerService
from bepawa.domain.profiles.models import Profile
from bepawa.infrastructure.database import get_db

router = APIRouter(prefix="/customers", tags=["Customers"])

crm = require_permissions([Permissions.CUSTOMERS_MANAGE])


@router.get("", response_model=List[CustomerResponse])
async def list_customers(
    search: Optional[str] = Query(None, max_length=100),
    current_user: Profile = Depends(crm),
    db: AsyncSession = Depends(get_db),
):
    service = CustomerService(db)
    customers = await service.search(current_user, search) if search else await service.list_customers(current_user)
    return [CustomerResponse.model_validate(c) for c in customers]


@router.get("/analytics", response_model=CustomerAnalyticsResponse)
async def analytics(current_user: Profile = Depends(crm), db: AsyncSession = Depends(get_db)):
    result = await CustomerService(db).analytics(current_user)
    result["recent_communications"] = [
        CommunicationResponse.model_validate(c) for c in result["recent_communications"]
    ]
    return CustomerAnalyticsResponse(**result)


@router.get("/communications", response_model=List[CommunicationResponse])
async def list_communications(
    customer_id: Optional[str] = None,
    current_user: Profile = Depends(crm),
    db: AsyncSession = Depends(get_db),
):
    communications = await CustomerService(db).list_communications(current_user, customer_id)
    return [CommunicationResponse.model_validate(c) for c in communications]


@router.post("/communications", response_model=CommunicationResponse, status_code=status.HTTP_201_CREATED)
async def add_communication(
    data: CommunicationCreate,
    current_user: Profile = Depends(crm),
    db: AsyncSession = Depends(get_db),
):
    communication = await CustomerService(db).add_communication(data.model_dump(), current_user)
    return CommunicationResponse.model_validate(communication)


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(
    data: CustomerCreate,
    current_user: Profile = Depends(crm),
    db: AsyncSession = Depends(get_db),
):
    payload = data.model_dump()
    payload["status"] = data.status.value
    return CustomerResponse.model_validate(await CustomerService(db).create(payload, current_user))


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(customer_id: str, current_user: Profile = Depends(crm), db: AsyncSession = Depends(get_db)):
    return CustomerResponse.model_validate(await CustomerService(db).get(customer_id, current_user))


@router.patch("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: str,
    data: CustomerUpdate,
    current_user: Profile = Depends(crm),
    db: AsyncSession = Depends(get_db),
):
    payload = data.model_dump(exclude_unset=True)
    if data.status is not None:
        payload["status"] = data.status.value
    return CustomerResponse.model_validate(await CustomerService(db).update(customer_id, payload, current_user))


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer(customer_id: str, current_user: Profile = Depends(crm), db: AsyncSession = Depends(get_db)):
    await CustomerService(db).delete(customer_id, current_user)
