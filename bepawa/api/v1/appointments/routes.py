from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.api.deps import get_current_user, require_permissions
from bepawa.api.v1.appointments.schemas import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentResult,
    AppointmentStatusUpdate,
)
from bepawa.core.permissions import Permissions
from bepawa.domain.appointments.service import AppointmentService
from bepawa.domain.profiles.models import Profile
from bepawa.infrastructure.database import get_db

router = APIRouter(prefix="/appointments", tags=["Appointments"])

provider = require_permissions([Permissions.APPOINTMENTS_PROVIDE])


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def book_appointment(
    data: AppointmentCreate,
    current_user: Profile = Depends(require_permissions([Permissions.APPOINTMENTS_BOOK])),
    db: AsyncSession = Depends(get_db),
):
    appointment = await AppointmentService(db).book(current_user, **data.model_dump())
    return AppointmentResponse.model_validate(appointment)


@router.get("", response_model=List[AppointmentResponse])
async def my_appointments(current_user: Profile = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    appointments = await AppointmentService(db).list_for_user(current_user)
    return [AppointmentResponse.model_validate(a) for a in appointments]


@router.get("/provider", response_model=List[AppointmentResponse])
async def provider_appointments(
    on_date: Optional[date] = None,
    status: Optional[str] = None,
    current_user: Profile = Depends(provider),
    db: AsyncSession = Depends(get_db),
):
    appointments = await AppointmentService(db).list_for_provider(current_user, on_date=on_date, status=status)
    return [AppointmentResponse.model_validate(a) for a in appointments]


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: str,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return AppointmentResponse.model_validate(await AppointmentService(db).get(appointment_id, current_user))


@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_status(
    appointment_id: str,
    data: AppointmentStatusUpdate,
    current_user: Profile = Depends(provider),
    db: AsyncSession = Depends(get_db),
):
    appointment = await AppointmentService(db).update_status(appointment_id, data.status, current_user)
    return AppointmentResponse.model_validate(appointment)


@router.post("/{appointment_id}/result", response_model=AppointmentResponse)
async def record_result(
    appointment_id: str,
    data: AppointmentResult,
    current_user: Profile = Depends(provider),
    db: AsyncSession = Depends(get_db),
):
    appointment = await AppointmentService(db).record_result(appointment_id, data.result, current_user)
    return AppointmentResponse.model_validate(appointment)


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: str,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return AppointmentResponse.model_validate(await AppointmentService(db).cancel(appointment_id, current_user))
