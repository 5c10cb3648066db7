from datetime import date, datetime, time
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from bepawa.domain.appointments.models import AppointmentStatus


class AppointmentCreate(BaseModel):
    provider_id: str
    appointment_date: date
    appointment_time: time
    service_type: str = Field(..., min_length=1, max_length=100)
    notes: Optional[str] = None


class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus


class AppointmentResult(BaseModel):
    result: Dict[str, Any]


class AppointmentResponse(BaseModel):
    id: str
    user_id: str
    provider_id: str
    provider_type: str
    appointment_date: date
    appointment_time: time
    service_type: str
    status: str
    notes: Optional[str] = None
    result_payload: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
