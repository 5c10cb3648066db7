from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel

from bepawa.domain.prescriptions.models import PrescriptionStatus


class PrescriptionStatusUpdate(BaseModel):
    status: PrescriptionStatus
    notes: Optional[str] = None


class PrescriptionResponse(BaseModel):
    id: str
    user_id: str
    pharmacy_id: Optional[str] = None
    doctor_name: Optional[str] = None
    doctor_license: Optional[str] = None
    patient_name: str
    patient_phone: Optional[str] = None
    prescription_date: Optional[date] = None
    document_path: Optional[str] = None
    status: str
    notes: Optional[str] = None
    verified_by: Optional[str] = None
    verified_at: Optional[datetime] = None
    dispensed_by: Optional[str] = None
    dispensed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DocumentUrlResponse(BaseModel):
    url: str
