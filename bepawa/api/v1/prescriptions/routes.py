from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.api.deps import get_current_user, get_storage, require_permissions
from bepawa.api.v1.prescriptions.schemas import (
    DocumentUrlResponse,
    PrescriptionResponse,
    PrescriptionStatusUpdate,
)
from bepawa.core.permissions import Permissions
from bepawa.domain.prescriptions.models import PrescriptionStatus
from bepawa.domain.prescriptions.service import PrescriptionService
from bepawa.domain.profiles.models import Profile
from bepawa.infrastructure.database import get_db
from bepawa.infrastructure.storage import StorageService

router = APIRouter(prefix="/prescriptions", tags=["Prescriptions"])

reviewer = require_permissions([Permissions.PRESCRIPTIONS_REVIEW])


@router.post("", response_model=PrescriptionResponse, status_code=status.HTTP_201_CREATED)
async def upload_prescription(
    file: UploadFile = File(...),
    patient_name: str = Form(...),
    pharmacy_id: Optional[str] = Form(None),
    doctor_name: Optional[str] = Form(None),
    doctor_license: Optional[str] = Form(None),
    patient_phone: Optional[str] = Form(None),
    prescription_date: Optional[date] = Form(None),
    notes: Optional[str] = Form(None),
    current_user: Profile = Depends(require_permissions([Permissions.PRESCRIPTIONS_UPLOAD])),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    data = {
        "patient_name": patient_name,
        "pharmacy_id": pharmacy_id,
        "doctor_name": doctor_name,
        "doctor_license": doctor_license,
        "patient_phone": patient_phone,
        "prescription_date": prescription_date,
        "notes": notes,
    }
    prescription = await PrescriptionService(db, storage).upload(current_user, data, file.file, file.filename)
    return PrescriptionResponse.model_validate(prescription)


@router.get("", response_model=List[PrescriptionResponse])
async def my_prescriptions(current_user: Profile = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    prescriptions = await PrescriptionService(db).list_for_user(current_user)
    return [PrescriptionResponse.model_validate(p) for p in prescriptions]


@router.get("/pharmacy", response_model=List[PrescriptionResponse])
async def pharmacy_prescriptions(
    status: Optional[PrescriptionStatus] = None,
    current_user: Profile = Depends(reviewer),
    db: AsyncSession = Depends(get_db),
):
    prescriptions = await PrescriptionService(db).list_for_pharmacy(
        current_user, status.value if status else None
    )
    return [PrescriptionResponse.model_validate(p) for p in prescriptions]


@router.get("/{prescription_id}", response_model=PrescriptionResponse)
async def get_prescription(
    prescription_id: str,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return PrescriptionResponse.model_validate(await PrescriptionService(db).get(prescription_id, current_user))


@router.get("/{prescription_id}/document", response_model=DocumentUrlResponse)
async def prescription_document(
    prescription_id: str,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
):
    """Signed, short-lived link to the scanned prescription"""
    url = await PrescriptionService(db, storage).document_url(prescription_id, current_user)
    return DocumentUrlResponse(url=url)


@router.patch("/{prescription_id}/status", response_model=PrescriptionResponse)
async def update_prescription_status(
    prescription_id: str,
    data: PrescriptionStatusUpdate,
    current_user: Profile = Depends(reviewer),
    db: AsyncSession = Depends(get_db),
):
    prescription = await PrescriptionService(db).update_status(
        prescription_id, data.status, current_user, data.notes
    )
    return PrescriptionResponse.model_validate(prescription)
