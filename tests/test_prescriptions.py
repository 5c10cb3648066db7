from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import func, select

from bepawa.core.exceptions import AuthorizationError, BusinessLogicError, NotFoundError, ValidationError
from bepawa.core.permissions import UserRole
from bepawa.domain.prescriptions.models import Prescription, PrescriptionStatus
from bepawa.domain.prescriptions.service import PrescriptionService
from bepawa.infrastructure.storage import Bucket, StorageService, StoredFile


@pytest.fixture
def fake_storage():
    storage = MagicMock(spec=StorageService)
    storage.upload = AsyncMock(return_value=StoredFile(path="u/1_rx.pdf"))
    storage.delete = AsyncMock()
    storage.get_url = AsyncMock(return_value="https://signed/rx")
    return storage


@pytest.mark.asyncio
async def test_upload_review_and_dispense(db, make_profile, fake_storage):
    patient = await make_profile(UserRole.INDIVIDUAL)
    pharmacy = await make_profile(UserRole.RETAIL)
    service = PrescriptionService(db, fake_storage)

    prescription = await service.upload(
        patient, {"patient_name": "Rehema", "pharmacy_id": pharmacy.id}, b"%PDF", "scan.pdf"
    )
    assert prescription.status == "pending"
    assert prescription.document_path == "u/1_rx.pdf"
    assert fake_storage.upload.await_args.args[0] is Bucket.PRESCRIPTIONS

    assert [p.id for p in await service.list_for_pharmacy(pharmacy)] == [prescription.id]
    assert await service.document_url(prescription.id, patient) == "https://signed/rx"

    with pytest.raises(AuthorizationError):
        await service.update_status(prescription.id, PrescriptionStatus.VERIFIED, patient)
    with pytest.raises(BusinessLogicError):
        await service.update_status(prescription.id, PrescriptionStatus.DISPENSED, pharmacy)

    verified = await service.update_status(prescription.id, PrescriptionStatus.VERIFIED, pharmacy)
    assert verified.verified_by == pharmacy.id
    dispensed = await service.update_status(prescription.id, PrescriptionStatus.DISPENSED, pharmacy)
    assert dispensed.dispensed_at is not None


@pytest.mark.asyncio
async def test_upload_validation(db, make_profile, fake_storage):
    patient = await make_profile(UserRole.INDIVIDUAL)
    wholesaler = await make_profile(UserRole.WHOLESALE)
    service = PrescriptionService(db, fake_storage)

    with pytest.raises(ValidationError):
        await service.upload(patient, {"patient_name": "Rehema"}, b"x", "notes.docx")
    with pytest.raises(NotFoundError):
        await service.upload(patient, {"patient_name": "Rehema", "pharmacy_id": wholesaler.id}, b"x", "rx.png")
    fake_storage.upload.assert_not_awaited()


@pytest.mark.asyncio
async def test_stranger_cannot_read_prescription(db, make_profile, fake_storage):
    patient = await make_profile(UserRole.INDIVIDUAL)
    stranger = await make_profile(UserRole.INDIVIDUAL)
    service = PrescriptionService(db, fake_storage)
    prescription = await service.upload(patient, {"patient_name": "Rehema"}, b"x", "rx.jpg")

    with pytest.raises(NotFoundError):
        await service.get(prescription.id, stranger)
    count = (await db.execute(select(func.count()).select_from(Prescription))).scalar_one()
    assert count == 1
