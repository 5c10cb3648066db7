from datetime import datetime
from typing import Any, BinaryIO, List, Mapping, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.core.exceptions import (
    AuthorizationError,
    BusinessLogicError,
    ErrorHandler,
    NotFoundError,
    ValidationError,
)
from bepawa.core.permissions import UserRole
from bepawa.domain.notifications.service import NotificationService
from bepawa.domain.prescriptions.models import Prescription, PrescriptionStatus
from bepawa.domain.prescriptions.repository import PrescriptionRepository
from bepawa.domain.profiles.models import Profile
from bepawa.domain.profiles.repository import ProfileRepository
from bepawa.infrastructure.storage import Bucket, StorageService, storage_service

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = (".pdf", ".jpg", ".jpeg", ".png", ".webp")

_TRANSITIONS = {
    PrescriptionStatus.PENDING: {PrescriptionStatus.VERIFIED, PrescriptionStatus.REJECTED},
    PrescriptionStatus.VERIFIED: {PrescriptionStatus.DISPENSED, PrescriptionStatus.REJECTED},
    PrescriptionStatus.DISPENSED: set(),
    PrescriptionStatus.REJECTED: set(),
}


class PrescriptionService:
    def __init__(self, db: AsyncSession, storage: Optional[StorageService] = None):
        self.db = db
        self.repo = PrescriptionRepository(db)
        self.storage = storage or storage_service

    async def upload(
        self,
        user: Profile,
        data: Mapping[str, Any],
        file_obj: BinaryIO,
        filename: str,
    ) -> Prescription:
        """Store the scanned prescription and register it for review"""
        if not filename or not filename.lower().endswith(ALLOWED_EXTENSIONS):
            raise ValidationError("Prescriptions must be PDF or image files")
        if not data.get("patient_name"):
            raise ValidationError("Patient name is required")

        pharmacy_id = data.get("pharmacy_id")
        if pharmacy_id:
            pharmacy = await ProfileRepository(self.db).get(pharmacy_id)
            if not pharmacy or UserRole.parse(pharmacy.role) is not UserRole.RETAIL:
                raise NotFoundError("Pharmacy not found")

        stored = await self.storage.upload(Bucket.PRESCRIPTIONS, user.id, file_obj, filename)
        try:
            prescription = await self.repo.create({
                "user_id": user.id,
                "pharmacy_id": pharmacy_id,
                "doctor_name": data.get("doctor_name"),
                "doctor_license": data.get("doctor_license"),
                "patient_name": data["patient_name"],
                "patient_phone": data.get("patient_phone"),
                "prescription_date": data.get("prescription_date"),
                "notes": data.get("notes"),
                "document_path": stored.path,
                "status": PrescriptionStatus.PENDING.value,
            })
        except SQLAlchemyError:
            await self.db.rollback()
            # Do not leave an orphaned document behind
            await self.storage.delete(Bucket.PRESCRIPTIONS, stored.path)
            raise

        if pharmacy_id:
            await NotificationService(self.db).notify(
                pharmacy_id,
                "New prescription",
                f"A prescription for {prescription.patient_name} is waiting for review.",
                action_url=f"/prescriptions/{prescription.id}",
                metadata={"prescription_id": prescription.id},
            )
        logger.info(f"Prescription {prescription.id} uploaded by {user.id}")
        return prescription

    async def get(self, prescription_id: str, caller: Profile) -> Prescription:
        with ErrorHandler("fetch prescription"):
            prescription = await self.repo.get(prescription_id)
        if not prescription:
            raise NotFoundError("Prescription not found")
        if caller.id not in (prescription.user_id, prescription.pharmacy_id) and \
                UserRole.parse(caller.role) is not UserRole.ADMIN:
            raise NotFoundError("Prescription not found")
        return prescription

    async def list_for_user(self, user: Profile) -> List[Prescription]:
        with ErrorHandler("fetch prescriptions"):
            return await self.repo.list(user_id=user.id)

    async def list_for_pharmacy(self, pharmacy: Profile, status: Optional[str] = None) -> List[Prescription]:
        with ErrorHandler("fetch pharmacy prescriptions"):
            return await self.repo.list(pharmacy_id=pharmacy.id, status=status)

    async def document_url(self, prescription_id: str, caller: Profile) -> str:
        prescription = await self.get(prescription_id, caller)
        if not prescription.document_path:
            raise NotFoundError("Prescription has no document")
        return await self.storage.get_url(Bucket.PRESCRIPTIONS, prescription.document_path)

    async def update_status(
        self,
        prescription_id: str,
        status: PrescriptionStatus,
        caller: Profile,
        notes: Optional[str] = None,
    ) -> Prescription:
        prescription = await self.get(prescription_id, caller)
        is_admin = UserRole.parse(caller.role) is UserRole.ADMIN
        if caller.id != prescription.pharmacy_id and not is_admin:
            raise AuthorizationError("Only the assigned pharmacy can review this prescription")

        current = PrescriptionStatus(prescription.status)
        status = PrescriptionStatus(status)
        if status not in _TRANSITIONS[current]:
            raise BusinessLogicError(f"Cannot move prescription from {current.value} to {status.value}")

        now = datetime.utcnow()
        prescription.status = status.value
        if notes:
            prescription.notes = notes
        if status is PrescriptionStatus.VERIFIED:
            prescription.verified_by, prescription.verified_at = caller.id, now
        elif status is PrescriptionStatus.DISPENSED:
            prescription.dispensed_by, prescription.dispensed_at = caller.id, now

        with ErrorHandler("update prescription status"):
            await self.db.commit()
            await self.db.refresh(prescription)

        await NotificationService(self.db).notify(
            prescription.user_id,
            f"Prescription {status.value}",
            f"Your prescription for {prescription.patient_name} is {status.value}.",
            type="warning" if status is PrescriptionStatus.REJECTED else "success",
            action_url=f"/prescriptions/{prescription.id}",
        )
        return prescription
