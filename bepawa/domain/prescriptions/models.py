import enum

from sqlalchemy import Column, String, Date, DateTime, Text, func

from bepawa.infrastructure.database import Base, gen_uuid


class PrescriptionStatus(str, enum.Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    DISPENSED = "dispensed"
    REJECTED = "rejected"


class Prescription(Base):
    __tablename__ = "prescriptions"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    pharmacy_id = Column(String(36), nullable=True, index=True)
    doctor_name = Column(String(255), nullable=True)
    doctor_license = Column(String(100), nullable=True)
    patient_name = Column(String(255), nullable=False)
    patient_phone = Column(String(32), nullable=True)
    prescription_date = Column(Date, nullable=True)
    # Object path inside the private prescriptions bucket
    document_path = Column(String(512), nullable=True)
    status = Column(String(16), nullable=False, default=PrescriptionStatus.PENDING.value, index=True)
    notes = Column(Text, nullable=True)
    verified_by = Column(String(36), nullable=True)
    verified_at = Column(DateTime, nullable=True)
    dispensed_by = Column(String(36), nullable=True)
    dispensed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=func.now(), index=True)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
