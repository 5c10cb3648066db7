"""
Appointments Domain Models

Bookings made by customers with laboratories and pharmacies, including
the structured result a lab records once the visit is complete.
"""

from sqlalchemy import Column, String, Date, DateTime, Time, Text, JSON, func

from bepawa.infrastructure.database import Base, gen_uuid
import enum


class AppointmentStatus(str, enum.Enum):
    """Appointment status enumeration"""
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class ProviderType(str, enum.Enum):
    """Kind of business providing the appointment"""
    LAB = "lab"
    PHARMACY = "pharmacy"


class Appointment(Base):
    """Customer booking with a provider"""
    __tablename__ = "appointments"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    provider_id = Column(String(36), nullable=False, index=True)
    provider_type = Column(String(16), nullable=False)

    appointment_date = Column(Date, nullable=False, index=True)
    appointment_time = Column(Time, nullable=False)
    service_type = Column(String(100), nullable=False)
    status = Column(String(16), nullable=False, default=AppointmentStatus.SCHEDULED.value, index=True)
    notes = Column(Text, nullable=True)

    # Structured lab results, kept apart from free-text notes
    result_payload = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
