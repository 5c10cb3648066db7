"""
Appointments Service Layer

Booking, provider agendas, status changes and lab results.
"""

from datetime import date, time
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from bepawa.core.exceptions import AuthorizationError, BusinessLogicError, ErrorHandler, NotFoundError, ValidationError
from bepawa.core.permissions import UserRole
from bepawa.domain.appointments.models import Appointment, AppointmentStatus, ProviderType
from bepawa.domain.appointments.repository import AppointmentRepository
from bepawa.domain.notifications.service import NotificationService
from bepawa.domain.profiles.models import Profile
from bepawa.domain.profiles.repository import ProfileRepository

logger = logging.getLogger(__name__)

PROVIDER_ROLES = {
    UserRole.LAB: ProviderType.LAB,
    UserRole.RETAIL: ProviderType.PHARMACY,
}

# Status changes a provider may make
_TRANSITIONS = {
    AppointmentStatus.SCHEDULED: {
        AppointmentStatus.CONFIRMED, AppointmentStatus.IN_PROGRESS,
        AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW,
    },
    AppointmentStatus.CONFIRMED: {
        AppointmentStatus.IN_PROGRESS, AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW,
    },
    AppointmentStatus.IN_PROGRESS: {AppointmentStatus.COMPLETED},
    AppointmentStatus.COMPLETED: set(),
    AppointmentStatus.CANCELLED: set(),
    AppointmentStatus.NO_SHOW: set(),
}


class AppointmentService:
    """Service layer for appointments"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = AppointmentRepository(db)
        self.profiles = ProfileRepository(db)
        self.notifications = NotificationService(db)

    async def book(
        self,
        user: Profile,
        provider_id: str,
        appointment_date: date,
        appointment_time: time,
        service_type: str,
        notes: Optional[str] = None,
    ) -> Appointment:
        """Book an appointment with an approved lab or pharmacy"""
        if appointment_date < date.today():
            raise ValidationError("Appointments cannot be booked in the past")

        provider = await self.profiles.get(provider_id)
        provider_type = PROVIDER_ROLES.get(UserRole.parse(provider.role)) if provider else None
        if provider_type is None or not provider.is_approved:
            raise NotFoundError("Provider not found")

        with ErrorHandler("book appointment"):
            appointment = await self.repo.create({
                "user_id": user.id,
                "provider_id": provider.id,
                "provider_type": provider_type.value,
                "appointment_date": appointment_date,
                "appointment_time": appointment_time,
                "service_type": service_type,
                "notes": notes,
                "status": AppointmentStatus.SCHEDULED.value,
            })

        await self.notifications.notify(
            provider.id,
            "New appointment",
            f"{service_type} booked for {appointment_date.isoformat()} at {appointment_time.strftime('%H:%M')}.",
            action_url=f"/appointments/{appointment.id}",
            metadata={"appointment_id": appointment.id},
        )
        logger.info(f"Appointment {appointment.id} booked with {provider_type.value} {provider.id}")
        return appointment

    async def get(self, appointment_id: str, caller: Profile) -> Appointment:
        with ErrorHandler("fetch appointment"):
            appointment = await self.repo.get(appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        if caller.id not in (appointment.user_id, appointment.provider_id) and \
                UserRole.parse(caller.role) is not UserRole.ADMIN:
            raise NotFoundError("Appointment not found")
        return appointment

    async def list_for_user(self, user: Profile) -> List[Appointment]:
        with ErrorHandler("fetch appointments"):
            return await self.repo.list_for_user(user.id)

    async def list_for_provider(
        self,
        provider: Profile,
        on_date: Optional[date] = None,
        status: Optional[str] = None,
    ) -> List[Appointment]:
        with ErrorHandler("fetch provider appointments"):
            return await self.repo.list_for_provider(provider.id, on_date=on_date, status=status)

    async def update_status(self, appointment_id: str, status: AppointmentStatus, caller: Profile) -> Appointment:
        appointment = await self.get(appointment_id, caller)
        if caller.id != appointment.provider_id:
            raise AuthorizationError("Only the provider can change this appointment's status")

        current = AppointmentStatus(appointment.status)
        status = AppointmentStatus(status)
        if status not in _TRANSITIONS[current]:
            raise BusinessLogicError(f"Cannot move appointment from {current.value} to {status.value}")

        appointment.status = status.value
        with ErrorHandler("update appointment status"):
            await self.db.commit()
            await self.db.refresh(appointment)

        await self.notifications.notify(
            appointment.user_id,
            "Appointment update",
            f"Your {appointment.service_type} appointment is now {status.value.replace('_', ' ')}.",
            type="warning" if status in (AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW) else "info",
            action_url=f"/appointments/{appointment.id}",
        )
        return appointment

    async def record_result(self, appointment_id: str, result: Dict[str, Any], caller: Profile) -> Appointment:
        """Attach a result and complete the appointment"""
        appointment = await self.get(appointment_id, caller)
        if caller.id != appointment.provider_id:
            raise AuthorizationError("Only the provider can record results")
        current = AppointmentStatus(appointment.status)
        if current in (AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW):
            raise BusinessLogicError(f"Cannot record results for a {current.value} appointment")

        appointment.result_payload = dict(result)
        appointment.status = AppointmentStatus.COMPLETED.value
        with ErrorHandler("record appointment result"):
            await self.db.commit()
            await self.db.refresh(appointment)

        await self.notifications.notify(
            appointment.user_id,
            "Results available",
            f"Results for your {appointment.service_type} are ready.",
            type="success",
            action_url=f"/appointments/{appointment.id}",
            metadata={"appointment_id": appointment.id},
        )
        return appointment

    async def cancel(self, appointment_id: str, caller: Profile) -> Appointment:
        """Either party may cancel before the visit starts"""
        appointment = await self.get(appointment_id, caller)
        current = AppointmentStatus(appointment.status)
        if current not in (AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED):
            raise BusinessLogicError(f"Cannot cancel a {current.value} appointment")

        appointment.status = AppointmentStatus.CANCELLED.value
        with ErrorHandler("cancel appointment"):
            await self.db.commit()
            await self.db.refresh(appointment)

        other_party = appointment.provider_id if caller.id == appointment.user_id else appointment.user_id
        await self.notifications.notify(
            other_party,
            "Appointment cancelled",
            f"The {appointment.service_type} appointment on {appointment.appointment_date.isoformat()} was cancelled.",
            type="warning",
            action_url=f"/appointments/{appointment.id}",
        )
        return appointment
