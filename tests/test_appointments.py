from datetime import date, time, timedelta

import pytest

from bepawa.core.exceptions import AuthorizationError, BusinessLogicError, NotFoundError, ValidationError
from bepawa.core.permissions import UserRole
from bepawa.domain.appointments.models import AppointmentStatus
from bepawa.domain.appointments.service import AppointmentService
from bepawa.domain.notifications.service import NotificationService

TOMORROW = date.today() + timedelta(days=1)


@pytest.mark.asyncio
async def test_book_with_lab_and_record_result(db, make_profile):
    lab = await make_profile(UserRole.LAB)
    patient = await make_profile(UserRole.INDIVIDUAL)
    service = AppointmentService(db)

    appointment = await service.book(patient, lab.id, TOMORROW, time(9, 30), "Full blood count")
    assert appointment.provider_type == "lab"
    assert appointment.status == "scheduled"
    assert await NotificationService(db).unread_count(lab.id) == 1

    confirmed = await service.update_status(appointment.id, AppointmentStatus.CONFIRMED, lab)
    assert confirmed.status == "confirmed"

    done = await service.record_result(appointment.id, {"hb": 13.2, "unit": "g/dL"}, lab)
    assert done.status == "completed"
    assert done.result_payload == {"hb": 13.2, "unit": "g/dL"}

    agenda = await service.list_for_provider(lab, on_date=TOMORROW)
    assert [a.id for a in agenda] == [appointment.id]


@pytest.mark.asyncio
async def test_booking_rules(db, make_profile):
    patient = await make_profile(UserRole.INDIVIDUAL)
    pending_lab = await make_profile(UserRole.LAB, approved=False)
    wholesaler = await make_profile(UserRole.WHOLESALE)
    service = AppointmentService(db)

    with pytest.raises(ValidationError):
        await service.book(patient, wholesaler.id, date.today() - timedelta(days=1), time(9), "Consult")
    with pytest.raises(NotFoundError):
        await service.book(patient, pending_lab.id, TOMORROW, time(9), "Consult")
    with pytest.raises(NotFoundError):
        await service.book(patient, wholesaler.id, TOMORROW, time(9), "Consult")


@pytest.mark.asyncio
async def test_only_provider_changes_status_and_either_party_cancels(db, make_profile):
    pharmacy = await make_profile(UserRole.RETAIL)
    patient = await make_profile(UserRole.INDIVIDUAL)
    stranger = await make_profile(UserRole.INDIVIDUAL)
    service = AppointmentService(db)
    appointment = await service.book(patient, pharmacy.id, TOMORROW, time(14), "Blood pressure check")
    assert appointment.provider_type == "pharmacy"

    with pytest.raises(AuthorizationError):
        await service.update_status(appointment.id, AppointmentStatus.CONFIRMED, patient)
    with pytest.raises(NotFoundError):
        await service.get(appointment.id, stranger)

    cancelled = await service.cancel(appointment.id, patient)
    assert cancelled.status == "cancelled"
    with pytest.raises(BusinessLogicError):
        await service.cancel(appointment.id, pharmacy)
