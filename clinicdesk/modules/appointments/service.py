import uuid
import logging
from datetime import date, datetime, timedelta
from sqlalchemy.ext.asyncio import AsyncSession
from clinicdesk.core.base import utcnow
from clinicdesk.core.roles import Role
from clinicdesk.modules.appointments.repository import AppointmentRepository
from clinicdesk.modules.appointments.models import Appointment
from clinicdesk.modules.appointments.schemas import AppointmentCreate, AppointmentStats, CheckinCreate
from clinicdesk.modules.availability.service import AvailabilityService
from clinicdesk.modules.documents.formatting import format_date, format_time
from clinicdesk.modules.events.outbox import OutboxService
from clinicdesk.modules.notifications.service import NotificationsService
from clinicdesk.modules.patients.repository import PatientRepository
from clinicdesk.modules.tenants.repository import TenantRepository
from clinicdesk.modules.users.repository import StaffUserRepository
from clinicdesk.modules.visits.schemas import VisitCreate
from clinicdesk.modules.visits.service import VisitService, can_transition as visit_can_transition

logger = logging.getLogger(__name__)

VALID_NEXT = {
    "scheduled": {"confirmed", "waiting", "in_progress", "cancelled", "no_show"},
    "confirmed": {"waiting", "in_progress", "cancelled", "no_show"},
    "waiting": {"in_progress", "cancelled", "no_show"},
    "in_progress": {"completed"},
    "completed": set(),
    "cancelled": set(),
    "no_show": set(),
}

CHECKIN_FROM = {"scheduled", "confirmed"}

# appointment status -> status the linked visit follows
VISIT_STATUS_FOR = {
    "in_progress": "in_progress",
    "completed": "completed",
    "cancelled": "cancelled",
    "no_show": "cancelled",
}

def can_transition(current: str, target: str) -> bool:
    return target in VALID_NEXT.get(current, set())

def appointment_window(day: date, start, duration_minutes: int) -> tuple[datetime, datetime] | None:
    start_at = datetime.combine(day, start)
    end_at = start_at + timedelta(minutes=duration_minutes)
    if end_at.date() != day:
        return None
    return start_at, end_at

class AppointmentService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.appts = AppointmentRepository(session)
        self.outbox = OutboxService(session)

    async def create(self, org_id: uuid.UUID, payload: AppointmentCreate, created_by: uuid.UUID | None = None):
        patient = await PatientRepository(self.session).get(org_id, payload.patient_id)
        if not patient:
            return None, "patient_not_found"
        doctor = await StaffUserRepository(self.session).get(org_id, payload.doctor_id)
        if not doctor or doctor.role != Role.DOCTOR.value or not doctor.is_active:
            return None, "doctor_not_found"

        window = appointment_window(payload.appointment_date, payload.start_time, payload.duration_minutes)
        if window is None:
            return None, "invalid_time"
        start_at, end_at = window
        err = await AvailabilityService(self.session).check_slot(org_id, payload.doctor_id, start_at, end_at)
        if err:
            return None, err

        obj = await self.appts.create(
            org_id,
            end_time=end_at.time(),
            status="scheduled",
            created_by=created_by,
            **payload.model_dump(),
        )
        await self.outbox.enqueue(org_id, "appointment.created", "appointment", obj.id, {
            "patient_id": str(obj.patient_id), "doctor_id": str(obj.doctor_id),
            "start": start_at.isoformat(), "end": end_at.isoformat(),
        })

        if patient.email:
            tenant = await TenantRepository(self.session).get(org_id)
            await NotificationsService(self.session).send_template(
                org_id, channel="email", to=patient.email, template="appointment_confirmation",
                variables={
                    "clinic_name": tenant.name if tenant else "",
                    "patient_name": patient.full_name,
                    "doctor_name": doctor.full_name,
                    "date": format_date(payload.appointment_date),
                    "time": format_time(payload.start_time),
                },
                commit=False,
            )
        await self.session.commit()
        logger.info("Booked appointment %s for doctor %s at %s", obj.id, obj.doctor_id, start_at)
        return obj, None

    async def get(self, org_id: uuid.UUID, appt_id: uuid.UUID) -> Appointment | None:
        return await self.appts.get(org_id, appt_id)

    async def list(self, org_id: uuid.UUID, **filters):
        return await self.appts.list(org_id, **filters)

    async def change_status(self, org_id: uuid.UUID, appt_id: uuid.UUID, target: str, cancel_reason: str | None = None):
        appt = await self.appts.get(org_id, appt_id)
        if not appt:
            return None, "not_found"
        if not can_transition(appt.status, target):
            return None, "invalid_transition"
        if target == "waiting":
            return None, "use_checkin"
        previous = appt.status
        data = {"status": target}
        if target == "cancelled":
            data["cancel_reason"] = cancel_reason
        await self.appts.update(appt, **data)

        visit_target = VISIT_STATUS_FOR.get(target)
        if appt.visit_id and visit_target:
            visits = VisitService(self.session)
            visit = await visits.get(org_id, appt.visit_id)
            if visit and visit_can_transition(visit.status, visit_target):
                await visits.change_status(org_id, visit.id, visit_target, commit=False)

        await self.outbox.enqueue(org_id, f"appointment.{target}", "appointment", appt.id, {"from": previous, "to": target})
        await self.session.commit()
        return appt, None

    async def check_in(self, org_id: uuid.UUID, appt_id: uuid.UUID, payload: CheckinCreate, actor: uuid.UUID | None = None):
        appt = await self.appts.get(org_id, appt_id)
        if not appt:
            return None, "not_found"
        if appt.visit_id:
            return None, "visit_exists"
        if appt.status not in CHECKIN_FROM:
            return None, "invalid_transition"

        visit, err = await VisitService(self.session).create(org_id, VisitCreate(
            patient_id=appt.patient_id,
            doctor_id=appt.doctor_id,
            visit_date=appt.appointment_date,
            visit_time=appt.start_time,
            visit_type="follow_up" if appt.appointment_type == "follow_up" else "new",
            consultation_fee=payload.consultation_fee,
            chief_complaints=payload.chief_complaints or appt.reason,
            appointment_id=appt.id,
        ), created_by=actor, commit=False)
        if err:
            await self.session.rollback()
            return None, err

        await self.appts.update(appt, status="waiting", checked_in_at=utcnow(), visit_id=visit.id)
        await self.outbox.enqueue(org_id, "appointment.checked_in", "appointment", appt.id, {"visit_id": str(visit.id)})
        await self.session.commit()
        return appt, None

    async def stats(self, org_id: uuid.UUID, day: date | None = None, doctor_id: uuid.UUID | None = None) -> AppointmentStats:
        appts = await self.appts.on_date(org_id, day or date.today(), doctor_id=doctor_id)
        out = AppointmentStats(today=len(appts))
        for a in appts:
            key = "engaged" if a.status == "in_progress" else a.status
            if hasattr(out, key):
                setattr(out, key, getattr(out, key) + 1)
        return out
