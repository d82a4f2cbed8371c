import uuid
import logging
from datetime import date
from sqlalchemy.ext.asyncio import AsyncSession
from clinicdesk.core.base import utcnow
from clinicdesk.core.roles import Role
from clinicdesk.modules.appointments.repository import AppointmentRepository
from clinicdesk.modules.events.outbox import OutboxService
from clinicdesk.modules.patients.repository import PatientRepository
from clinicdesk.modules.tenants.repository import TenantRepository
from clinicdesk.modules.users.repository import StaffUserRepository
from clinicdesk.modules.visits.clinical import compute_bmi, total_quantity
from clinicdesk.modules.visits.models import Visit, VitalsSnapshot
from clinicdesk.modules.visits.repository import VisitRepository, PrescriptionRepository, VitalsRepository
from clinicdesk.modules.visits.schemas import ConsultationIn, PrescriptionIn, VisitCreate, VisitStatistics, VisitUpdate, VitalsIn

log = logging.getLogger(__name__)

VALID_NEXT = {
    "scheduled": {"in_progress", "cancelled"},
    "in_progress": {"completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
}

ARCHIVABLE = {"completed", "cancelled"}

CLINICAL_FIELDS = (
    "chief_complaints",
    "history_of_present_illness",
    "physical_examination",
    "diagnosis",
    "treatment_plan",
    "general_advice",
    "follow_up_date",
    "follow_up_instructions",
)

def can_transition(current: str, target: str) -> bool:
    return target in VALID_NEXT.get(current, set())

def visit_number_prefix(day: date) -> str:
    return f"V-{day:%Y%m%d}-"

def prescription_row(item: PrescriptionIn) -> dict:
    data = item.model_dump()
    data["total_quantity"] = total_quantity(item.frequency_times, item.duration_days)
    return data

class VisitService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = VisitRepository(session)
        self.prescriptions = PrescriptionRepository(session)
        self.vitals = VitalsRepository(session)
        self.outbox = OutboxService(session)

    async def _next_visit_number(self, org_id: uuid.UUID, day: date) -> str:
        prefix = visit_number_prefix(day)
        n = await self.repo.count_numbered_on(org_id, prefix)
        return f"{prefix}{n + 1:04d}"

    async def _default_fee(self, org_id: uuid.UUID) -> float:
        tenant = await TenantRepository(self.session).get(org_id)
        return float(((tenant.settings or {}) if tenant else {}).get("consultation_fee") or 0)

    async def create(self, org_id: uuid.UUID, payload: VisitCreate, created_by: uuid.UUID | None = None, commit: bool = True):
        if not await PatientRepository(self.session).get(org_id, payload.patient_id):
            return None, "patient_not_found"
        doctor = await StaffUserRepository(self.session).get(org_id, payload.doctor_id)
        if not doctor or doctor.role != Role.DOCTOR.value or not doctor.is_active:
            return None, "doctor_not_found"

        data = payload.model_dump(exclude_unset=True)
        if payload.consultation_fee is None:
            data["consultation_fee"] = await self._default_fee(org_id)
        obj = await self.repo.create(
            org_id,
            visit_number=await self._next_visit_number(org_id, payload.visit_date),
            status="scheduled",
            consultation_fee_paid=False,
            created_by=created_by,
            **data,
        )
        await self.outbox.enqueue(org_id, "visit.created", "visit", obj.id, {"visit_number": obj.visit_number, "patient_id": str(obj.patient_id)})
        if commit:
            await self.session.commit()
        log.info("Created visit %s", obj.visit_number)
        return obj, None

    async def get(self, org_id: uuid.UUID, visit_id: uuid.UUID) -> Visit | None:
        return await self.repo.get(org_id, visit_id)

    async def search(self, org_id: uuid.UUID, **kwargs):
        return await self.repo.search(org_id, **kwargs)

    async def today(self, org_id: uuid.UUID, doctor_id: uuid.UUID | None = None, day: date | None = None):
        return await self.repo.on_date(org_id, day or date.today(), doctor_id=doctor_id)

    async def _editable(self, org_id: uuid.UUID, visit_id: uuid.UUID):
        obj = await self.repo.get(org_id, visit_id)
        if not obj:
            return None, "not_found"
        if obj.archived_at is not None:
            return None, "archived"
        return obj, None

    async def update(self, org_id: uuid.UUID, visit_id: uuid.UUID, payload: VisitUpdate):
        obj, err = await self._editable(org_id, visit_id)
        if err:
            return None, err
        data = payload.model_dump(exclude_unset=True)
        if "doctor_id" in data:
            doctor = await StaffUserRepository(self.session).get(org_id, data["doctor_id"])
            if not doctor or doctor.role != Role.DOCTOR.value:
                return None, "doctor_not_found"
        await self.repo.update(obj, **data)
        await self.session.commit()
        return obj, None

    async def _sync_appointment(self, visit: Visit) -> None:
        if not visit.appointment_id:
            return
        appts = AppointmentRepository(self.session)
        appt = await appts.get(visit.org_id, visit.appointment_id)
        if appt and appt.status not in ("completed", "cancelled", "no_show"):
            mapped = {"in_progress": "in_progress", "completed": "completed", "cancelled": "cancelled"}.get(visit.status)
            if mapped and mapped != appt.status:
                await appts.update(appt, status=mapped)

    async def change_status(self, org_id: uuid.UUID, visit_id: uuid.UUID, target: str, notes: str | None = None, commit: bool = True):
        obj, err = await self._editable(org_id, visit_id)
        if err:
            return None, err
        if not can_transition(obj.status, target):
            return None, "invalid_transition"
        previous = obj.status
        data = {"status": target}
        if notes:
            data["notes"] = notes
        await self.repo.update(obj, **data)
        await self._sync_appointment(obj)
        await self.outbox.enqueue(org_id, f"visit.{target}", "visit", obj.id, {"from": previous, "to": target})
        if commit:
            await self.session.commit()
        return obj, None

    async def set_payment(self, org_id: uuid.UUID, visit_id: uuid.UUID, paid: bool):
        obj, err = await self._editable(org_id, visit_id)
        if err:
            return None, err
        await self.repo.update(obj, consultation_fee_paid=paid, consultation_payment_date=utcnow() if paid else None)
        await self.outbox.enqueue(org_id, "visit.payment_updated", "visit", obj.id, {"paid": paid, "amount": obj.consultation_fee})
        await self.session.commit()
        return obj, None

    async def save_consultation(self, org_id: uuid.UUID, visit_id: uuid.UUID, payload: ConsultationIn):
        obj, err = await self._editable(org_id, visit_id)
        if err:
            return None, err
        if obj.status == "cancelled":
            return None, "cancelled"

        fields = payload.model_dump(include=set(CLINICAL_FIELDS), exclude_unset=True)
        await self.repo.update(obj, **fields)
        if payload.prescriptions is not None:
            await self.prescriptions.replace(org_id, obj.id, [prescription_row(p) for p in payload.prescriptions])

        if obj.status == "scheduled":
            await self.repo.update(obj, status="in_progress")
        if payload.complete and obj.status == "in_progress":
            await self.repo.update(obj, status="completed")
            await self.outbox.enqueue(org_id, "visit.completed", "visit", obj.id, {"from": "in_progress", "to": "completed"})
        await self._sync_appointment(obj)
        await self.session.commit()
        return obj, None

    async def list_prescriptions(self, org_id: uuid.UUID, visit_id: uuid.UUID):
        if not await self.repo.get(org_id, visit_id):
            return None
        return await self.prescriptions.for_visit(org_id, visit_id)

    async def clear_prescriptions(self, org_id: uuid.UUID, visit_id: uuid.UUID):
        obj, err = await self._editable(org_id, visit_id)
        if err:
            return None, err
        removed = await self.prescriptions.clear(org_id, obj.id)
        await self.session.commit()
        return removed, None

    async def record_vitals(self, org_id: uuid.UUID, visit_id: uuid.UUID, payload: VitalsIn, recorded_by: uuid.UUID | None = None):
        obj, err = await self._editable(org_id, visit_id)
        if err:
            return None, err
        if await self.vitals.for_visit(org_id, obj.id):
            return None, "vitals_exist"
        data = payload.model_dump(exclude_unset=True)
        snap = await self.vitals.create(
            org_id,
            visit_id=obj.id,
            patient_id=obj.patient_id,
            bmi=compute_bmi(payload.height_cm, payload.weight_kg),
            recorded_at=utcnow(),
            recorded_by=recorded_by,
            **data,
        )
        await self.outbox.enqueue(org_id, "visit.vitals_recorded", "visit", obj.id, {"vitals_id": str(snap.id)})
        await self.session.commit()
        return snap, None

    async def get_vitals(self, org_id: uuid.UUID, visit_id: uuid.UUID) -> VitalsSnapshot | None:
        return await self.vitals.for_visit(org_id, visit_id)

    async def archive(self, org_id: uuid.UUID, visit_id: uuid.UUID):
        obj, err = await self._editable(org_id, visit_id)
        if err:
            return None, err
        if obj.status not in ARCHIVABLE:
            return None, "not_closed"
        await self.repo.update(obj, archived_at=utcnow())
        await self.outbox.enqueue(org_id, "visit.archived", "visit", obj.id, {"status": obj.status})
        await self.session.commit()
        return obj, None

    async def statistics(self, org_id: uuid.UUID, date_from: date | None = None, date_to: date | None = None) -> VisitStatistics:
        visits = await self.repo.in_range(org_id, date_from, date_to)
        stats = VisitStatistics(total_visits=len(visits))
        for v in visits:
            if v.status in VALID_NEXT:
                setattr(stats, v.status, getattr(stats, v.status) + 1)
            if v.consultation_fee_paid:
                stats.total_revenue += float(v.consultation_fee or 0)
            else:
                stats.pending_payments += 1
        return stats
