import uuid
from datetime import date
from typing import Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_
from clinicdesk.modules.appointments.models import Appointment

# states that still occupy the doctor's time
ACTIVE_STATUSES = ("scheduled", "confirmed", "waiting", "in_progress", "completed")

class AppointmentRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, org_id: uuid.UUID, **data) -> Appointment:
        obj = Appointment(org_id=org_id, **data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, org_id: uuid.UUID, appt_id: uuid.UUID) -> Appointment | None:
        q = select(Appointment).where(
            and_(Appointment.id == appt_id,
                 Appointment.org_id == org_id,
                 Appointment.deleted_at.is_(None))
        )
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def list(self, org_id: uuid.UUID, *, status: str | None = None, patient_id: uuid.UUID | None = None,
                   doctor_id: uuid.UUID | None = None, date_from: date | None = None, date_to: date | None = None,
                   limit: int = 50, offset: int = 0) -> Sequence[Appointment]:
        cond = [Appointment.org_id == org_id, Appointment.deleted_at.is_(None)]
        if status:
            cond.append(Appointment.status == status)
        if patient_id:
            cond.append(Appointment.patient_id == patient_id)
        if doctor_id:
            cond.append(Appointment.doctor_id == doctor_id)
        if date_from:
            cond.append(Appointment.appointment_date >= date_from)
        if date_to:
            cond.append(Appointment.appointment_date <= date_to)
        q = (select(Appointment).where(and_(*cond))
             .order_by(Appointment.appointment_date.asc(), Appointment.start_time.asc())
             .limit(limit).offset(offset))
        res = await self.session.execute(q)
        return res.scalars().all()

    async def booked_for_doctor(self, org_id: uuid.UUID, doctor_id: uuid.UUID, date_from: date, date_to: date) -> Sequence[Appointment]:
        q = select(Appointment).where(and_(
            Appointment.org_id == org_id,
            Appointment.doctor_id == doctor_id,
            Appointment.deleted_at.is_(None),
            Appointment.status.in_(ACTIVE_STATUSES),
            Appointment.appointment_date >= date_from,
            Appointment.appointment_date <= date_to,
        ))
        res = await self.session.execute(q)
        return res.scalars().all()

    async def on_date(self, org_id: uuid.UUID, day: date, doctor_id: uuid.UUID | None = None) -> Sequence[Appointment]:
        return await self.list(org_id, doctor_id=doctor_id, date_from=day, date_to=day, limit=1000)

    async def update(self, obj: Appointment, **data) -> Appointment:
        for k, v in data.items():
            setattr(obj, k, v)
        obj.version = (obj.version or 1) + 1
        await self.session.flush()
        return obj
