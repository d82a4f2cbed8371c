import uuid
from typing import Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from clinicdesk.modules.availability.models import DoctorSchedule

class AvailabilityRepository:
    def __init__(self, s: AsyncSession): self.s = s

    async def create_schedule(self, org: uuid.UUID, **data) -> DoctorSchedule:
        obj = DoctorSchedule(org_id=org, **data); self.s.add(obj); await self.s.flush(); return obj

    async def list_schedules(self, org: uuid.UUID, doctor_id: uuid.UUID | None = None, active_only: bool = True) -> Sequence[DoctorSchedule]:
        q = select(DoctorSchedule).where(DoctorSchedule.org_id == org, DoctorSchedule.deleted_at.is_(None))
        if doctor_id:
            q = q.where(DoctorSchedule.doctor_id == doctor_id)
        if active_only:
            q = q.where(DoctorSchedule.active.is_(True))
        res = await self.s.execute(q.order_by(DoctorSchedule.day_of_week, DoctorSchedule.start_minute))
        return res.scalars().all()

    async def get_schedule(self, org: uuid.UUID, schedule_id: uuid.UUID) -> DoctorSchedule | None:
        res = await self.s.execute(select(DoctorSchedule).where(
            DoctorSchedule.org_id == org, DoctorSchedule.id == schedule_id, DoctorSchedule.deleted_at.is_(None)
        ))
        return res.scalar_one_or_none()
