import uuid
from datetime import date
from typing import Sequence
from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession
from clinicdesk.modules.visits.models import Visit, PrescriptionItem, VitalsSnapshot

class VisitRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, org_id: uuid.UUID, **data) -> Visit:
        obj = Visit(org_id=org_id, **data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, org_id: uuid.UUID, visit_id: uuid.UUID) -> Visit | None:
        q = select(Visit).where(Visit.id == visit_id, Visit.org_id == org_id, Visit.deleted_at.is_(None))
        return (await self.session.execute(q)).scalar_one_or_none()

    async def by_appointment(self, org_id: uuid.UUID, appointment_id: uuid.UUID) -> Visit | None:
        q = select(Visit).where(Visit.org_id == org_id, Visit.appointment_id == appointment_id, Visit.deleted_at.is_(None))
        return (await self.session.execute(q.limit(1))).scalar_one_or_none()

    async def count_numbered_on(self, org_id: uuid.UUID, prefix: str) -> int:
        q = select(func.count()).select_from(Visit).where(Visit.org_id == org_id, Visit.visit_number.like(f"{prefix}%"))
        return (await self.session.execute(q)).scalar_one()

    def _filtered(self, org_id: uuid.UUID, *, patient_id=None, doctor_id=None, status=None, date_from=None, date_to=None):
        q = select(Visit).where(Visit.org_id == org_id, Visit.deleted_at.is_(None))
        if patient_id:
            q = q.where(Visit.patient_id == patient_id)
        if doctor_id:
            q = q.where(Visit.doctor_id == doctor_id)
        if status:
            q = q.where(Visit.status == status)
        if date_from:
            q = q.where(Visit.visit_date >= date_from)
        if date_to:
            q = q.where(Visit.visit_date <= date_to)
        return q

    async def search(self, org_id: uuid.UUID, *, limit: int = 20, offset: int = 0, **filters) -> tuple[Sequence[Visit], int]:
        base = self._filtered(org_id, **filters)
        total = (await self.session.execute(select(func.count()).select_from(base.subquery()))).scalar_one()
        q = base.order_by(Visit.visit_date.desc(), Visit.visit_time.desc()).limit(limit).offset(offset)
        return (await self.session.execute(q)).scalars().all(), total

    async def on_date(self, org_id: uuid.UUID, day: date, doctor_id: uuid.UUID | None = None) -> Sequence[Visit]:
        q = self._filtered(org_id, doctor_id=doctor_id, date_from=day, date_to=day).order_by(Visit.visit_time.asc())
        return (await self.session.execute(q)).scalars().all()

    async def in_range(self, org_id: uuid.UUID, date_from: date | None = None, date_to: date | None = None) -> Sequence[Visit]:
        q = self._filtered(org_id, date_from=date_from, date_to=date_to)
        return (await self.session.execute(q)).scalars().all()

    async def update(self, obj: Visit, **data) -> Visit:
        for k, v in data.items():
            setattr(obj, k, v)
        obj.version = (obj.version or 1) + 1
        await self.session.flush()
        return obj

class PrescriptionRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def for_visit(self, org_id: uuid.UUID, visit_id: uuid.UUID) -> Sequence[PrescriptionItem]:
        q = select(PrescriptionItem).where(
            PrescriptionItem.org_id == org_id,
            PrescriptionItem.visit_id == visit_id,
            PrescriptionItem.deleted_at.is_(None),
        ).order_by(PrescriptionItem.position.asc())
        return (await self.session.execute(q)).scalars().all()

    async def clear(self, org_id: uuid.UUID, visit_id: uuid.UUID) -> int:
        res = await self.session.execute(
            delete(PrescriptionItem).where(PrescriptionItem.org_id == org_id, PrescriptionItem.visit_id == visit_id)
        )
        await self.session.flush()
        return res.rowcount or 0

    async def replace(self, org_id: uuid.UUID, visit_id: uuid.UUID, items: list[dict]) -> list[PrescriptionItem]:
        await self.clear(org_id, visit_id)
        rows = [PrescriptionItem(org_id=org_id, visit_id=visit_id, position=i, **item) for i, item in enumerate(items)]
        self.session.add_all(rows)
        await self.session.flush()
        return rows

class VitalsRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def for_visit(self, org_id: uuid.UUID, visit_id: uuid.UUID) -> VitalsSnapshot | None:
        q = select(VitalsSnapshot).where(
            VitalsSnapshot.org_id == org_id,
            VitalsSnapshot.visit_id == visit_id,
            VitalsSnapshot.deleted_at.is_(None),
        )
        return (await self.session.execute(q)).scalar_one_or_none()

    async def create(self, org_id: uuid.UUID, **data) -> VitalsSnapshot:
        obj = VitalsSnapshot(org_id=org_id, **data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def history(self, org_id: uuid.UUID, patient_id: uuid.UUID, limit: int = 20) -> Sequence[VitalsSnapshot]:
        q = select(VitalsSnapshot).where(
            VitalsSnapshot.org_id == org_id,
            VitalsSnapshot.patient_id == patient_id,
            VitalsSnapshot.deleted_at.is_(None),
        ).order_by(VitalsSnapshot.recorded_at.desc()).limit(limit)
        return (await self.session.execute(q)).scalars().all()
