import uuid
from typing import Sequence
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from clinicdesk.core.base import utcnow
from clinicdesk.modules.patients.models import Patient

class PatientRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, org_id: uuid.UUID, **data) -> Patient:
        obj = Patient(org_id=org_id, **data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, org_id: uuid.UUID, patient_id: uuid.UUID) -> Patient | None:
        q = select(Patient).where(
            Patient.id == patient_id,
            Patient.org_id == org_id,
            Patient.deleted_at.is_(None),
        )
        res = await self.session.execute(q)
        return res.scalar_one_or_none()

    async def uhid_exists(self, org_id: uuid.UUID, uhid: str) -> bool:
        q = select(func.count()).select_from(Patient).where(Patient.org_id == org_id, Patient.uhid == uhid)
        return (await self.session.execute(q)).scalar_one() > 0

    async def by_phone(self, org_id: uuid.UUID, phone: str) -> Sequence[Patient]:
        q = select(Patient).where(Patient.org_id == org_id, Patient.phone == phone, Patient.deleted_at.is_(None))
        return (await self.session.execute(q)).scalars().all()

    def _filtered(self, org_id: uuid.UUID, query: str | None, status: str | None):
        q = select(Patient).where(Patient.org_id == org_id, Patient.deleted_at.is_(None))
        if query:
            like = f"%{query.strip().lower()}%"
            q = q.where(or_(
                func.lower(Patient.first_name).like(like),
                func.lower(Patient.last_name).like(like),
                func.lower(Patient.uhid).like(like),
                Patient.phone.like(like),
            ))
        if status:
            q = q.where(Patient.status == status)
        return q

    async def search(self, org_id: uuid.UUID, query: str | None = None, status: str | None = None,
                     limit: int = 20, offset: int = 0) -> tuple[Sequence[Patient], int]:
        base = self._filtered(org_id, query, status)
        total = (await self.session.execute(select(func.count()).select_from(base.subquery()))).scalar_one()
        res = await self.session.execute(base.order_by(Patient.created_at.desc()).limit(limit).offset(offset))
        return res.scalars().all(), total

    async def update(self, org_id: uuid.UUID, patient_id: uuid.UUID, **data) -> Patient | None:
        obj = await self.get(org_id, patient_id)
        if not obj:
            return None
        for k, v in data.items():
            setattr(obj, k, v)
        obj.version = (obj.version or 1) + 1
        await self.session.flush()
        return obj

    async def soft_delete(self, org_id: uuid.UUID, patient_id: uuid.UUID) -> bool:
        obj = await self.get(org_id, patient_id)
        if not obj:
            return False
        obj.deleted_at = utcnow()
        await self.session.flush()
        return True

    async def count_registered(self, org_id: uuid.UUID, since=None, until=None) -> int:
        q = select(func.count()).select_from(Patient).where(Patient.org_id == org_id, Patient.deleted_at.is_(None))
        if since is not None:
            q = q.where(Patient.created_at >= since)
        if until is not None:
            q = q.where(Patient.created_at < until)
        return (await self.session.execute(q)).scalar_one()
