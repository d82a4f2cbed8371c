import uuid
import secrets
import logging
from datetime import date, datetime
from sqlalchemy.ext.asyncio import AsyncSession
from clinicdesk.core.base import utcnow
from clinicdesk.modules.events.outbox import OutboxService
from clinicdesk.modules.patients.repository import PatientRepository
from clinicdesk.modules.patients.schemas import PatientCreate, PatientUpdate
from clinicdesk.modules.patients.models import Patient

log = logging.getLogger(__name__)

def generate_uhid(now: datetime, suffix: int) -> str:
    return f"P-{now:%Y%m%d}-{now:%H%M%S}-{suffix:03d}"

def age_from_dob(dob: date, today: date | None = None) -> int:
    today = today or date.today()
    years = today.year - dob.year
    if (today.month, today.day) < (dob.month, dob.day):
        years -= 1
    return max(years, 0)

class PatientService:
    def __init__(self, session: AsyncSession):
        self.repo = PatientRepository(session)
        self.outbox = OutboxService(session)
        self.session = session

    async def _new_uhid(self, org_id: uuid.UUID) -> str:
        now = utcnow()
        for _ in range(10):
            uhid = generate_uhid(now, secrets.randbelow(1000))
            if not await self.repo.uhid_exists(org_id, uhid):
                return uhid
        raise RuntimeError("could not allocate a unique UHID")

    async def create(self, org_id: uuid.UUID, payload: PatientCreate) -> Patient:
        data = payload.model_dump(exclude_unset=True, mode="json")
        data["date_of_birth"] = payload.date_of_birth
        if payload.date_of_birth and payload.age is None:
            data["age"] = age_from_dob(payload.date_of_birth)
        if payload.registration_fee_paid:
            data["registration_payment_date"] = utcnow()
        obj = await self.repo.create(org_id, uhid=await self._new_uhid(org_id), **data)
        await self.outbox.enqueue(org_id, "patient.registered", "patient", obj.id, {"uhid": obj.uhid})
        await self.session.commit()
        log.info("Registered patient %s", obj.uhid)
        return obj

    async def get(self, org_id: uuid.UUID, patient_id: uuid.UUID) -> Patient | None:
        return await self.repo.get(org_id, patient_id)

    async def search(self, org_id: uuid.UUID, query: str | None = None, status: str | None = None, limit: int = 20, offset: int = 0):
        return await self.repo.search(org_id, query=query, status=status, limit=limit, offset=offset)

    async def find_by_phone(self, org_id: uuid.UUID, phone: str):
        return await self.repo.by_phone(org_id, phone)

    async def update(self, org_id: uuid.UUID, patient_id: uuid.UUID, payload: PatientUpdate) -> Patient | None:
        current = await self.repo.get(org_id, patient_id)
        if not current:
            return None
        data = payload.model_dump(exclude_unset=True, mode="json")
        if "date_of_birth" in data:
            data["date_of_birth"] = payload.date_of_birth
            if payload.date_of_birth and "age" not in data:
                data["age"] = age_from_dob(payload.date_of_birth)
        if data.get("registration_fee_paid") and not current.registration_fee_paid:
            data["registration_payment_date"] = utcnow()
        obj = await self.repo.update(org_id, patient_id, **data)
        await self.session.commit()
        return obj

    async def delete(self, org_id: uuid.UUID, patient_id: uuid.UUID) -> bool:
        ok = await self.repo.soft_delete(org_id, patient_id)
        if ok:
            await self.session.commit()
        return ok
