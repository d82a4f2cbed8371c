import uuid
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from clinicdesk.modules.tenants.models import Tenant

class TenantRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, org_id: uuid.UUID) -> Tenant | None:
        res = await self.session.execute(select(Tenant).where(Tenant.id == org_id, Tenant.deleted_at.is_(None)))
        return res.scalar_one_or_none()

    async def get_by_slug(self, slug: str) -> Tenant | None:
        res = await self.session.execute(select(Tenant).where(Tenant.slug == slug))
        return res.scalar_one_or_none()

    async def create(self, org_id: uuid.UUID, **data) -> Tenant:
        obj = Tenant(id=org_id, org_id=org_id, **data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def update(self, obj: Tenant, **data) -> Tenant:
        for k, v in data.items():
            setattr(obj, k, v)
        obj.version = (obj.version or 1) + 1
        await self.session.flush()
        return obj
