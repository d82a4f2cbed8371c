import re
import uuid
import logging
from sqlalchemy.ext.asyncio import AsyncSession
from clinicdesk.core.roles import Role
from clinicdesk.modules.documents.schemas import AddressBlock, ClinicIdentity
from clinicdesk.modules.events.outbox import OutboxService
from clinicdesk.modules.tenants.models import Tenant
from clinicdesk.modules.tenants.repository import TenantRepository
from clinicdesk.modules.tenants.schemas import TenantCreate, TenantUpdate

log = logging.getLogger(__name__)

def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug[:64] or "clinic"

def clinic_identity(tenant: Tenant | None) -> ClinicIdentity:
    if tenant is None:
        return ClinicIdentity(name="Clinic")
    opts = tenant.settings or {}
    return ClinicIdentity(
        name=tenant.name,
        registration_number=tenant.registration_number,
        address=AddressBlock(**tenant.address) if tenant.address else None,
        phone=tenant.phone,
        email=tenant.email,
        timing=opts.get("clinic_timing"),
        closed_days=opts.get("closed_days"),
    )

class TenantService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = TenantRepository(session)
        self.outbox = OutboxService(session)

    async def get(self, org_id: uuid.UUID) -> Tenant | None:
        return await self.repo.get(org_id)

    async def setup(self, org_id: uuid.UUID, owner_id: uuid.UUID, owner_name: str | None, owner_email: str | None, payload: TenantCreate):
        """Create the clinic for an org and register the caller as its first admin."""
        if await self.repo.get(org_id):
            return None, "exists"
        data = payload.model_dump(exclude_unset=True, mode="json")
        slug = data.pop("slug", None) or slugify(payload.name)
        if await self.repo.get_by_slug(slug):
            return None, "slug_taken"
        tenant = await self.repo.create(org_id, slug=slug, **data)

        if owner_email:
            from clinicdesk.modules.users.repository import StaffUserRepository
            users = StaffUserRepository(self.session)
            if not await users.get(org_id, owner_id):
                await users.create(org_id, id=owner_id, full_name=owner_name or owner_email, email=owner_email.lower(), role=Role.ADMIN.value)

        await self.outbox.enqueue(org_id, "tenant.created", "tenant", tenant.id, {"name": tenant.name, "slug": tenant.slug})
        await self.session.commit()
        log.info("Clinic %s created for org %s", tenant.slug, org_id)
        return tenant, None

    async def update(self, org_id: uuid.UUID, payload: TenantUpdate) -> Tenant | None:
        tenant = await self.repo.get(org_id)
        if not tenant:
            return None
        data = payload.model_dump(exclude_unset=True, mode="json")
        if "settings" in data and data["settings"] is not None:
            data["settings"] = {**(tenant.settings or {}), **data["settings"]}
        await self.repo.update(tenant, **data)
        await self.outbox.enqueue(org_id, "tenant.updated", "tenant", tenant.id, {"fields": sorted(data)})
        await self.session.commit()
        return tenant

    async def clinic_identity(self, org_id: uuid.UUID) -> ClinicIdentity:
        return clinic_identity(await self.repo.get(org_id))
