import uuid
import secrets
import logging
from datetime import timedelta
from sqlalchemy.ext.asyncio import AsyncSession
from clinicdesk.core.base import utcnow, as_utc
from clinicdesk.core.config import settings
from clinicdesk.core.roles import Capability, Role
from clinicdesk.core.security import Principal
from clinicdesk.modules.audit.service import AuditService
from clinicdesk.modules.events.outbox import OutboxService
from clinicdesk.modules.notifications.service import NotificationsService
from clinicdesk.modules.tenants.repository import TenantRepository
from clinicdesk.modules.users.models import Invitation, StaffUser
from clinicdesk.modules.users.repository import InvitationRepository, StaffUserRepository
from clinicdesk.modules.users.schemas import InvitationAccept, InvitationCreate, StaffUserUpdate

log = logging.getLogger(__name__)

def accept_url(token: str) -> str:
    return f"{settings.APP_BASE_URL.rstrip('/')}/signup?invitation={token}"

def can_assign(actor: Principal, role: Role) -> bool:
    caps = actor.capabilities
    if Capability.MANAGE_USERS not in caps:
        return False
    if role == Role.ADMIN:
        return Capability.ASSIGN_ADMIN_ROLE in caps
    return True

class UserService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.users = StaffUserRepository(session)
        self.invitations = InvitationRepository(session)
        self.outbox = OutboxService(session)
        self.audit = AuditService(session)

    async def list(self, org_id: uuid.UUID, role: str | None = None, active: bool | None = None):
        return await self.users.list(org_id, role=role, active=active)

    async def get(self, org_id: uuid.UUID, user_id: uuid.UUID) -> StaffUser | None:
        return await self.users.get(org_id, user_id)

    async def update_profile(self, org_id: uuid.UUID, user_id: uuid.UUID, payload: StaffUserUpdate) -> StaffUser | None:
        obj = await self.users.get(org_id, user_id)
        if not obj:
            return None
        await self.users.update(obj, **payload.model_dump(exclude_unset=True))
        await self.session.commit()
        return obj

    async def change_role(self, actor: Principal, user_id: uuid.UUID, role: Role):
        obj = await self.users.get(actor.org_id, user_id)
        if not obj:
            return None, "not_found"
        # only an admin may grant admin or touch an existing admin
        if not can_assign(actor, role) or (obj.role == Role.ADMIN.value and Capability.ASSIGN_ADMIN_ROLE not in actor.capabilities):
            return None, "forbidden"
        if obj.id == actor.user_id and role != Role.ADMIN and obj.role == Role.ADMIN.value:
            return None, "self_demotion"
        previous = obj.role
        await self.users.update(obj, role=role.value)
        await self.outbox.enqueue(actor.org_id, "staff.role_changed", "staffuser", obj.id, {"from": previous, "to": role.value})
        await self.audit.log(actor.org_id, actor.user_id, "admin", "staffuser", obj.id, purpose=f"role:{previous}->{role.value}", commit=False)
        await self.session.commit()
        return obj, None

    async def set_active(self, actor: Principal, user_id: uuid.UUID, is_active: bool):
        obj = await self.users.get(actor.org_id, user_id)
        if not obj:
            return None, "not_found"
        if obj.id == actor.user_id and not is_active:
            return None, "self_deactivation"
        if obj.role == Role.ADMIN.value and Capability.ASSIGN_ADMIN_ROLE not in actor.capabilities:
            return None, "forbidden"
        await self.users.update(obj, is_active=is_active)
        await self.audit.log(actor.org_id, actor.user_id, "admin", "staffuser", obj.id, purpose="activate" if is_active else "deactivate", commit=False)
        await self.session.commit()
        return obj, None

    # ---- invitations ----

    async def invite(self, actor: Principal, payload: InvitationCreate):
        if not can_assign(actor, payload.role):
            return None, "forbidden"
        email = payload.email.lower()
        if await self.users.get_by_email(actor.org_id, email):
            return None, "already_member"
        if await self.invitations.pending_for(actor.org_id, email):
            return None, "pending_exists"

        inv = await self.invitations.create(
            actor.org_id,
            email=email,
            role=payload.role.value,
            token=secrets.token_urlsafe(32),
            invited_by=actor.user_id,
            expires_at=utcnow() + timedelta(hours=settings.INVITATION_TTL_HOURS),
        )

        tenant = await TenantRepository(self.session).get(actor.org_id)
        inviter = await self.users.get(actor.org_id, actor.user_id)
        await NotificationsService(self.session).send_template(
            actor.org_id,
            channel="email",
            to=email,
            template="staff_invitation",
            variables={
                "clinic_name": tenant.name if tenant else "the clinic",
                "inviter_name": inviter.full_name if inviter else "An administrator",
                "role": payload.role.value,
                "accept_url": accept_url(inv.token),
                "expires_at": as_utc(inv.expires_at).strftime("%Y-%m-%d %H:%M UTC"),
            },
            commit=False,
        )
        await self.outbox.enqueue(actor.org_id, "staff.invited", "invitation", inv.id, {"email": email, "role": inv.role})
        await self.session.commit()
        log.info("Invitation %s issued for role %s", inv.id, inv.role)
        return inv, None

    async def list_invitations(self, org_id: uuid.UUID, pending_only: bool = False):
        return await self.invitations.list(org_id, pending_only=pending_only)

    async def lookup(self, token: str):
        """Resolve a token to a usable invitation or an error code (not_found, used, expired)."""
        inv = await self.invitations.by_token(token)
        if not inv:
            return None, "not_found"
        if inv.accepted_at is not None:
            return None, "used"
        if as_utc(inv.expires_at) <= utcnow():
            return None, "expired"
        return inv, None

    async def accept(self, token: str, payload: InvitationAccept):
        inv, err = await self.lookup(token)
        if err:
            return None, err
        if await self.users.get_by_email(inv.org_id, inv.email):
            return None, "used"

        user = await self.users.create(
            inv.org_id,
            full_name=payload.full_name,
            email=inv.email,
            role=inv.role,
            phone=payload.phone,
            registration_number=payload.registration_number,
            specialization=payload.specialization,
        )
        inv.accepted_at = utcnow()
        inv.accepted_user_id = user.id
        await self.outbox.enqueue(inv.org_id, "staff.joined", "staffuser", user.id, {"role": user.role, "invitation_id": str(inv.id)})
        await self.session.commit()
        return user, None