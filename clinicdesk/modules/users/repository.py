import uuid
from typing import Sequence
from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession
from clinicdesk.core.base import utcnow
from clinicdesk.modules.users.models import StaffUser, Invitation

class StaffUserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, org_id: uuid.UUID, **data) -> StaffUser:
        obj = StaffUser(org_id=org_id, **data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get(self, org_id: uuid.UUID, user_id: uuid.UUID) -> StaffUser | None:
        q = select(StaffUser).where(StaffUser.id == user_id, StaffUser.org_id == org_id, StaffUser.deleted_at.is_(None))
        return (await self.session.execute(q)).scalar_one_or_none()

    async def get_by_email(self, org_id: uuid.UUID, email: str) -> StaffUser | None:
        q = select(StaffUser).where(StaffUser.org_id == org_id, StaffUser.email == email.lower(), StaffUser.deleted_at.is_(None))
        return (await self.session.execute(q)).scalar_one_or_none()

    async def list(self, org_id: uuid.UUID, role: str | None = None, active: bool | None = None) -> Sequence[StaffUser]:
        q = select(StaffUser).where(StaffUser.org_id == org_id, StaffUser.deleted_at.is_(None))
        if role:
            q = q.where(StaffUser.role == role)
        if active is not None:
            q = q.where(StaffUser.is_active == active)
        res = await self.session.execute(q.order_by(StaffUser.full_name.asc()))
        return res.scalars().all()

    async def update(self, obj: StaffUser, **data) -> StaffUser:
        for k, v in data.items():
            setattr(obj, k, v)
        obj.version = (obj.version or 1) + 1
        await self.session.flush()
        return obj

class InvitationRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, org_id: uuid.UUID, **data) -> Invitation:
        obj = Invitation(org_id=org_id, **data)
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def by_token(self, token: str) -> Invitation | None:
        q = select(Invitation).where(Invitation.token == token, Invitation.deleted_at.is_(None))
        return (await self.session.execute(q)).scalar_one_or_none()

    async def pending_for(self, org_id: uuid.UUID, email: str) -> Invitation | None:
        q = select(Invitation).where(and_(
            Invitation.org_id == org_id,
            Invitation.email == email.lower(),
            Invitation.accepted_at.is_(None),
            Invitation.expires_at > utcnow(),
            Invitation.deleted_at.is_(None),
        ))
        return (await self.session.execute(q.limit(1))).scalar_one_or_none()

    async def list(self, org_id: uuid.UUID, pending_only: bool = False) -> Sequence[Invitation]:
        q = select(Invitation).where(Invitation.org_id == org_id, Invitation.deleted_at.is_(None))
        if pending_only:
            q = q.where(Invitation.accepted_at.is_(None), Invitation.expires_at > utcnow())
        res = await self.session.execute(q.order_by(Invitation.created_at.desc()))
        return res.scalars().all()
