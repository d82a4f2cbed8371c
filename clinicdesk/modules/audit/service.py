import uuid
from typing import Sequence
from fastapi import Request
from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession
from clinicdesk.modules.audit.models import AuditEvent

class AuditService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def log(self,
                  org_id: uuid.UUID,
                  actor_user_id: uuid.UUID,
                  action: str,
                  resource_type: str,
                  resource_id: str | uuid.UUID,
                  purpose: str | None = None,
                  request: Request | None = None,
                  success: bool = True,
                  commit: bool = True) -> AuditEvent:
        ev = AuditEvent(
            org_id=org_id,
            actor_user_id=actor_user_id,
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id),
            purpose=purpose,
            success=success,
            client_ip=(request.client.host if request and request.client else None),
            user_agent=(request.headers.get("user-agent") if request else None),
        )
        self.session.add(ev)
        if commit:
            await self.session.commit()
        else:
            await self.session.flush()
        return ev

    async def list(self, org_id: uuid.UUID, *, resource_type: str | None = None, resource_id: str | None = None, limit: int = 50) -> Sequence[AuditEvent]:
        q = select(AuditEvent).where(AuditEvent.org_id == org_id, AuditEvent.deleted_at.is_(None))
        if resource_type:
            q = q.where(AuditEvent.resource_type == resource_type)
        if resource_id:
            q = q.where(AuditEvent.resource_id == resource_id)
        res = await self.session.execute(q.order_by(desc(AuditEvent.occurred_at)).limit(limit))
        return res.scalars().all()
