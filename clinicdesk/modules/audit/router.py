from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from clinicdesk.core.db import get_session
from clinicdesk.core.roles import Capability
from clinicdesk.core.security import Principal, require_capability
from clinicdesk.modules.audit.service import AuditService

router = APIRouter()

@router.get("/audit")
async def list_audit(
    resource_type: str | None = None,
    resource_id: str | None = None,
    limit: int = Query(50, ge=1, le=200),
    principal: Principal = Depends(require_capability(Capability.MANAGE_USERS)),
    session: AsyncSession = Depends(get_session),
):
    rows = await AuditService(session).list(principal.org_id, resource_type=resource_type, resource_id=resource_id, limit=limit)
    return [
        {
            "id": row.id,
            "actor_user_id": row.actor_user_id,
            "action": row.action,
            "resource_type": row.resource_type,
            "resource_id": row.resource_id,
            "purpose": row.purpose,
            "success": row.success,
            "occurred_at": row.occurred_at,
        }
        for row in rows
    ]
