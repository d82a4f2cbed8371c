from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from clinicdesk.core.db import get_session
from clinicdesk.core.roles import Capability
from clinicdesk.core.security import Principal, require_capability
from clinicdesk.modules.notifications.schemas import OutboundOut
from clinicdesk.modules.notifications.service import NotificationsService

router = APIRouter()
def svc(s: AsyncSession = Depends(get_session)) -> NotificationsService: return NotificationsService(s)

@router.get("/notifications/outbound", response_model=list[OutboundOut])
async def list_outbound(to: str | None = None, limit: int = Query(50, ge=1, le=200),
                        principal: Principal = Depends(require_capability(Capability.MANAGE_USERS)),
                        service: NotificationsService = Depends(svc)):
    return await service.list(principal.org_id, to=to, limit=limit)
