from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr
from sqlalchemy.ext.asyncio import AsyncSession
from clinicdesk.core.db import get_session
from clinicdesk.core.roles import Capability
from clinicdesk.core.security import Principal, get_principal, require_capability
from clinicdesk.modules.tenants.schemas import TenantCreate, TenantUpdate, TenantOut
from clinicdesk.modules.tenants.service import TenantService

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> TenantService:
    return TenantService(session)

class TenantSetup(TenantCreate):
    owner_name: str | None = None
    owner_email: EmailStr | None = None

@router.post("/tenant", response_model=TenantOut, status_code=201)
async def setup_tenant(
    payload: TenantSetup,
    principal: Principal = Depends(require_capability(Capability.TENANT_SETTINGS)),
    service: TenantService = Depends(svc),
):
    data = TenantCreate(**payload.model_dump(exclude={"owner_name", "owner_email"}, exclude_unset=True))
    obj, err = await service.setup(principal.org_id, principal.user_id, payload.owner_name, payload.owner_email, data)
    if err == "exists":
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Clinic already set up")
    if err == "slug_taken":
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Slug already in use")
    return obj

@router.get("/tenant", response_model=TenantOut)
async def get_tenant(
    principal: Principal = Depends(get_principal),
    service: TenantService = Depends(svc),
):
    obj = await service.get(principal.org_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Clinic not found")
    return obj

@router.patch("/tenant", response_model=TenantOut)
async def update_tenant(
    payload: TenantUpdate,
    principal: Principal = Depends(require_capability(Capability.TENANT_SETTINGS)),
    service: TenantService = Depends(svc),
):
    obj = await service.update(principal.org_id, payload)
    if not obj:
        raise HTTPException(status_code=404, detail="Clinic not found")
    return obj
