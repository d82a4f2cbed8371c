import uuid
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from clinicdesk.core.db import get_session
from clinicdesk.core.roles import Capability
from clinicdesk.core.security import Principal, require_capability
from clinicdesk.modules.patients.schemas import PatientCreate, PatientUpdate, PatientOut, PatientPage, PatientStatus
from clinicdesk.modules.patients.service import PatientService

router = APIRouter()

can_manage = require_capability(Capability.MANAGE_PATIENTS)

def svc(session: AsyncSession = Depends(get_session)) -> PatientService:
    return PatientService(session)

@router.post("", response_model=PatientOut, status_code=201)
async def create_patient(
    payload: PatientCreate,
    principal: Principal = Depends(can_manage),
    service: PatientService = Depends(svc),
):
    return await service.create(principal.org_id, payload)

@router.get("", response_model=PatientPage)
async def search_patients(
    query: str | None = None,
    status: PatientStatus | None = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    principal: Principal = Depends(can_manage),
    service: PatientService = Depends(svc),
):
    items, total = await service.search(principal.org_id, query=query, status=status, limit=limit, offset=offset)
    return PatientPage(items=items, total=total, limit=limit, offset=offset)

@router.get("/by-phone/{phone}", response_model=list[PatientOut])
async def patients_by_phone(
    phone: str,
    principal: Principal = Depends(can_manage),
    service: PatientService = Depends(svc),
):
    return await service.find_by_phone(principal.org_id, phone)

@router.get("/{patient_id}", response_model=PatientOut)
async def get_patient(
    patient_id: uuid.UUID,
    principal: Principal = Depends(can_manage),
    service: PatientService = Depends(svc),
):
    obj = await service.get(principal.org_id, patient_id)
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")
    return obj

@router.patch("/{patient_id}", response_model=PatientOut)
async def update_patient(
    patient_id: uuid.UUID,
    payload: PatientUpdate,
    principal: Principal = Depends(can_manage),
    service: PatientService = Depends(svc),
):
    obj = await service.update(principal.org_id, patient_id, payload)
    if not obj:
        raise HTTPException(status_code=404, detail="Patient not found")
    return obj

@router.delete("/{patient_id}", status_code=204)
async def delete_patient(
    patient_id: uuid.UUID,
    principal: Principal = Depends(can_manage),
    service: PatientService = Depends(svc),
):
    ok = await service.delete(principal.org_id, patient_id)
    if not ok:
        raise HTTPException(status_code=404, detail="Patient not found")
    return
