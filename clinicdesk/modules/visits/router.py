import uuid
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from clinicdesk.core.db import get_session
from clinicdesk.core.roles import Capability
from clinicdesk.core.security import Principal, require_capability
from clinicdesk.modules.visits.schemas import (
    ConsultationIn, PaymentChange, PrescriptionOut, StatusChange, VisitCreate, VisitOut, VisitPage,
    VisitStatistics, VisitStatus, VisitUpdate, VitalsIn, VitalsOut,
)
from clinicdesk.modules.visits.service import VisitService

router = APIRouter()

can_manage = require_capability(Capability.MANAGE_VISITS)

def svc(session: AsyncSession = Depends(get_session)) -> VisitService:
    return VisitService(session)

ERRORS = {
    "not_found": (status.HTTP_404_NOT_FOUND, "Visit not found"),
    "patient_not_found": (status.HTTP_404_NOT_FOUND, "Patient not found"),
    "doctor_not_found": (status.HTTP_400_BAD_REQUEST, "Doctor not found or inactive"),
    "archived": (status.HTTP_409_CONFLICT, "Visit is archived and can no longer be changed"),
    "cancelled": (status.HTTP_409_CONFLICT, "Visit is cancelled"),
    "invalid_transition": (status.HTTP_400_BAD_REQUEST, "Invalid status transition"),
    "vitals_exist": (status.HTTP_409_CONFLICT, "Vitals already recorded for this visit"),
    "not_closed": (status.HTTP_400_BAD_REQUEST, "Only completed or cancelled visits can be archived"),
}

def raise_for(err: str):
    code, detail = ERRORS[err]
    raise HTTPException(status_code=code, detail=detail)

@router.post("", response_model=VisitOut, status_code=201)
async def create_visit(payload: VisitCreate, principal: Principal = Depends(can_manage), service: VisitService = Depends(svc)):
    obj, err = await service.create(principal.org_id, payload, created_by=principal.user_id)
    if err:
        raise_for(err)
    return obj

@router.get("", response_model=VisitPage)
async def list_visits(
    patient_id: uuid.UUID | None = None,
    doctor_id: uuid.UUID | None = None,
    status: VisitStatus | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    principal: Principal = Depends(can_manage),
    service: VisitService = Depends(svc),
):
    items, total = await service.search(
        principal.org_id, patient_id=patient_id, doctor_id=doctor_id, status=status,
        date_from=date_from, date_to=date_to, limit=limit, offset=offset,
    )
    return VisitPage(items=items, total=total, limit=limit, offset=offset)

@router.get("/today", response_model=list[VisitOut])
async def todays_visits(doctor_id: uuid.UUID | None = None, principal: Principal = Depends(can_manage), service: VisitService = Depends(svc)):
    return await service.today(principal.org_id, doctor_id=doctor_id)

@router.get("/statistics", response_model=VisitStatistics)
async def visit_statistics(
    date_from: date | None = None,
    date_to: date | None = None,
    principal: Principal = Depends(can_manage),
    service: VisitService = Depends(svc),
):
    return await service.statistics(principal.org_id, date_from, date_to)

@router.get("/{visit_id}", response_model=VisitOut)
async def get_visit(visit_id: uuid.UUID, principal: Principal = Depends(can_manage), service: VisitService = Depends(svc)):
    obj = await service.get(principal.org_id, visit_id)
    if not obj:
        raise_for("not_found")
    return obj

@router.patch("/{visit_id}", response_model=VisitOut)
async def update_visit(visit_id: uuid.UUID, payload: VisitUpdate, principal: Principal = Depends(can_manage), service: VisitService = Depends(svc)):
    obj, err = await service.update(principal.org_id, visit_id, payload)
    if err:
        raise_for(err)
    return obj

@router.post("/{visit_id}/status", response_model=VisitOut)
async def change_status(visit_id: uuid.UUID, payload: StatusChange, principal: Principal = Depends(can_manage), service: VisitService = Depends(svc)):
    obj, err = await service.change_status(principal.org_id, visit_id, payload.status, payload.notes)
    if err:
        raise_for(err)
    return obj

@router.post("/{visit_id}/payment", response_model=VisitOut)
async def update_payment(visit_id: uuid.UUID, payload: PaymentChange, principal: Principal = Depends(can_manage), service: VisitService = Depends(svc)):
    obj, err = await service.set_payment(principal.org_id, visit_id, payload.paid)
    if err:
        raise_for(err)
    return obj

@router.put("/{visit_id}/consultation", response_model=VisitOut)
async def save_consultation(visit_id: uuid.UUID, payload: ConsultationIn, principal: Principal = Depends(can_manage), service: VisitService = Depends(svc)):
    obj, err = await service.save_consultation(principal.org_id, visit_id, payload)
    if err:
        raise_for(err)
    return obj

@router.get("/{visit_id}/prescriptions", response_model=list[PrescriptionOut])
async def list_prescriptions(visit_id: uuid.UUID, principal: Principal = Depends(can_manage), service: VisitService = Depends(svc)):
    items = await service.list_prescriptions(principal.org_id, visit_id)
    if items is None:
        raise_for("not_found")
    return items

@router.delete("/{visit_id}/prescriptions", status_code=204)
async def clear_prescriptions(visit_id: uuid.UUID, principal: Principal = Depends(can_manage), service: VisitService = Depends(svc)):
    _, err = await service.clear_prescriptions(principal.org_id, visit_id)
    if err:
        raise_for(err)
    return

@router.post("/{visit_id}/vitals", response_model=VitalsOut, status_code=201)
async def record_vitals(visit_id: uuid.UUID, payload: VitalsIn, principal: Principal = Depends(can_manage), service: VisitService = Depends(svc)):
    obj, err = await service.record_vitals(principal.org_id, visit_id, payload, recorded_by=principal.user_id)
    if err:
        raise_for(err)
    return obj

@router.get("/{visit_id}/vitals", response_model=VitalsOut)
async def get_vitals(visit_id: uuid.UUID, principal: Principal = Depends(can_manage), service: VisitService = Depends(svc)):
    obj = await service.get_vitals(principal.org_id, visit_id)
    if not obj:
        raise HTTPException(status_code=404, detail="No vitals recorded for this visit")
    return obj

@router.post("/{visit_id}/archive", response_model=VisitOut)
async def archive_visit(visit_id: uuid.UUID, principal: Principal = Depends(can_manage), service: VisitService = Depends(svc)):
    obj, err = await service.archive(principal.org_id, visit_id)
    if err:
        raise_for(err)
    return obj
