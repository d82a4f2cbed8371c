import uuid
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from clinicdesk.core.db import get_session
from clinicdesk.core.roles import Capability
from clinicdesk.core.security import Principal, require_capability
from clinicdesk.modules.appointments.schemas import (
    AppointmentCreate, AppointmentOut, AppointmentStats, AppointmentStatus, AppointmentStatusChange, CheckinCreate,
)
from clinicdesk.modules.appointments.service import AppointmentService

router = APIRouter()

can_manage = require_capability(Capability.MANAGE_VISITS)

def svc(session: AsyncSession = Depends(get_session)) -> AppointmentService:
    return AppointmentService(session)

ERRORS = {
    "not_found": (status.HTTP_404_NOT_FOUND, "Appointment not found"),
    "patient_not_found": (status.HTTP_404_NOT_FOUND, "Patient not found"),
    "doctor_not_found": (status.HTTP_400_BAD_REQUEST, "Doctor not found or inactive"),
    "invalid_time": (status.HTTP_400_BAD_REQUEST, "Appointment must end on the day it starts"),
    "outside_schedule": (status.HTTP_409_CONFLICT, "Doctor is not available at this time"),
    "conflict": (status.HTTP_409_CONFLICT, "Time slot is already booked"),
    "invalid_transition": (status.HTTP_400_BAD_REQUEST, "Invalid status transition"),
    "use_checkin": (status.HTTP_400_BAD_REQUEST, "Use check-in to move an appointment to waiting"),
    "visit_exists": (status.HTTP_409_CONFLICT, "Appointment is already checked in"),
}

def raise_for(err: str):
    code, detail = ERRORS[err]
    raise HTTPException(status_code=code, detail=detail)

@router.post("", response_model=AppointmentOut, status_code=201)
async def create_appointment(payload: AppointmentCreate, principal: Principal = Depends(can_manage), service: AppointmentService = Depends(svc)):
    obj, err = await service.create(principal.org_id, payload, created_by=principal.user_id)
    if err:
        raise_for(err)
    return obj

@router.get("", response_model=list[AppointmentOut])
async def list_appointments(
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    patient_id: uuid.UUID | None = None,
    doctor_id: uuid.UUID | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    principal: Principal = Depends(can_manage),
    service: AppointmentService = Depends(svc),
):
    return await service.list(principal.org_id, status=status_filter, patient_id=patient_id, doctor_id=doctor_id,
                              date_from=date_from, date_to=date_to, limit=limit, offset=offset)

@router.get("/stats", response_model=AppointmentStats)
async def appointment_stats(day: date | None = None, doctor_id: uuid.UUID | None = None,
                            principal: Principal = Depends(can_manage), service: AppointmentService = Depends(svc)):
    return await service.stats(principal.org_id, day, doctor_id)

@router.get("/{appt_id}", response_model=AppointmentOut)
async def get_appointment(appt_id: uuid.UUID, principal: Principal = Depends(can_manage), service: AppointmentService = Depends(svc)):
    obj = await service.get(principal.org_id, appt_id)
    if not obj:
        raise_for("not_found")
    return obj

@router.post("/{appt_id}/status", response_model=AppointmentOut)
async def change_status(appt_id: uuid.UUID, payload: AppointmentStatusChange, principal: Principal = Depends(can_manage),
                        service: AppointmentService = Depends(svc)):
    obj, err = await service.change_status(principal.org_id, appt_id, payload.status, payload.cancel_reason)
    if err:
        raise_for(err)
    return obj

@router.post("/{appt_id}/check-in", response_model=AppointmentOut)
async def check_in(appt_id: uuid.UUID, payload: CheckinCreate, principal: Principal = Depends(can_manage),
                   service: AppointmentService = Depends(svc)):
    obj, err = await service.check_in(principal.org_id, appt_id, payload, actor=principal.user_id)
    if err:
        raise_for(err)
    return obj
