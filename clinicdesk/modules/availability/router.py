import uuid
from datetime import date
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from clinicdesk.core.db import get_session
from clinicdesk.core.roles import Capability
from clinicdesk.core.security import Principal, require_capability
from clinicdesk.modules.availability.service import AvailabilityService
from clinicdesk.modules.availability.schemas import ScheduleCreate, ScheduleOut, SlotsQuery, SlotOut

router = APIRouter()

can_manage = require_capability(Capability.MANAGE_VISITS)

def svc(s: AsyncSession = Depends(get_session)) -> AvailabilityService:
    return AvailabilityService(s)

@router.post("/availability/schedules", response_model=ScheduleOut, status_code=201)
async def create_schedule(payload: ScheduleCreate, principal: Principal = Depends(can_manage), service: AvailabilityService = Depends(svc)):
    return await service.create_schedule(principal.org_id, **payload.model_dump())

@router.get("/availability/schedules", response_model=list[ScheduleOut])
async def list_schedules(doctor_id: uuid.UUID | None = None, principal: Principal = Depends(can_manage), service: AvailabilityService = Depends(svc)):
    return await service.list_schedules(principal.org_id, doctor_id)

@router.delete("/availability/schedules/{schedule_id}", status_code=204)
async def deactivate_schedule(schedule_id: uuid.UUID, principal: Principal = Depends(can_manage), service: AvailabilityService = Depends(svc)):
    if not await service.deactivate_schedule(principal.org_id, schedule_id):
        raise HTTPException(404, "Schedule not found")

@router.get("/availability/slots", response_model=list[SlotOut])
async def search_slots(doctor_id: uuid.UUID, date_from: date, date_to: date | None = None, duration: int | None = None,
                       include_booked: bool = False, principal: Principal = Depends(can_manage), service: AvailabilityService = Depends(svc)):
    q = SlotsQuery(doctor_id=doctor_id, date_from=date_from, date_to=date_to or date_from, duration=duration, include_booked=include_booked)
    return await service.search_slots(principal.org_id, q)
