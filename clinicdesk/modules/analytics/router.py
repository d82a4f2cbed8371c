from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from clinicdesk.core.db import get_session
from clinicdesk.core.roles import Capability
from clinicdesk.core.security import Principal, require_capability
from clinicdesk.modules.analytics.schemas import Overview, PatientRiskReport, RevenueReport, Timeframe
from clinicdesk.modules.analytics.service import AnalyticsService, resolve_range

router = APIRouter()

can_view = require_capability(Capability.VIEW_ANALYTICS)
can_view_risk = require_capability(Capability.VIEW_PATIENT_RISK)

def svc(s: AsyncSession = Depends(get_session)) -> AnalyticsService:
    return AnalyticsService(s)

def date_range(timeframe: Timeframe = "1m", date_from: date | None = Query(None, alias="from"), date_to: date | None = Query(None, alias="to")):
    rng, err = resolve_range(timeframe, date_from, date_to)
    if err == "range_required":
        raise HTTPException(400, "Custom timeframe requires from and to")
    if err:
        raise HTTPException(400, "Invalid date range")
    return rng

@router.get("/analytics/overview", response_model=Overview)
async def overview(rng: tuple[date, date] = Depends(date_range), principal: Principal = Depends(can_view), service: AnalyticsService = Depends(svc)):
    return await service.overview(principal.org_id, *rng)

@router.get("/analytics/revenue", response_model=RevenueReport)
async def revenue(rng: tuple[date, date] = Depends(date_range), principal: Principal = Depends(can_view), service: AnalyticsService = Depends(svc)):
    return await service.revenue(principal.org_id, *rng)

@router.get("/analytics/patient-risk", response_model=PatientRiskReport)
async def patient_risk(limit: int = Query(50, ge=1, le=200), principal: Principal = Depends(can_view_risk), service: AnalyticsService = Depends(svc)):
    return await service.patient_risk(principal.org_id, limit=limit)
