import uuid
from collections import Counter
from datetime import date, datetime, time, timedelta, timezone
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from clinicdesk.modules.analytics.schemas import (
    DailyPoint, DiagnosisCount, DoctorBreakdown, Overview, PatientRisk, PatientRiskReport, RevenueReport,
)
from clinicdesk.modules.patients.models import Patient
from clinicdesk.modules.patients.repository import PatientRepository
from clinicdesk.modules.users.models import StaffUser
from clinicdesk.modules.visits.models import Visit
from clinicdesk.modules.visits.repository import VisitRepository

TIMEFRAME_DAYS = {"7d": 7, "2w": 14, "1m": 30, "3m": 90, "6m": 180}
MAX_CUSTOM_DAYS = 366
TOP_DIAGNOSES = 5

# (days without a visit, points, factor); only the first matching tier counts
ABSENCE_TIERS = (
    (90, 40, "No visit in 90+ days"),
    (60, 25, "No visit in 60+ days"),
    (30, 15, "No visit in 30+ days"),
)
MISSED_FOLLOW_UP_POINTS = 15

def resolve_range(timeframe: str, date_from: date | None = None, date_to: date | None = None, today: date | None = None):
    """Inclusive (from, to) dates for a timeframe, or (None, error)."""
    today = today or date.today()
    if timeframe == "custom":
        if not date_from or not date_to:
            return None, "range_required"
        if date_to < date_from or (date_to - date_from).days >= MAX_CUSTOM_DAYS:
            return None, "invalid_range"
        return (date_from, date_to), None
    days = TIMEFRAME_DAYS.get(timeframe)
    if days is None:
        return None, "invalid_range"
    return (today - timedelta(days=days - 1), today), None

def risk_factors(last_visit: date, visit_count: int, follow_up_date: date | None, today: date) -> tuple[int, list[str]]:
    """Score (0-100) and the factors behind it for one patient's visit history.

    ``follow_up_date`` is the one set on the latest visit; being in the past
    means nothing was recorded after it.
    """
    score, factors = 0, []
    days = (today - last_visit).days
    for threshold, points, label in ABSENCE_TIERS:
        if days > threshold:
            score += points
            factors.append(label)
            break
    if visit_count < 2:
        score += 20
        factors.append("Only one visit")
    elif visit_count < 3:
        score += 10
        factors.append("Low visit frequency")
    if follow_up_date is not None and follow_up_date < today:
        score += MISSED_FOLLOW_UP_POINTS
        factors.append("Missed follow-up")
    return min(score, 100), factors

def risk_level(score: int) -> str:
    if score >= 50:
        return "high"
    if score >= 25:
        return "medium"
    return "low"

def _rate(part: float, whole: float) -> float | None:
    if whole <= 0:
        return None
    return round(part / whole * 100, 2)

def _day_start(d: date) -> datetime:
    return datetime.combine(d, time.min, tzinfo=timezone.utc)

def _daily(visits, date_from: date, date_to: date) -> list[DailyPoint]:
    points = {}
    d = date_from
    while d <= date_to:
        points[d] = DailyPoint(day=d)
        d += timedelta(days=1)
    for v in visits:
        p = points.get(v.visit_date)
        if p is None:
            continue
        p.visits += 1
        if v.consultation_fee_paid and v.status != "cancelled":
            p.revenue += float(v.consultation_fee or 0)
    return list(points.values())

class AnalyticsService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.visits = VisitRepository(session)

    async def _doctor_names(self, org_id: uuid.UUID, ids: set[uuid.UUID]) -> dict[uuid.UUID, str]:
        if not ids:
            return {}
        res = await self.session.execute(select(StaffUser.id, StaffUser.full_name).where(StaffUser.org_id == org_id, StaffUser.id.in_(ids)))
        return {row[0]: row[1] for row in res.all()}

    async def overview(self, org_id: uuid.UUID, date_from: date, date_to: date) -> Overview:
        visits = await self.visits.in_range(org_id, date_from, date_to)
        billable = [v for v in visits if v.status != "cancelled"]
        due = sum(float(v.consultation_fee or 0) for v in billable)
        collected = sum(float(v.consultation_fee or 0) for v in billable if v.consultation_fee_paid)
        paid_fees = [float(v.consultation_fee or 0) for v in billable if v.consultation_fee_paid]

        diagnoses = Counter(v.diagnosis.strip() for v in visits if v.diagnosis and v.diagnosis.strip())
        per_doctor: dict[uuid.UUID, DoctorBreakdown] = {}
        for v in visits:
            row = per_doctor.setdefault(v.doctor_id, DoctorBreakdown(doctor_id=v.doctor_id))
            row.visits += 1
            if v.status == "completed":
                row.completed += 1
            if v.consultation_fee_paid and v.status != "cancelled":
                row.revenue += float(v.consultation_fee or 0)
        names = await self._doctor_names(org_id, set(per_doctor))
        for doctor_id, row in per_doctor.items():
            row.doctor_name = names.get(doctor_id)

        new_patients = await PatientRepository(self.session).count_registered(
            org_id, since=_day_start(date_from), until=_day_start(date_to + timedelta(days=1))
        )
        return Overview(
            date_from=date_from,
            date_to=date_to,
            days=(date_to - date_from).days + 1,
            total_visits=len(visits),
            visits_by_status=dict(Counter(v.status for v in visits)),
            unique_patients=len({v.patient_id for v in visits}),
            new_patients=new_patients,
            follow_up_visits=sum(1 for v in visits if v.visit_type == "follow_up"),
            total_revenue=collected,
            outstanding_fees=due - collected,
            collection_rate=_rate(collected, due),
            average_fee=round(sum(paid_fees) / len(paid_fees), 2) if paid_fees else None,
            daily=_daily(visits, date_from, date_to),
            top_diagnoses=[DiagnosisCount(diagnosis=d, count=c) for d, c in diagnoses.most_common(TOP_DIAGNOSES)],
            doctors=sorted(per_doctor.values(), key=lambda r: (-r.visits, r.doctor_name or "")),
        )

    async def revenue(self, org_id: uuid.UUID, date_from: date, date_to: date) -> RevenueReport:
        visits = [v for v in await self.visits.in_range(org_id, date_from, date_to) if v.status != "cancelled"]
        due = sum(float(v.consultation_fee or 0) for v in visits)
        collected = sum(float(v.consultation_fee or 0) for v in visits if v.consultation_fee_paid)

        res = await self.session.execute(select(Patient.registration_fee).where(
            Patient.org_id == org_id,
            Patient.deleted_at.is_(None),
            Patient.registration_fee_paid.is_(True),
            Patient.created_at >= _day_start(date_from),
            Patient.created_at < _day_start(date_to + timedelta(days=1)),
        ))
        registration = sum(float(fee or 0) for fee in res.scalars().all())
        return RevenueReport(
            date_from=date_from,
            date_to=date_to,
            total_due=due,
            total_collected=collected,
            outstanding=due - collected,
            collection_rate=_rate(collected, due),
            paid_visits=sum(1 for v in visits if v.consultation_fee_paid),
            unpaid_visits=sum(1 for v in visits if not v.consultation_fee_paid),
            registration_fees_collected=registration,
            daily=_daily(visits, date_from, date_to),
        )

    async def patient_risk(self, org_id: uuid.UUID, today: date | None = None, limit: int = 50) -> PatientRiskReport:
        today = today or date.today()
        res = await self.session.execute(
            select(Visit.patient_id, Visit.visit_date, Visit.visit_time, Visit.follow_up_date).where(
                Visit.org_id == org_id,
                Visit.deleted_at.is_(None),
                Visit.status != "cancelled",
                Visit.visit_date <= today,
            )
        )
        history: dict[uuid.UUID, list] = {}
        for row in res.all():
            history.setdefault(row.patient_id, []).append(row)
        if not history:
            return PatientRiskReport(as_of=today)

        patients = await self.session.execute(select(Patient).where(
            Patient.org_id == org_id, Patient.deleted_at.is_(None), Patient.id.in_(history),
        ))
        rows = []
        for p in patients.scalars().all():
            visits = history[p.id]
            last = max(visits, key=lambda v: (v.visit_date, v.visit_time))
            score, factors = risk_factors(last.visit_date, len(visits), last.follow_up_date, today)
            if score == 0:
                continue
            rows.append(PatientRisk(
                patient_id=p.id,
                uhid=p.uhid,
                name=p.full_name,
                phone=p.phone,
                last_visit=last.visit_date,
                days_since_last_visit=(today - last.visit_date).days,
                visit_count=len(visits),
                follow_up_date=last.follow_up_date,
                risk_factors=factors,
                risk_score=score,
                risk_level=risk_level(score),
            ))
        rows.sort(key=lambda r: (-r.risk_score, -r.days_since_last_visit, r.name))
        return PatientRiskReport(as_of=today, patients=rows[:limit])
