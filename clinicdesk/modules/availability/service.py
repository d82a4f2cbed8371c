import uuid
from datetime import date, datetime, time, timedelta
from typing import Iterable
from sqlalchemy.ext.asyncio import AsyncSession
from clinicdesk.core.base import utcnow
from clinicdesk.modules.appointments.repository import AppointmentRepository
from clinicdesk.modules.availability.models import DoctorSchedule
from clinicdesk.modules.availability.repository import AvailabilityRepository
from clinicdesk.modules.availability.schemas import SlotsQuery
from clinicdesk.modules.events.outbox import OutboxService

MAX_RANGE_DAYS = 31

def _at(day: date, minute: int) -> datetime:
    return datetime.combine(day, time.min) + timedelta(minutes=minute)

def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    return a_start < b_end and a_end > b_start

def schedule_windows(sc: DoctorSchedule, day: date) -> list[tuple[datetime, datetime]]:
    """Working windows of one schedule on one day, split around the break."""
    if sc.break_start_minute is not None and sc.break_end_minute is not None:
        return [
            (_at(day, sc.start_minute), _at(day, sc.break_start_minute)),
            (_at(day, sc.break_end_minute), _at(day, sc.end_minute)),
        ]
    return [(_at(day, sc.start_minute), _at(day, sc.end_minute))]

def free_for(window_start: datetime, window_end: datetime, dur_min: int, busy: Iterable[tuple[datetime, datetime]]):
    cur = window_start
    delta = timedelta(minutes=dur_min)
    busy = list(busy)
    while cur + delta <= window_end:
        ce = cur + delta
        taken = any(overlaps(cur, ce, bs, be) for bs, be in busy)
        yield cur, ce, taken
        cur = ce

class AvailabilityService:
    def __init__(self, s: AsyncSession):
        self.s = s
        self.repo = AvailabilityRepository(s)

    async def create_schedule(self, org: uuid.UUID, **data):
        obj = await self.repo.create_schedule(org, **data)
        await OutboxService(self.s).enqueue(org, "schedule.created", "doctorschedule", obj.id, {"doctor_id": str(obj.doctor_id), "day_of_week": obj.day_of_week})
        await self.s.commit()
        return obj

    async def list_schedules(self, org: uuid.UUID, doctor_id: uuid.UUID | None = None):
        return await self.repo.list_schedules(org, doctor_id)

    async def deactivate_schedule(self, org: uuid.UUID, schedule_id: uuid.UUID):
        obj = await self.repo.get_schedule(org, schedule_id)
        if not obj:
            return None
        obj.active = False
        await self.s.commit()
        return obj

    async def _busy(self, org: uuid.UUID, doctor_id: uuid.UUID, date_from: date, date_to: date, exclude: uuid.UUID | None = None):
        appts = await AppointmentRepository(self.s).booked_for_doctor(org, doctor_id, date_from, date_to)
        return [
            (datetime.combine(a.appointment_date, a.start_time), datetime.combine(a.appointment_date, a.end_time))
            for a in appts if a.id != exclude
        ]

    async def search_slots(self, org: uuid.UUID, q: SlotsQuery) -> list[dict]:
        if q.date_to < q.date_from:
            return []
        date_to = min(q.date_to, q.date_from + timedelta(days=MAX_RANGE_DAYS))
        schedules = await self.repo.list_schedules(org, q.doctor_id)
        busy = await self._busy(org, q.doctor_id, q.date_from, date_to)
        now_local = utcnow().replace(tzinfo=None)

        result: list[dict] = []
        day = q.date_from
        while day <= date_to:
            for sc in (s for s in schedules if s.day_of_week == day.weekday()):
                for ws, we in schedule_windows(sc, day):
                    for sst, sse, taken in free_for(ws, we, q.duration or sc.slot_minutes, busy):
                        if sst < now_local:
                            continue
                        if taken and not q.include_booked:
                            continue
                        result.append({
                            "id": f"{q.doctor_id}:{sst:%Y%m%d%H%M}",
                            "start": sst, "end": sse,
                            "doctor_id": q.doctor_id,
                            "state": "booked" if taken else "open",
                        })
            day += timedelta(days=1)
        result.sort(key=lambda s: s["start"])
        return result

    async def check_slot(self, org: uuid.UUID, doctor_id: uuid.UUID, start: datetime, end: datetime, exclude: uuid.UUID | None = None) -> str | None:
        """None when bookable, otherwise outside_schedule or conflict."""
        schedules = [s for s in await self.repo.list_schedules(org, doctor_id) if s.day_of_week == start.weekday()]
        all_schedules = await self.repo.list_schedules(org, doctor_id)
        # a doctor without any schedule accepts bookings at any time
        if all_schedules:
            inside = any(ws <= start and end <= we for sc in schedules for ws, we in schedule_windows(sc, start.date()))
            if not inside:
                return "outside_schedule"
        busy = await self._busy(org, doctor_id, start.date(), start.date(), exclude=exclude)
        if any(overlaps(start, end, bs, be) for bs, be in busy):
            return "conflict"
        return None
