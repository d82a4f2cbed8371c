import uuid
from datetime import date, datetime
from pydantic import BaseModel, Field, model_validator

class ScheduleCreate(BaseModel):
    doctor_id: uuid.UUID
    day_of_week: int = Field(ge=0, le=6)
    start_minute: int = Field(ge=0, le=24*60-1)
    end_minute: int = Field(ge=1, le=24*60)
    slot_minutes: int = Field(default=15, ge=5, le=240)
    break_start_minute: int | None = Field(None, ge=0, le=24*60)
    break_end_minute: int | None = Field(None, ge=0, le=24*60)
    active: bool = True

    @model_validator(mode="after")
    def _window(self):
        if self.end_minute <= self.start_minute:
            raise ValueError("end_minute must be after start_minute")
        if (self.break_start_minute is None) != (self.break_end_minute is None):
            raise ValueError("break needs both start and end")
        if self.break_start_minute is not None:
            if not (self.start_minute <= self.break_start_minute < self.break_end_minute <= self.end_minute):
                raise ValueError("break must lie inside the working window")
        return self

class ScheduleOut(ScheduleCreate):
    id: uuid.UUID
    class Config: from_attributes = True

class SlotsQuery(BaseModel):
    doctor_id: uuid.UUID
    date_from: date
    date_to: date
    duration: int | None = None  # minutes; defaults to the schedule's slot length
    include_booked: bool = False

class SlotOut(BaseModel):
    id: str
    start: datetime
    end: datetime
    doctor_id: uuid.UUID
    state: str  # open | booked
