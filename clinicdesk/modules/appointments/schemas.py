import uuid
from datetime import date, datetime, time
from typing import Literal
from pydantic import BaseModel, Field

AppointmentStatus = Literal["scheduled", "confirmed", "waiting", "in_progress", "completed", "cancelled", "no_show"]
AppointmentType = Literal["consultation", "follow_up", "procedure", "emergency"]

class AppointmentCreate(BaseModel):
    patient_id: uuid.UUID
    doctor_id: uuid.UUID
    appointment_date: date
    start_time: time
    duration_minutes: int = Field(30, ge=5, le=240)
    appointment_type: AppointmentType = "consultation"
    reason: str | None = Field(None, max_length=2000)
    notes: str | None = None
    channel_origin: Literal["phone", "walk_in", "web"] | None = None

class AppointmentStatusChange(BaseModel):
    status: AppointmentStatus
    cancel_reason: str | None = Field(None, max_length=200)

class CheckinCreate(BaseModel):
    consultation_fee: float | None = Field(None, ge=0)
    chief_complaints: str | None = None

class AppointmentOut(BaseModel):
    id: uuid.UUID
    patient_id: uuid.UUID
    doctor_id: uuid.UUID
    appointment_date: date
    start_time: time
    end_time: time
    duration_minutes: int
    appointment_type: str
    status: str
    reason: str | None
    notes: str | None
    channel_origin: str | None
    cancel_reason: str | None
    checked_in_at: datetime | None
    visit_id: uuid.UUID | None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class AppointmentStats(BaseModel):
    today: int = 0
    scheduled: int = 0
    confirmed: int = 0
    waiting: int = 0
    engaged: int = 0
    completed: int = 0
    cancelled: int = 0
    no_show: int = 0
