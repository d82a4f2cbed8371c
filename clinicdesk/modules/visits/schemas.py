import uuid
from datetime import date, datetime, time
from typing import Literal
from pydantic import BaseModel, Field, field_validator, model_validator
from clinicdesk.modules.visits.clinical import TIMING_SLOTS

VisitStatus = Literal["scheduled", "in_progress", "completed", "cancelled"]
VisitType = Literal["new", "follow_up"]
TimingSlot = Literal["morning", "afternoon", "evening", "night"]
FoodTiming = Literal["before_food", "after_food", "with_food", "empty_stomach"]

class VisitCreate(BaseModel):
    patient_id: uuid.UUID
    doctor_id: uuid.UUID
    visit_date: date
    visit_time: time
    visit_type: VisitType = "new"
    consultation_fee: float | None = Field(None, ge=0, le=100000)
    chief_complaints: str | None = Field(None, max_length=2000)
    appointment_id: uuid.UUID | None = None

class VisitUpdate(BaseModel):
    doctor_id: uuid.UUID | None = None
    visit_date: date | None = None
    visit_time: time | None = None
    visit_type: VisitType | None = None
    consultation_fee: float | None = Field(None, ge=0, le=100000)
    chief_complaints: str | None = Field(None, max_length=2000)
    notes: str | None = None

class StatusChange(BaseModel):
    status: VisitStatus
    notes: str | None = None

class PaymentChange(BaseModel):
    paid: bool

class PrescriptionIn(BaseModel):
    medicine_name: str = Field(..., min_length=1, max_length=200)
    dosage_amount: float = Field(..., gt=0)
    dosage_unit: str = Field(..., min_length=1, max_length=16)
    frequency_times: int = Field(..., ge=1, le=4)
    timing: list[TimingSlot]
    food_timing: FoodTiming = "after_food"
    duration_days: int = Field(..., ge=1, le=365)
    instructions: str | None = Field(None, max_length=500)

    @field_validator("timing")
    @classmethod
    def _ordered_unique(cls, v: list[str]):
        if len(set(v)) != len(v):
            raise ValueError("timing slots must not repeat")
        return sorted(v, key=TIMING_SLOTS.index)

    @model_validator(mode="after")
    def _timing_matches_frequency(self):
        if len(self.timing) != self.frequency_times:
            raise ValueError(f"select exactly {self.frequency_times} timing slot(s) for {self.frequency_times}x daily")
        return self

class PrescriptionOut(BaseModel):
    id: uuid.UUID
    position: int
    medicine_name: str
    dosage_amount: float
    dosage_unit: str
    frequency_times: int
    timing: list[str]
    food_timing: str
    duration_days: int
    instructions: str | None
    total_quantity: int

    class Config:
        from_attributes = True

class ConsultationIn(BaseModel):
    chief_complaints: str | None = None
    history_of_present_illness: str | None = None
    physical_examination: str | None = None
    diagnosis: str | None = None
    treatment_plan: str | None = None
    general_advice: str | None = None
    follow_up_date: date | None = None
    follow_up_instructions: str | None = None
    # None leaves the saved set untouched, [] clears it
    prescriptions: list[PrescriptionIn] | None = None
    complete: bool = False

class VitalsIn(BaseModel):
    height_cm: float | None = Field(None, gt=0, le=300)
    weight_kg: float | None = Field(None, gt=0, le=500)
    pulse_rate: int | None = Field(None, ge=20, le=250)
    blood_pressure_systolic: int | None = Field(None, ge=50, le=300)
    blood_pressure_diastolic: int | None = Field(None, ge=30, le=200)
    spo2: int | None = Field(None, ge=50, le=100)
    temperature_celsius: float | None = Field(None, ge=30, le=45)
    respiratory_rate: int | None = Field(None, ge=5, le=60)
    blood_glucose: float | None = Field(None, ge=20, le=700)
    notes: str | None = Field(None, max_length=1000)

class VitalsOut(VitalsIn):
    id: uuid.UUID
    visit_id: uuid.UUID
    patient_id: uuid.UUID
    bmi: float | None
    recorded_at: datetime

    class Config:
        from_attributes = True

class VisitOut(BaseModel):
    id: uuid.UUID
    patient_id: uuid.UUID
    doctor_id: uuid.UUID
    appointment_id: uuid.UUID | None
    visit_number: str
    visit_date: date
    visit_time: time
    visit_type: str
    consultation_fee: float
    consultation_fee_paid: bool
    consultation_payment_date: datetime | None
    status: str
    chief_complaints: str | None
    history_of_present_illness: str | None
    physical_examination: str | None
    diagnosis: str | None
    treatment_plan: str | None
    general_advice: str | None
    follow_up_date: date | None
    follow_up_instructions: str | None
    notes: str | None
    archived_at: datetime | None
    created_at: datetime

    class Config:
        from_attributes = True

class VisitPage(BaseModel):
    items: list[VisitOut]
    total: int
    limit: int
    offset: int

class VisitStatistics(BaseModel):
    total_visits: int = 0
    scheduled: int = 0
    in_progress: int = 0
    completed: int = 0
    cancelled: int = 0
    total_revenue: float = 0
    pending_payments: int = 0
