import uuid
from datetime import date, datetime, time
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, JSON, Date, Time, Boolean, Integer, Float, Numeric, TIMESTAMP, ForeignKey, UniqueConstraint
from clinicdesk.core.base import Base, TimestampedTenantMixin

class Visit(Base, TimestampedTenantMixin):
    __table_args__ = (UniqueConstraint("org_id", "visit_number", name="uq_visit_org_number"),)

    patient_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("patient.id"), index=True)
    doctor_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("staffuser.id"), index=True)
    appointment_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True)
    visit_number: Mapped[str] = mapped_column(String(24))  # V-YYYYMMDD-NNNN
    visit_date: Mapped[date] = mapped_column(Date, index=True)
    visit_time: Mapped[time] = mapped_column(Time)
    visit_type: Mapped[str] = mapped_column(String(16), default="new")  # new | follow_up
    consultation_fee: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0)
    consultation_fee_paid: Mapped[bool] = mapped_column(Boolean, default=False)
    consultation_payment_date: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(16), default="scheduled")  # scheduled | in_progress | completed | cancelled

    chief_complaints: Mapped[str | None] = mapped_column(Text, nullable=True)
    history_of_present_illness: Mapped[str | None] = mapped_column(Text, nullable=True)
    physical_examination: Mapped[str | None] = mapped_column(Text, nullable=True)
    diagnosis: Mapped[str | None] = mapped_column(Text, nullable=True)
    treatment_plan: Mapped[str | None] = mapped_column(Text, nullable=True)
    general_advice: Mapped[str | None] = mapped_column(Text, nullable=True)
    follow_up_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    follow_up_instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_by: Mapped[uuid.UUID | None] = mapped_column(nullable=True)
    archived_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

class PrescriptionItem(Base, TimestampedTenantMixin):
    visit_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("visit.id"), index=True)
    position: Mapped[int] = mapped_column(Integer, default=0)
    medicine_name: Mapped[str] = mapped_column(String(200))
    dosage_amount: Mapped[float] = mapped_column(Float)
    dosage_unit: Mapped[str] = mapped_column(String(16))  # mg | ml | tablet | ...
    frequency_times: Mapped[int] = mapped_column(Integer)
    timing: Mapped[list] = mapped_column(JSON)  # subset of morning/afternoon/evening/night
    food_timing: Mapped[str] = mapped_column(String(16))  # before_food | after_food | with_food | empty_stomach
    duration_days: Mapped[int] = mapped_column(Integer)
    instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    total_quantity: Mapped[int] = mapped_column(Integer)

class VitalsSnapshot(Base, TimestampedTenantMixin):
    visit_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("visit.id"), unique=True)
    patient_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("patient.id"), index=True)
    height_cm: Mapped[float | None] = mapped_column(Float, nullable=True)
    weight_kg: Mapped[float | None] = mapped_column(Float, nullable=True)
    bmi: Mapped[float | None] = mapped_column(Float, nullable=True)
    pulse_rate: Mapped[int | None] = mapped_column(Integer, nullable=True)
    blood_pressure_systolic: Mapped[int | None] = mapped_column(Integer, nullable=True)
    blood_pressure_diastolic: Mapped[int | None] = mapped_column(Integer, nullable=True)
    spo2: Mapped[int | None] = mapped_column(Integer, nullable=True)
    temperature_celsius: Mapped[float | None] = mapped_column(Float, nullable=True)
    respiratory_rate: Mapped[int | None] = mapped_column(Integer, nullable=True)
    blood_glucose: Mapped[float | None] = mapped_column(Float, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    recorded_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True))
    recorded_by: Mapped[uuid.UUID | None] = mapped_column(nullable=True)
