import uuid
from datetime import date, datetime, time
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Date, Time, Integer, TIMESTAMP, ForeignKey
from clinicdesk.core.base import Base, TimestampedTenantMixin

class Appointment(Base, TimestampedTenantMixin):
    patient_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("patient.id"), index=True)
    doctor_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("staffuser.id"), index=True)

    # Scheduling, in clinic-local wall time
    appointment_date: Mapped[date] = mapped_column(Date, index=True)
    start_time: Mapped[time] = mapped_column(Time)
    end_time: Mapped[time] = mapped_column(Time)
    duration_minutes: Mapped[int] = mapped_column(Integer, default=30)

    appointment_type: Mapped[str] = mapped_column(String(24), default="consultation")  # consultation | follow_up | procedure | emergency
    status: Mapped[str] = mapped_column(String(24), default="scheduled")  # scheduled | confirmed | waiting | in_progress | completed | cancelled | no_show
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    channel_origin: Mapped[str | None] = mapped_column(String(24), nullable=True)  # phone | walk_in | web
    cancel_reason: Mapped[str | None] = mapped_column(String(200), nullable=True)

    checked_in_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    visit_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(nullable=True)
