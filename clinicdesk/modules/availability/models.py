import uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, ForeignKey
from clinicdesk.core.base import Base, TimestampedTenantMixin

# Recurring weekly schedule: day_of_week 0=Mon..6=Sun, minutes past midnight in clinic time
class DoctorSchedule(Base, TimestampedTenantMixin):
    doctor_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("staffuser.id"), index=True)
    day_of_week: Mapped[int] = mapped_column(Integer)  # 0..6
    start_minute: Mapped[int] = mapped_column(Integer)  # e.g., 10*60
    end_minute: Mapped[int] = mapped_column(Integer)    # e.g., 18*60
    slot_minutes: Mapped[int] = mapped_column(Integer, default=15)
    break_start_minute: Mapped[int | None] = mapped_column(Integer, nullable=True)
    break_end_minute: Mapped[int | None] = mapped_column(Integer, nullable=True)
    active: Mapped[bool] = mapped_column(default=True)
