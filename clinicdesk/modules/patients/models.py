from datetime import date, datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, JSON, Date, Boolean, Numeric, TIMESTAMP, UniqueConstraint
from clinicdesk.core.base import Base, TimestampedTenantMixin

class Patient(Base, TimestampedTenantMixin):
    __table_args__ = (UniqueConstraint("org_id", "uhid", name="uq_patient_org_uhid"),)

    uhid: Mapped[str] = mapped_column(String(32), index=True)  # P-YYYYMMDD-HHMMSS-NNN
    first_name: Mapped[str] = mapped_column(String(100))
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    age: Mapped[int | None] = mapped_column(nullable=True)
    gender: Mapped[str | None] = mapped_column(String(16), nullable=True)  # male | female | other
    phone: Mapped[str] = mapped_column(String(32), index=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    address: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    emergency_contact: Mapped[dict | None] = mapped_column(JSON, nullable=True)  # name, relationship, phone
    medical_history: Mapped[str | None] = mapped_column(Text, nullable=True)
    allergies: Mapped[str | None] = mapped_column(Text, nullable=True)
    registration_fee: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0)
    registration_fee_paid: Mapped[bool] = mapped_column(Boolean, default=False)
    registration_payment_date: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(16), default="active")  # active | inactive | blocked

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name or ''}".strip()
