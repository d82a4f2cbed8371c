from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, JSON, Boolean
from clinicdesk.core.base import Base, TimestampedTenantMixin

class Tenant(Base, TimestampedTenantMixin):
    # one row per clinic; id is the clinic's org_id
    name: Mapped[str] = mapped_column(String(200))
    slug: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    registration_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    address: Mapped[dict | None] = mapped_column(JSON, nullable=True)  # street, city, state, postal_code, country
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    subscription_plan: Mapped[str] = mapped_column(String(32), default="basic")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    settings: Mapped[dict | None] = mapped_column(JSON, nullable=True)  # clinic_timing, closed_days, slot_minutes, consultation_fee
