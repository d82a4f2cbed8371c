from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, JSON
from clinicdesk.core.base import Base, TimestampedTenantMixin

class OutboundMessage(Base, TimestampedTenantMixin):
    channel: Mapped[str] = mapped_column(String(16))  # email | sms
    to: Mapped[str] = mapped_column(String(320))
    template: Mapped[str | None] = mapped_column(String(64), nullable=True)
    subject: Mapped[str | None] = mapped_column(String(200), nullable=True)
    body: Mapped[str] = mapped_column(Text)
    meta: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    status: Mapped[str] = mapped_column(String(16), default="queued")  # queued | sent | failed
