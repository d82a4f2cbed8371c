import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, TIMESTAMP
from clinicdesk.core.base import Base, TimestampedTenantMixin, utcnow

class AuditEvent(Base, TimestampedTenantMixin):
    actor_user_id: Mapped[uuid.UUID] = mapped_column()
    action: Mapped[str] = mapped_column(String(24))  # read | write | export | archive | admin
    resource_type: Mapped[str] = mapped_column(String(48))  # visit | patient | invitation | staffuser | tenant
    resource_id: Mapped[str] = mapped_column(String(64))
    purpose: Mapped[str | None] = mapped_column(String(64), nullable=True)  # summary | prescription | role:doctor->manager
    success: Mapped[bool] = mapped_column(default=True)
    client_ip: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(256), nullable=True)
    occurred_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=utcnow)
