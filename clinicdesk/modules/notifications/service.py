import uuid
import logging
from string import Template
from typing import Sequence
from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession
from clinicdesk.modules.notifications.models import OutboundMessage

log = logging.getLogger(__name__)

# built-in templates, rendered with string.Template
TEMPLATES: dict[str, tuple[str, str]] = {
    "staff_invitation": (
        "You're invited to join $clinic_name",
        "Hello,\n\n$inviter_name has invited you to join $clinic_name as $role.\n"
        "Accept the invitation here: $accept_url\n\n"
        "This link expires on $expires_at.",
    ),
    "appointment_confirmation": (
        "Appointment at $clinic_name",
        "Dear $patient_name,\n\nYour appointment with Dr. $doctor_name is on $date at $time.",
    ),
}

class NotificationsService:
    def __init__(self, s: AsyncSession): self.s = s

    async def send(self, org: uuid.UUID, *, channel: str, to: str, subject: str | None, body: str,
                   variables: dict | None = None, template: str | None = None, commit: bool = True) -> OutboundMessage:
        rendered_subject = Template(subject or "").safe_substitute(variables or {})
        rendered_body = Template(body or "").safe_substitute(variables or {})
        m = OutboundMessage(org_id=org, channel=channel, to=to, template=template, subject=rendered_subject or None,
                            body=rendered_body, meta=variables or {}, status="sent")
        self.s.add(m)
        await self.s.flush()
        if commit:
            await self.s.commit()
        # no delivery adapter: the message is persisted as sent
        log.info("%s message to %s recorded (template=%s)", channel, to, template)
        return m

    async def send_template(self, org: uuid.UUID, *, channel: str, to: str, template: str, variables: dict, commit: bool = True) -> OutboundMessage:
        if template not in TEMPLATES:
            raise ValueError("template_not_found")
        subject, body = TEMPLATES[template]
        return await self.send(org, channel=channel, to=to, subject=subject, body=body, variables=variables, template=template, commit=commit)

    async def list(self, org: uuid.UUID, *, to: str | None = None, limit: int = 50) -> Sequence[OutboundMessage]:
        q = select(OutboundMessage).where(OutboundMessage.org_id == org, OutboundMessage.deleted_at.is_(None))
        if to:
            q = q.where(OutboundMessage.to == to)
        res = await self.s.execute(q.order_by(desc(OutboundMessage.created_at)).limit(limit))
        return res.scalars().all()
