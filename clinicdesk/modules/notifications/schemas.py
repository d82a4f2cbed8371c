import uuid
from datetime import datetime
from pydantic import BaseModel

class OutboundOut(BaseModel):
    id: uuid.UUID
    channel: str
    to: str
    template: str | None
    subject: str | None
    body: str
    status: str
    created_at: datetime

    class Config:
        from_attributes = True
