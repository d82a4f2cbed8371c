import uuid
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field
from clinicdesk.core.roles import Role

class StaffUserOut(BaseModel):
    id: uuid.UUID
    full_name: str
    email: str
    role: Role
    registration_number: str | None
    specialization: str | None
    phone: str | None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True

class StaffUserUpdate(BaseModel):
    full_name: str | None = Field(None, min_length=1, max_length=200)
    registration_number: str | None = None
    specialization: str | None = None
    phone: str | None = None

class RoleChange(BaseModel):
    role: Role

class ActiveChange(BaseModel):
    is_active: bool

class InvitationCreate(BaseModel):
    email: EmailStr
    role: Role

class InvitationOut(BaseModel):
    id: uuid.UUID
    email: str
    role: Role
    token: str
    expires_at: datetime
    accepted_at: datetime | None
    accept_url: str | None = None

    class Config:
        from_attributes = True

class InvitationPreview(BaseModel):
    email: str
    role: Role
    clinic_name: str
    expires_at: datetime

class InvitationAccept(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=200)
    phone: str | None = None
    registration_number: str | None = None
    specialization: str | None = None

class AcceptedOut(BaseModel):
    user: StaffUserOut
    access_token: str
    token_type: str = "bearer"

class CapabilitiesOut(BaseModel):
    user_id: uuid.UUID
    org_id: uuid.UUID
    role: str | None
    capabilities: list[str]
