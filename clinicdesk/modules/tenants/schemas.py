import re
import uuid
from pydantic import BaseModel, EmailStr, Field, field_validator
from clinicdesk.modules.documents.schemas import AddressBlock

class TenantSettings(BaseModel):
    clinic_timing: str | None = None  # "10:00 AM - 6:00 PM"
    closed_days: str | None = None
    slot_minutes: int = Field(15, ge=5, le=240)
    consultation_fee: float | None = Field(None, ge=0)

class TenantCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    slug: str | None = Field(None, max_length=64)
    registration_number: str | None = None
    address: AddressBlock | None = None
    phone: str | None = None
    email: EmailStr | None = None
    settings: TenantSettings | None = None

    @field_validator("slug")
    @classmethod
    def _slug(cls, v: str | None):
        if v is not None and not re.fullmatch(r"[a-z0-9][a-z0-9-]*", v):
            raise ValueError("slug may contain lowercase letters, digits and dashes")
        return v

class TenantUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    registration_number: str | None = None
    address: AddressBlock | None = None
    phone: str | None = None
    email: EmailStr | None = None
    subscription_plan: str | None = None
    settings: TenantSettings | None = None

class TenantOut(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    registration_number: str | None
    address: AddressBlock | None
    phone: str | None
    email: str | None
    subscription_plan: str
    is_active: bool
    settings: TenantSettings | None

    class Config:
        from_attributes = True
