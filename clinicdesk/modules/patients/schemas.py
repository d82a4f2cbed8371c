import re
import uuid
from datetime import date, datetime
from typing import Literal
from pydantic import BaseModel, EmailStr, Field, field_validator
from clinicdesk.modules.documents.schemas import AddressBlock

# ten-digit Indian mobile number
PHONE_RE = re.compile(r"^[6-9]\d{9}$")
NAME_RE = re.compile(r"^[A-Za-z\s\.]+$")

Gender = Literal["male", "female", "other"]
PatientStatus = Literal["active", "inactive", "blocked"]

def _clean_phone(v: str | None) -> str | None:
    if v is None:
        return v
    v = re.sub(r"\s+", "", v)
    if not PHONE_RE.match(v):
        raise ValueError("Please enter a valid 10-digit mobile number")
    return v

class EmergencyContact(BaseModel):
    name: str | None = Field(None, max_length=100)
    relationship: str | None = Field(None, max_length=50)
    phone: str | None = None

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: str | None):
        return _clean_phone(v)

class PatientCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    phone: str
    email: EmailStr | None = None
    date_of_birth: date | None = None
    age: int | None = Field(None, ge=0, le=150)
    gender: Gender | None = None
    address: AddressBlock | None = None
    emergency_contact: EmergencyContact | None = None
    medical_history: str | None = Field(None, max_length=2000)
    allergies: str | None = Field(None, max_length=1000)
    registration_fee: float = Field(0, ge=0, le=10000)
    registration_fee_paid: bool = False

    @field_validator("first_name", "last_name")
    @classmethod
    def _name(cls, v: str | None):
        if v is not None and not NAME_RE.match(v):
            raise ValueError("Name can only contain letters, spaces, and dots")
        return v.strip() if v else v

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: str):
        return _clean_phone(v)

    @field_validator("date_of_birth")
    @classmethod
    def _dob(cls, v: date | None):
        if v is not None and not (0 <= date.today().year - v.year <= 150):
            raise ValueError("Invalid date of birth")
        return v

class PatientUpdate(BaseModel):
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    phone: str | None = None
    email: EmailStr | None = None
    date_of_birth: date | None = None
    age: int | None = Field(None, ge=0, le=150)
    gender: Gender | None = None
    address: AddressBlock | None = None
    emergency_contact: EmergencyContact | None = None
    medical_history: str | None = Field(None, max_length=2000)
    allergies: str | None = Field(None, max_length=1000)
    registration_fee_paid: bool | None = None
    status: PatientStatus | None = None

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: str | None):
        return _clean_phone(v)

class PatientOut(BaseModel):
    id: uuid.UUID
    uhid: str
    first_name: str
    last_name: str | None
    full_name: str
    phone: str
    email: str | None
    date_of_birth: date | None
    age: int | None
    gender: str | None
    address: AddressBlock | None
    emergency_contact: EmergencyContact | None
    medical_history: str | None
    allergies: str | None
    registration_fee: float
    registration_fee_paid: bool
    registration_payment_date: datetime | None
    status: str
    created_at: datetime

    class Config:
        from_attributes = True

class PatientPage(BaseModel):
    items: list[PatientOut]
    total: int
    limit: int
    offset: int
