from datetime import date, datetime, time
from pydantic import BaseModel, Field
from clinicdesk.modules.visits.clinical import total_quantity

class AddressBlock(BaseModel):
    street: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None

    def one_line(self) -> str:
        return ", ".join(p for p in (self.street, self.city, self.state, self.postal_code) if p)

class ClinicIdentity(BaseModel):
    name: str = ""
    registration_number: str | None = None
    address: AddressBlock | None = None
    phone: str | None = None
    email: str | None = None
    timing: str | None = None
    closed_days: str | None = None

class PatientInfo(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    uhid: str | None = None
    phone: str | None = None
    email: str | None = None
    age: int | None = None
    gender: str | None = None
    address: AddressBlock | None = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

class DoctorInfo(BaseModel):
    full_name: str | None = None
    registration_number: str | None = None
    email: str | None = None
    specialization: str | None = None

class VitalsInfo(BaseModel):
    height_cm: float | None = None
    weight_kg: float | None = None
    bmi: float | None = None
    pulse_rate: float | None = None
    blood_pressure_systolic: float | None = None
    blood_pressure_diastolic: float | None = None
    spo2: float | None = None
    temperature_celsius: float | None = None
    respiratory_rate: float | None = None
    blood_glucose: float | None = None
    notes: str | None = None
    recorded_at: datetime | None = None

class PrescriptionLine(BaseModel):
    medicine_name: str = ""
    dosage_amount: float | None = None
    dosage_unit: str = ""
    frequency_times: int = 0
    timing: list[str] = Field(default_factory=list)
    food_timing: str | None = None
    duration_days: int = 0
    instructions: str | None = None
    total_quantity: int | None = None

    @property
    def quantity(self) -> int:
        if self.total_quantity is not None:
            return self.total_quantity
        return total_quantity(self.frequency_times, self.duration_days)

class VisitRecord(BaseModel):
    visit_number: str | None = None
    visit_date: date | None = None
    visit_time: time | None = None
    visit_type: str | None = None
    status: str | None = None
    consultation_fee: float | None = None
    consultation_fee_paid: bool = False
    chief_complaints: str | None = None
    history_of_present_illness: str | None = None
    physical_examination: str | None = None
    diagnosis: str | None = None
    treatment_plan: str | None = None
    general_advice: str | None = None
    follow_up_date: date | None = None
    follow_up_instructions: str | None = None
    patient: PatientInfo | None = None
    doctor: DoctorInfo | None = None
    vitals: VitalsInfo | None = None
    prescriptions: list[PrescriptionLine] = Field(default_factory=list)
