import uuid
from datetime import date
from typing import Literal
from pydantic import BaseModel

Timeframe = Literal["7d", "2w", "1m", "3m", "6m", "custom"]

class DailyPoint(BaseModel):
    day: date
    visits: int = 0
    revenue: float = 0

class DiagnosisCount(BaseModel):
    diagnosis: str
    count: int

class DoctorBreakdown(BaseModel):
    doctor_id: uuid.UUID
    doctor_name: str | None = None
    visits: int = 0
    completed: int = 0
    revenue: float = 0

class Overview(BaseModel):
    date_from: date
    date_to: date
    days: int
    total_visits: int = 0
    visits_by_status: dict[str, int] = {}
    unique_patients: int = 0
    new_patients: int = 0
    follow_up_visits: int = 0
    total_revenue: float = 0
    outstanding_fees: float = 0
    # None when no fee was due in the period
    collection_rate: float | None = None
    average_fee: float | None = None
    daily: list[DailyPoint] = []
    top_diagnoses: list[DiagnosisCount] = []
    doctors: list[DoctorBreakdown] = []

class RevenueReport(BaseModel):
    date_from: date
    date_to: date
    total_due: float = 0
    total_collected: float = 0
    outstanding: float = 0
    collection_rate: float | None = None
    paid_visits: int = 0
    unpaid_visits: int = 0
    registration_fees_collected: float = 0
    daily: list[DailyPoint] = []

RiskLevel = Literal["low", "medium", "high"]

class PatientRisk(BaseModel):
    patient_id: uuid.UUID
    uhid: str
    name: str
    phone: str
    last_visit: date
    days_since_last_visit: int
    visit_count: int
    follow_up_date: date | None = None
    risk_factors: list[str] = []
    risk_score: int
    risk_level: RiskLevel

class PatientRiskReport(BaseModel):
    as_of: date
    patients: list[PatientRisk] = []
