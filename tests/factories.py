from datetime import datetime, timezone

from clinicdesk.core.security import issue_token
from clinicdesk.modules.documents.schemas import PrescriptionLine

API = "/api/v1"
GENERATED_AT = datetime(2025, 8, 2, 14, 30, tzinfo=timezone.utc)


def auth(user_id, org_id, role: str = "admin") -> dict:
    return {"Authorization": f"Bearer {issue_token(user_id, org_id, [role])}"}


def paracetamol(**overrides) -> PrescriptionLine:
    data = dict(
        medicine_name="Paracetamol", dosage_amount=500, dosage_unit="mg", frequency_times=3,
        timing=["morning", "afternoon", "evening"], food_timing="after_food", duration_days=5,
    )
    data.update(overrides)
    return PrescriptionLine(**data)


def prescription_payload(**overrides) -> dict:
    data = dict(
        medicine_name="Paracetamol", dosage_amount=500, dosage_unit="mg", frequency_times=3,
        timing=["morning", "afternoon", "evening"], food_timing="after_food", duration_days=5,
    )
    data.update(overrides)
    return data
