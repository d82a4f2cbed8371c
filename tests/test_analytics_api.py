import uuid
from datetime import date, timedelta

from clinicdesk.modules.analytics.service import risk_factors, risk_level
from tests.factories import API, auth


async def test_overview_uses_stored_fees_only(client, admin, visit, patient, doctor):
    await client.post(f"{API}/visits/{visit['id']}/payment", headers=admin, json={"paid": True})
    await client.put(f"{API}/visits/{visit['id']}/consultation", headers=admin, json={"diagnosis": "Viral fever"})
    r = await client.post(f"{API}/visits", headers=admin, json={
        "patient_id": patient["id"], "doctor_id": str(doctor.id), "visit_type": "follow_up",
        "visit_date": date.today().isoformat(), "visit_time": "12:00:00", "consultation_fee": 300,
    })
    assert r.status_code == 201

    r = await client.get(f"{API}/analytics/overview", headers=admin, params={"timeframe": "7d"})
    assert r.status_code == 200
    body = r.json()
    assert body["days"] == 7
    assert body["total_visits"] == 2
    assert body["visits_by_status"] == {"in_progress": 1, "scheduled": 1}
    assert body["unique_patients"] == 1
    assert body["new_patients"] == 1
    assert body["follow_up_visits"] == 1
    assert body["total_revenue"] == 500
    assert body["outstanding_fees"] == 300
    assert body["collection_rate"] == 62.5
    assert body["top_diagnoses"] == [{"diagnosis": "Viral fever", "count": 1}]
    assert body["doctors"][0]["doctor_name"] == "Ravi Kumar"
    assert len(body["daily"]) == 7
    assert body["daily"][-1] == {"day": date.today().isoformat(), "visits": 2, "revenue": 500}


async def test_empty_period_has_no_collection_rate(client, admin, clinic):
    r = await client.get(f"{API}/analytics/overview", headers=admin, params={"timeframe": "1m"})
    body = r.json()
    assert body["total_visits"] == 0
    assert body["collection_rate"] is None
    assert body["average_fee"] is None


async def test_custom_range_revenue(client, admin, visit):
    await client.post(f"{API}/visits/{visit['id']}/payment", headers=admin, json={"paid": True})
    today = date.today()
    r = await client.get(f"{API}/analytics/revenue", headers=admin, params={
        "timeframe": "custom", "from": (today - timedelta(days=2)).isoformat(), "to": today.isoformat(),
    })
    body = r.json()
    assert body["total_collected"] == 500
    assert body["collection_rate"] == 100
    assert body["paid_visits"] == 1
    assert len(body["daily"]) == 3


async def test_custom_range_needs_bounds(client, admin, clinic):
    r = await client.get(f"{API}/analytics/overview", headers=admin, params={"timeframe": "custom"})
    assert r.status_code == 400


async def test_receptionist_cannot_view_analytics(client, org_id, clinic):
    r = await client.get(f"{API}/analytics/overview", headers=auth(uuid.uuid4(), org_id, "receptionist"))
    assert r.status_code == 403


async def test_daily_revenue_ignores_cancelled_paid_visits(client, admin, visit, patient, doctor):
    await client.post(f"{API}/visits/{visit['id']}/payment", headers=admin, json={"paid": True})
    r = await client.post(f"{API}/visits", headers=admin, json={
        "patient_id": patient["id"], "doctor_id": str(doctor.id),
        "visit_date": date.today().isoformat(), "visit_time": "16:00:00", "consultation_fee": 300,
    })
    cancelled = r.json()
    await client.post(f"{API}/visits/{cancelled['id']}/payment", headers=admin, json={"paid": True})
    r = await client.post(f"{API}/visits/{cancelled['id']}/status", headers=admin, json={"status": "cancelled"})
    assert r.status_code == 200

    body = (await client.get(f"{API}/analytics/overview", headers=admin, params={"timeframe": "7d"})).json()
    assert body["total_revenue"] == 500
    assert sum(p["revenue"] for p in body["daily"]) == body["total_revenue"]
    assert body["daily"][-1]["visits"] == 2
    assert body["doctors"][0]["revenue"] == 500

    report = (await client.get(f"{API}/analytics/revenue", headers=admin, params={"timeframe": "7d"})).json()
    assert sum(p["revenue"] for p in report["daily"]) == report["total_collected"] == 500


def test_risk_score_from_visit_history():
    today = date(2025, 8, 2)
    assert risk_factors(today - timedelta(days=100), 1, today - timedelta(days=80), today) == (
        75, ["No visit in 90+ days", "Only one visit", "Missed follow-up"],
    )
    assert risk_factors(today - timedelta(days=61), 2, None, today) == (35, ["No visit in 60+ days", "Low visit frequency"])
    assert risk_factors(today - timedelta(days=30), 5, today + timedelta(days=7), today) == (0, [])
    assert risk_level(75) == "high" and risk_level(35) == "medium" and risk_level(10) == "low"


async def test_patient_risk_lists_lapsed_patients(client, admin, org_id, patient, doctor):
    today = date.today()
    r = await client.post(f"{API}/visits", headers=admin, json={
        "patient_id": patient["id"], "doctor_id": str(doctor.id),
        "visit_date": (today - timedelta(days=100)).isoformat(), "visit_time": "10:00:00",
    })
    old = r.json()
    await client.put(f"{API}/visits/{old['id']}/consultation", headers=admin, json={
        "diagnosis": "Hypertension", "follow_up_date": (today - timedelta(days=80)).isoformat(),
    })

    r = await client.post(f"{API}/patients", headers=admin, json={"first_name": "Arjun", "last_name": "Rao", "phone": "9123456780"})
    regular = r.json()
    for hour in (9, 11, 13):
        await client.post(f"{API}/visits", headers=admin, json={
            "patient_id": regular["id"], "doctor_id": str(doctor.id),
            "visit_date": today.isoformat(), "visit_time": f"{hour:02d}:00:00",
        })

    r = await client.get(f"{API}/analytics/patient-risk", headers=auth(doctor.id, org_id, "doctor"))
    assert r.status_code == 200
    body = r.json()
    assert body["as_of"] == today.isoformat()
    assert [p["name"] for p in body["patients"]] == ["Meera Shah"]
    row = body["patients"][0]
    assert row["days_since_last_visit"] == 100
    assert row["visit_count"] == 1
    assert row["risk_score"] == 75
    assert row["risk_level"] == "high"
    assert row["risk_factors"] == ["No visit in 90+ days", "Only one visit", "Missed follow-up"]


async def test_receptionist_cannot_view_patient_risk(client, org_id, clinic):
    r = await client.get(f"{API}/analytics/patient-risk", headers=auth(uuid.uuid4(), org_id, "receptionist"))
    assert r.status_code == 403
