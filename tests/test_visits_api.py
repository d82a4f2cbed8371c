from datetime import date

from tests.factories import API, prescription_payload


async def test_visit_gets_daily_number_and_default_fee(client, admin, visit):
    assert visit["visit_number"] == f"V-{date.today():%Y%m%d}-0001"
    assert visit["status"] == "scheduled"
    assert visit["consultation_fee"] == 500
    assert visit["consultation_fee_paid"] is False


async def test_visit_requires_a_doctor(client, admin, patient, clinic, admin_id):
    r = await client.post(f"{API}/visits", headers=admin, json={
        "patient_id": patient["id"], "doctor_id": str(admin_id),
        "visit_date": date.today().isoformat(), "visit_time": "09:00:00",
    })
    assert r.status_code == 400


async def test_consultation_saves_prescriptions_with_totals(client, admin, visit):
    r = await client.put(f"{API}/visits/{visit['id']}/consultation", headers=admin, json={
        "diagnosis": "Viral fever",
        "prescriptions": [
            prescription_payload(),
            prescription_payload(medicine_name="Cetirizine", dosage_amount=10, frequency_times=1, timing=["night"], duration_days=3),
        ],
    })
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "in_progress"

    r = await client.get(f"{API}/visits/{visit['id']}/prescriptions", headers=admin)
    items = r.json()
    assert [i["medicine_name"] for i in items] == ["Paracetamol", "Cetirizine"]
    assert [i["total_quantity"] for i in items] == [15, 3]


async def test_prescription_timing_must_match_frequency(client, admin, visit):
    r = await client.put(f"{API}/visits/{visit['id']}/consultation", headers=admin, json={
        "prescriptions": [prescription_payload(timing=["morning"])],
    })
    assert r.status_code == 422


async def test_prescriptions_none_keeps_and_empty_clears(client, admin, visit):
    url = f"{API}/visits/{visit['id']}/consultation"
    await client.put(url, headers=admin, json={"prescriptions": [prescription_payload()]})
    await client.put(url, headers=admin, json={"diagnosis": "Flu"})
    r = await client.get(f"{API}/visits/{visit['id']}/prescriptions", headers=admin)
    assert len(r.json()) == 1

    await client.put(url, headers=admin, json={"prescriptions": []})
    r = await client.get(f"{API}/visits/{visit['id']}/prescriptions", headers=admin)
    assert r.json() == []


async def test_status_transitions_are_enforced(client, admin, visit):
    url = f"{API}/visits/{visit['id']}/status"
    r = await client.post(url, headers=admin, json={"status": "completed"})
    assert r.status_code == 400

    assert (await client.post(url, headers=admin, json={"status": "in_progress"})).status_code == 200
    assert (await client.post(url, headers=admin, json={"status": "completed"})).status_code == 200
    r = await client.post(url, headers=admin, json={"status": "cancelled"})
    assert r.status_code == 400


async def test_archive_only_closed_visits_and_then_read_only(client, admin, visit):
    r = await client.post(f"{API}/visits/{visit['id']}/archive", headers=admin)
    assert r.status_code == 400

    await client.post(f"{API}/visits/{visit['id']}/status", headers=admin, json={"status": "cancelled"})
    r = await client.post(f"{API}/visits/{visit['id']}/archive", headers=admin)
    assert r.status_code == 200
    assert r.json()["archived_at"] is not None

    r = await client.patch(f"{API}/visits/{visit['id']}", headers=admin, json={"notes": "late edit"})
    assert r.status_code == 409


async def test_vitals_compute_bmi_once_per_visit(client, admin, visit):
    url = f"{API}/visits/{visit['id']}/vitals"
    r = await client.post(url, headers=admin, json={"height_cm": 170, "weight_kg": 70, "pulse_rate": 78})
    assert r.status_code == 201
    assert r.json()["bmi"] == 24.2

    r = await client.post(url, headers=admin, json={"pulse_rate": 80})
    assert r.status_code == 409
    r = await client.get(url, headers=admin)
    assert r.json()["pulse_rate"] == 78


async def test_payment_and_statistics(client, admin, visit):
    r = await client.post(f"{API}/visits/{visit['id']}/payment", headers=admin, json={"paid": True})
    assert r.status_code == 200
    assert r.json()["consultation_payment_date"] is not None

    r = await client.get(f"{API}/visits/statistics", headers=admin)
    stats = r.json()
    assert stats["total_visits"] == 1
    assert stats["scheduled"] == 1
    assert stats["total_revenue"] == 500
    assert stats["pending_payments"] == 0


async def test_today_and_filtered_listing(client, admin, visit, patient):
    r = await client.get(f"{API}/visits/today", headers=admin)
    assert [v["id"] for v in r.json()] == [visit["id"]]

    r = await client.get(f"{API}/visits", headers=admin, params={"patient_id": patient["id"], "status": "scheduled"})
    assert r.json()["total"] == 1
    r = await client.get(f"{API}/visits", headers=admin, params={"status": "completed"})
    assert r.json()["total"] == 0
