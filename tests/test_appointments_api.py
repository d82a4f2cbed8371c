from datetime import date, timedelta

import pytest

from tests.factories import API


@pytest.fixture
def day():
    return date.today() + timedelta(days=7)


def booking(patient, doctor, day, start="10:00:00", **extra):
    return {"patient_id": patient["id"], "doctor_id": str(doctor.id), "appointment_date": day.isoformat(),
            "start_time": start, "duration_minutes": 30, **extra}


@pytest.fixture
async def schedule(client, admin, doctor, day):
    r = await client.post(f"{API}/availability/schedules", headers=admin, json={
        "doctor_id": str(doctor.id), "day_of_week": day.weekday(),
        "start_minute": 10 * 60, "end_minute": 12 * 60, "slot_minutes": 30,
    })
    assert r.status_code == 201, r.text
    return r.json()


async def test_booking_computes_end_and_notifies_patient(client, admin, patient, doctor, day):
    r = await client.post(f"{API}/appointments", headers=admin, json=booking(patient, doctor, day))
    assert r.status_code == 201, r.text
    appt = r.json()
    assert appt["end_time"] == "10:30:00"
    assert appt["status"] == "scheduled"

    r = await client.get(f"{API}/notifications/outbound", headers=admin, params={"to": patient["email"]})
    assert [m["template"] for m in r.json()] == ["appointment_confirmation"]


async def test_overlapping_booking_conflicts(client, admin, patient, doctor, day):
    assert (await client.post(f"{API}/appointments", headers=admin, json=booking(patient, doctor, day))).status_code == 201
    r = await client.post(f"{API}/appointments", headers=admin, json=booking(patient, doctor, day, start="10:15:00"))
    assert r.status_code == 409
    r = await client.post(f"{API}/appointments", headers=admin, json=booking(patient, doctor, day, start="10:30:00"))
    assert r.status_code == 201


async def test_cancelled_appointment_frees_the_slot(client, admin, patient, doctor, day):
    appt = (await client.post(f"{API}/appointments", headers=admin, json=booking(patient, doctor, day))).json()
    r = await client.post(f"{API}/appointments/{appt['id']}/status", headers=admin, json={"status": "cancelled", "cancel_reason": "travel"})
    assert r.json()["cancel_reason"] == "travel"
    r = await client.post(f"{API}/appointments", headers=admin, json=booking(patient, doctor, day))
    assert r.status_code == 201


async def test_schedule_limits_bookable_times(client, admin, patient, doctor, day, schedule):
    r = await client.post(f"{API}/appointments", headers=admin, json=booking(patient, doctor, day, start="13:00:00"))
    assert r.status_code == 409
    r = await client.post(f"{API}/appointments", headers=admin, json=booking(patient, doctor, day, start="11:30:00"))
    assert r.status_code == 201


async def test_slot_search_marks_booked_slots(client, admin, patient, doctor, day, schedule):
    await client.post(f"{API}/appointments", headers=admin, json=booking(patient, doctor, day))
    params = {"doctor_id": str(doctor.id), "date_from": day.isoformat()}

    r = await client.get(f"{API}/availability/slots", headers=admin, params=params)
    assert [s["start"][11:16] for s in r.json()] == ["10:30", "11:00", "11:30"]

    r = await client.get(f"{API}/availability/slots", headers=admin, params={**params, "include_booked": "true"})
    states = {s["start"][11:16]: s["state"] for s in r.json()}
    assert states == {"10:00": "booked", "10:30": "open", "11:00": "open", "11:30": "open"}


async def test_booking_requires_a_doctor(client, admin, patient, doctor, admin_id, day):
    body = {**booking(patient, doctor, day), "doctor_id": str(admin_id)}
    r = await client.post(f"{API}/appointments", headers=admin, json=body)
    assert r.status_code == 400


async def test_check_in_creates_linked_visit(client, admin, patient, doctor, day):
    appt = (await client.post(f"{API}/appointments", headers=admin, json=booking(patient, doctor, day, reason="Cough"))).json()

    r = await client.post(f"{API}/appointments/{appt['id']}/check-in", headers=admin, json={})
    assert r.status_code == 200, r.text
    checked = r.json()
    assert checked["status"] == "waiting"
    assert checked["checked_in_at"] is not None

    r = await client.get(f"{API}/visits/{checked['visit_id']}", headers=admin)
    visit = r.json()
    assert visit["appointment_id"] == appt["id"]
    assert visit["chief_complaints"] == "Cough"
    assert visit["consultation_fee"] == 500

    r = await client.post(f"{API}/appointments/{appt['id']}/check-in", headers=admin, json={})
    assert r.status_code == 409


async def test_visit_progress_moves_appointment_along(client, admin, patient, doctor, day):
    appt = (await client.post(f"{API}/appointments", headers=admin, json=booking(patient, doctor, day))).json()
    visit_id = (await client.post(f"{API}/appointments/{appt['id']}/check-in", headers=admin, json={})).json()["visit_id"]

    await client.post(f"{API}/visits/{visit_id}/status", headers=admin, json={"status": "in_progress"})
    assert (await client.get(f"{API}/appointments/{appt['id']}", headers=admin)).json()["status"] == "in_progress"

    await client.post(f"{API}/visits/{visit_id}/status", headers=admin, json={"status": "completed"})
    assert (await client.get(f"{API}/appointments/{appt['id']}", headers=admin)).json()["status"] == "completed"


async def test_no_show_cancels_linked_visit(client, admin, patient, doctor, day):
    appt = (await client.post(f"{API}/appointments", headers=admin, json=booking(patient, doctor, day))).json()
    visit_id = (await client.post(f"{API}/appointments/{appt['id']}/check-in", headers=admin, json={})).json()["visit_id"]

    r = await client.post(f"{API}/appointments/{appt['id']}/status", headers=admin, json={"status": "no_show"})
    assert r.status_code == 200
    assert (await client.get(f"{API}/visits/{visit_id}", headers=admin)).json()["status"] == "cancelled"


async def test_invalid_transition_and_stats(client, admin, patient, doctor, day):
    appt = (await client.post(f"{API}/appointments", headers=admin, json=booking(patient, doctor, day))).json()
    r = await client.post(f"{API}/appointments/{appt['id']}/status", headers=admin, json={"status": "completed"})
    assert r.status_code == 400
    await client.post(f"{API}/appointments/{appt['id']}/status", headers=admin, json={"status": "confirmed"})

    r = await client.get(f"{API}/appointments/stats", headers=admin, params={"day": day.isoformat()})
    stats = r.json()
    assert stats["today"] == 1
    assert stats["confirmed"] == 1
    assert stats["scheduled"] == 0
