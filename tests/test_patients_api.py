import uuid

from tests.factories import API, auth


async def test_register_patient_assigns_uhid(client, admin, patient):
    assert patient["uhid"].startswith("P-")
    assert patient["full_name"] == "Meera Shah"
    assert patient["status"] == "active"

    r = await client.get(f"{API}/patients/{patient['id']}", headers=admin)
    assert r.status_code == 200
    assert r.json()["uhid"] == patient["uhid"]


async def test_invalid_phone_is_rejected(client, admin, clinic):
    r = await client.post(f"{API}/patients", headers=admin, json={"first_name": "Ajay", "phone": "12345"})
    assert r.status_code == 422


async def test_phone_spaces_are_stripped(client, admin, clinic):
    r = await client.post(f"{API}/patients", headers=admin, json={"first_name": "Ajay", "phone": "98765 43211"})
    assert r.status_code == 201
    assert r.json()["phone"] == "9876543211"


async def test_search_matches_name_uhid_and_phone(client, admin, patient):
    for q in ("meera", patient["uhid"], "98765"):
        r = await client.get(f"{API}/patients", headers=admin, params={"query": q})
        body = r.json()
        assert body["total"] == 1, q
        assert body["items"][0]["id"] == patient["id"]

    r = await client.get(f"{API}/patients", headers=admin, params={"query": "nobody"})
    assert r.json()["total"] == 0


async def test_lookup_by_phone(client, admin, patient):
    r = await client.get(f"{API}/patients/by-phone/9876543210", headers=admin)
    assert [p["id"] for p in r.json()] == [patient["id"]]


async def test_update_and_soft_delete(client, admin, patient):
    r = await client.patch(f"{API}/patients/{patient['id']}", headers=admin, json={"allergies": "Penicillin"})
    assert r.status_code == 200
    assert r.json()["allergies"] == "Penicillin"

    r = await client.delete(f"{API}/patients/{patient['id']}", headers=admin)
    assert r.status_code == 204
    r = await client.get(f"{API}/patients/{patient['id']}", headers=admin)
    assert r.status_code == 404


async def test_patients_are_scoped_to_the_org(client, patient):
    other = auth(uuid.uuid4(), uuid.uuid4())
    r = await client.get(f"{API}/patients/{patient['id']}", headers=other)
    assert r.status_code == 404


async def test_staff_role_cannot_manage_patients(client, org_id, clinic):
    r = await client.get(f"{API}/patients", headers=auth(uuid.uuid4(), org_id, "staff"))
    assert r.status_code == 403


async def test_missing_token_is_unauthorized(client):
    r = await client.get(f"{API}/patients")
    assert r.status_code == 401
