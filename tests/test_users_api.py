import uuid

from tests.factories import API, auth


async def test_tenant_setup_registers_owner_as_admin(client, admin, clinic, admin_id):
    assert clinic["slug"] == "sunrise-family-clinic"
    assert clinic["settings"]["consultation_fee"] == 500

    r = await client.get(f"{API}/users", headers=admin)
    users = r.json()
    assert [(u["id"], u["role"]) for u in users] == [(str(admin_id), "admin")]


async def test_tenant_setup_only_once(client, admin, clinic):
    r = await client.post(f"{API}/tenant", headers=admin, json={"name": "Second"})
    assert r.status_code == 409


async def test_tenant_settings_merge(client, admin, clinic):
    r = await client.patch(f"{API}/tenant", headers=admin, json={"settings": {"clinic_timing": "9:00 AM - 1:00 PM"}})
    assert r.status_code == 200
    settings = r.json()["settings"]
    assert settings["clinic_timing"] == "9:00 AM - 1:00 PM"
    assert settings["consultation_fee"] == 500


async def test_capabilities_follow_role(client, org_id):
    r = await client.get(f"{API}/me/capabilities", headers=auth(uuid.uuid4(), org_id, "receptionist"))
    body = r.json()
    assert body["role"] == "receptionist"
    assert "manage_visits" in body["capabilities"]
    assert "manage_users" not in body["capabilities"]


async def test_invitation_lifecycle(client, admin, clinic):
    r = await client.post(f"{API}/invitations", headers=admin, json={"email": "Nina@SunriseClinic.in", "role": "doctor"})
    assert r.status_code == 201, r.text
    inv = r.json()
    assert inv["email"] == "nina@sunriseclinic.in"
    assert inv["accept_url"].endswith(f"/signup?invitation={inv['token']}")

    r = await client.post(f"{API}/invitations", headers=admin, json={"email": "nina@sunriseclinic.in", "role": "staff"})
    assert r.status_code == 409

    r = await client.get(f"{API}/invitations/{inv['token']}")
    assert r.status_code == 200
    assert r.json()["clinic_name"] == "Sunrise Family Clinic"

    r = await client.post(f"{API}/invitations/{inv['token']}/accept", json={"full_name": "Nina Rao", "registration_number": "MMC-1"})
    assert r.status_code == 201
    body = r.json()
    assert body["user"]["role"] == "doctor"
    assert body["access_token"]

    r = await client.post(f"{API}/invitations/{inv['token']}/accept", json={"full_name": "Nina Rao"})
    assert r.status_code == 410

    r = await client.get(f"{API}/users/doctors", headers=admin)
    assert [u["full_name"] for u in r.json()] == ["Nina Rao"]

    r = await client.get(f"{API}/notifications/outbound", headers=admin, params={"to": "nina@sunriseclinic.in"})
    messages = r.json()
    assert len(messages) == 1
    assert messages[0]["template"] == "staff_invitation"
    assert inv["token"] in messages[0]["body"]


async def test_unknown_invitation_token(client, clinic):
    r = await client.get(f"{API}/invitations/not-a-token")
    assert r.status_code == 404


async def test_manager_cannot_grant_admin(client, org_id, clinic):
    manager = auth(uuid.uuid4(), org_id, "manager")
    r = await client.post(f"{API}/invitations", headers=manager, json={"email": "boss@sunriseclinic.in", "role": "admin"})
    assert r.status_code == 403
    r = await client.post(f"{API}/invitations", headers=manager, json={"email": "desk2@sunriseclinic.in", "role": "receptionist"})
    assert r.status_code == 201


async def test_role_change_rules_and_audit(client, admin, admin_id, doctor):
    r = await client.patch(f"{API}/users/{admin_id}/role", headers=admin, json={"role": "doctor"})
    assert r.status_code == 400

    r = await client.patch(f"{API}/users/{doctor.id}/role", headers=admin, json={"role": "manager"})
    assert r.status_code == 200
    assert r.json()["role"] == "manager"

    r = await client.get(f"{API}/audit", headers=admin, params={"resource_type": "staffuser"})
    assert [e["purpose"] for e in r.json()] == ["role:doctor->manager"]


async def test_cannot_deactivate_self(client, admin, admin_id, clinic):
    r = await client.patch(f"{API}/users/{admin_id}/active", headers=admin, json={"is_active": False})
    assert r.status_code == 400
