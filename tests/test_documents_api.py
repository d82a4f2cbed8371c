import uuid

from clinicdesk.platform.provider_registry import registry
from tests.factories import API, prescription_payload


async def test_summary_pdf_download_is_audited(client, admin, visit):
    await client.put(f"{API}/visits/{visit['id']}/consultation", headers=admin, json={
        "diagnosis": "Viral fever", "prescriptions": [prescription_payload()],
    })
    r = await client.get(f"{API}/visits/{visit['id']}/summary.pdf", headers=admin)
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert f'filename="visit-summary-{visit["visit_number"]}.pdf"' in r.headers["content-disposition"]
    assert r.content.startswith(b"%PDF")

    r = await client.get(f"{API}/audit", headers=admin, params={"resource_type": "visit", "resource_id": visit["id"]})
    events = r.json()
    assert [(e["action"], e["purpose"]) for e in events] == [("export", "summary")]


async def test_prescription_pdf_download(client, admin, visit):
    r = await client.get(f"{API}/visits/{visit['id']}/prescription.pdf", headers=admin)
    assert r.status_code == 200
    assert f'prescription-{visit["visit_number"]}.pdf' in r.headers["content-disposition"]


async def test_archive_stores_summary_in_object_storage(client, admin, visit, org_id):
    r = await client.post(f"{API}/visits/{visit['id']}/summary/archive", headers=admin)
    assert r.status_code == 201
    body = r.json()
    assert body["key"] == f"org/{org_id}/visits/{visit['id']}/summary.pdf"
    assert body["page_count"] == 1
    assert body["download_url"]

    stored = registry.object_storage().get_bytes(body["key"])
    assert stored is not None and stored.startswith(b"%PDF")
    assert len(stored) == body["size_bytes"]


async def test_unknown_visit_is_404(client, admin, clinic):
    r = await client.get(f"{API}/visits/{uuid.uuid4()}/summary.pdf", headers=admin)
    assert r.status_code == 404
