import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ENV"] = "test"
os.environ["DB_MANAGE"] = "create_all"
os.environ["OUTBOX_RELAY_ENABLED"] = "false"
os.environ["EVENT_BUS_PROVIDER"] = "noop"

import uuid
from datetime import date, time

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from clinicdesk.core.db import get_session, import_models
from clinicdesk.main import app
from clinicdesk.modules.documents.schemas import (
    AddressBlock, ClinicIdentity, DoctorInfo, PatientInfo, VisitRecord, VitalsInfo,
)
from clinicdesk.modules.users.repository import StaffUserRepository
from clinicdesk.platform.adapters.bus_noop import NoopEventBus
from clinicdesk.platform.adapters.storage_local import LocalFilesystemStorage
from clinicdesk.platform.provider_registry import registry
from tests.factories import API, auth, paracetamol


@pytest.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
    metadata = import_models()
    async with eng.begin() as conn:
        await conn.run_sync(metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture(autouse=True)
def providers(tmp_path):
    bus = NoopEventBus()
    registry.use(object_storage=LocalFilesystemStorage(str(tmp_path / "media")), event_bus=bus)
    yield bus
    registry.reset()


@pytest.fixture
async def client(session_factory):
    async def override():
        async with session_factory() as s:
            yield s

    app.dependency_overrides[get_session] = override
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def org_id():
    return uuid.uuid4()


@pytest.fixture
def admin_id():
    return uuid.uuid4()


@pytest.fixture
def admin(admin_id, org_id):
    return auth(admin_id, org_id)


@pytest.fixture
async def clinic(client, admin):
    r = await client.post(f"{API}/tenant", headers=admin, json={
        "name": "Sunrise Family Clinic",
        "registration_number": "CLN-2231",
        "address": {"street": "12 MG Road", "city": "Pune", "state": "MH", "postal_code": "411001"},
        "phone": "9822001122",
        "email": "desk@sunriseclinic.in",
        "settings": {"clinic_timing": "10:00 AM - 6:00 PM", "closed_days": "Sunday", "consultation_fee": 500},
        "owner_name": "Asha Admin",
        "owner_email": "asha@sunriseclinic.in",
    })
    assert r.status_code == 201, r.text
    return r.json()


@pytest.fixture
async def doctor(session_factory, org_id, clinic):
    async with session_factory() as s:
        user = await StaffUserRepository(s).create(
            org_id, full_name="Ravi Kumar", email="ravi@sunriseclinic.in", role="doctor", registration_number="MMC-55821",
        )
        await s.commit()
        return user


@pytest.fixture
async def patient(client, admin, clinic):
    r = await client.post(f"{API}/patients", headers=admin, json={
        "first_name": "Meera", "last_name": "Shah", "phone": "9876543210",
        "email": "meera@example.com", "age": 34, "gender": "female",
    })
    assert r.status_code == 201, r.text
    return r.json()


@pytest.fixture
async def visit(client, admin, patient, doctor):
    r = await client.post(f"{API}/visits", headers=admin, json={
        "patient_id": patient["id"], "doctor_id": str(doctor.id),
        "visit_date": date.today().isoformat(), "visit_time": "10:30:00",
        "chief_complaints": "Fever and body ache",
    })
    assert r.status_code == 201, r.text
    return r.json()


# ---- document fixtures ----

@pytest.fixture
def clinic_identity():
    return ClinicIdentity(
        name="Sunrise Family Clinic",
        registration_number="CLN-2231",
        address=AddressBlock(street="12 MG Road", city="Pune", state="MH", postal_code="411001"),
        phone="9822001122",
        email="desk@sunriseclinic.in",
        timing="10:00 AM - 6:00 PM",
        closed_days="Sunday",
    )


@pytest.fixture
def record():
    return VisitRecord(
        visit_number="V-20250802-0001",
        visit_date=date(2025, 8, 2),
        visit_time=time(10, 30),
        visit_type="new",
        status="completed",
        consultation_fee=500,
        consultation_fee_paid=True,
        chief_complaints="Fever and body ache",
        diagnosis="Viral fever",
        general_advice="Rest and fluids",
        patient=PatientInfo(first_name="Meera", last_name="Shah", uhid="P-20250802-101500-001", phone="9876543210", age=34, gender="female"),
        doctor=DoctorInfo(full_name="Ravi Kumar", registration_number="MMC-55821"),
        vitals=VitalsInfo(height_cm=170, weight_kg=70, pulse_rate=78, spo2=98),
        prescriptions=[paracetamol()],
    )
