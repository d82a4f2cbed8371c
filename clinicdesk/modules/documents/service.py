import uuid
import logging
from datetime import datetime
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession
from clinicdesk.modules.audit.service import AuditService
from clinicdesk.modules.documents.layout import RenderedDocument
from clinicdesk.modules.documents.prescription_pad import render_prescription_pad
from clinicdesk.modules.documents.schemas import AddressBlock, DoctorInfo, PatientInfo, PrescriptionLine, VisitRecord, VitalsInfo
from clinicdesk.modules.documents.visit_summary import render_visit_summary
from clinicdesk.modules.patients.repository import PatientRepository
from clinicdesk.modules.patients.service import age_from_dob
from clinicdesk.modules.tenants.repository import TenantRepository
from clinicdesk.modules.tenants.service import clinic_identity
from clinicdesk.modules.users.repository import StaffUserRepository
from clinicdesk.modules.visits.repository import PrescriptionRepository, VisitRepository, VitalsRepository
from clinicdesk.platform.provider_registry import registry

log = logging.getLogger(__name__)

DOWNLOAD_URL_TTL_SECONDS = 600

RENDERERS = {
    "summary": (render_visit_summary, "visit-summary"),
    "prescription": (render_prescription_pad, "prescription"),
}

def archive_key(org_id: uuid.UUID, visit_id: uuid.UUID, kind: str = "summary") -> str:
    return f"org/{org_id}/visits/{visit_id}/{kind}.pdf"

def document_filename(kind: str, visit_number: str | None) -> str:
    _, stem = RENDERERS[kind]
    return f"{stem}-{visit_number or 'document'}.pdf"

class DocumentService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.visits = VisitRepository(session)

    async def load_record(self, org_id: uuid.UUID, visit_id: uuid.UUID) -> VisitRecord | None:
        visit = await self.visits.get(org_id, visit_id)
        if not visit:
            return None
        patient = await PatientRepository(self.session).get(org_id, visit.patient_id)
        doctor = await StaffUserRepository(self.session).get(org_id, visit.doctor_id)
        vitals = await VitalsRepository(self.session).for_visit(org_id, visit.id)
        items = await PrescriptionRepository(self.session).for_visit(org_id, visit.id)

        patient_info = None
        if patient:
            age = patient.age
            if age is None and patient.date_of_birth:
                age = age_from_dob(patient.date_of_birth)
            patient_info = PatientInfo(
                first_name=patient.first_name,
                last_name=patient.last_name,
                uhid=patient.uhid,
                phone=patient.phone,
                email=patient.email,
                age=age,
                gender=patient.gender,
                address=AddressBlock(**patient.address) if patient.address else None,
            )
        doctor_info = None
        if doctor:
            doctor_info = DoctorInfo(
                full_name=doctor.full_name,
                registration_number=doctor.registration_number,
                email=doctor.email,
                specialization=doctor.specialization,
            )
        return VisitRecord(
            visit_number=visit.visit_number,
            visit_date=visit.visit_date,
            visit_time=visit.visit_time,
            visit_type=visit.visit_type,
            status=visit.status,
            consultation_fee=visit.consultation_fee,
            consultation_fee_paid=visit.consultation_fee_paid,
            chief_complaints=visit.chief_complaints,
            history_of_present_illness=visit.history_of_present_illness,
            physical_examination=visit.physical_examination,
            diagnosis=visit.diagnosis,
            treatment_plan=visit.treatment_plan,
            general_advice=visit.general_advice,
            follow_up_date=visit.follow_up_date,
            follow_up_instructions=visit.follow_up_instructions,
            patient=patient_info,
            doctor=doctor_info,
            vitals=VitalsInfo.model_validate(vitals, from_attributes=True) if vitals else None,
            prescriptions=[PrescriptionLine.model_validate(i, from_attributes=True) for i in items],
        )

    async def render(self, org_id: uuid.UUID, visit_id: uuid.UUID, kind: str, *, actor: uuid.UUID,
                     request: Request | None = None, generated_at: datetime | None = None):
        record = await self.load_record(org_id, visit_id)
        if record is None:
            return None, None
        clinic = clinic_identity(await TenantRepository(self.session).get(org_id))
        render, _ = RENDERERS[kind]
        doc = render(record, clinic, generated_at=generated_at)
        await AuditService(self.session).log(org_id, actor, "export", "visit", visit_id, purpose=kind, request=request)
        log.info("Exported %s for visit %s (%d bytes)", kind, record.visit_number, len(doc.content))
        return doc, document_filename(kind, record.visit_number)

    async def archive_summary(self, org_id: uuid.UUID, visit_id: uuid.UUID, *, actor: uuid.UUID, request: Request | None = None):
        doc, filename = await self.render(org_id, visit_id, "summary", actor=actor, request=request)
        if doc is None:
            return None
        key = archive_key(org_id, visit_id)
        storage = registry.object_storage()
        storage.put_bytes(key, doc.get_blob(), content_type=doc.media_type)
        return {
            "key": key,
            "filename": filename,
            "size_bytes": len(doc.content),
            "page_count": doc.page_count,
            "download_url": storage.presign_download(key, expires_seconds=DOWNLOAD_URL_TTL_SECONDS, filename=filename),
        }
