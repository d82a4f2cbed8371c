import uuid
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from clinicdesk.core.db import get_session
from clinicdesk.core.roles import Capability
from clinicdesk.core.security import Principal, require_capability
from clinicdesk.modules.documents.service import DocumentService

router = APIRouter()

can_manage = require_capability(Capability.MANAGE_VISITS)

def svc(s: AsyncSession = Depends(get_session)) -> DocumentService:
    return DocumentService(s)

class ArchivedDocument(BaseModel):
    key: str
    filename: str
    size_bytes: int
    page_count: int
    download_url: str

async def _download(kind: str, visit_id: uuid.UUID, request: Request, principal: Principal, service: DocumentService):
    doc, filename = await service.render(principal.org_id, visit_id, kind, actor=principal.user_id, request=request)
    if doc is None:
        raise HTTPException(404, "Visit not found")
    return doc.download(filename)

@router.get("/visits/{visit_id}/summary.pdf")
async def visit_summary_pdf(visit_id: uuid.UUID, request: Request, principal: Principal = Depends(can_manage), service: DocumentService = Depends(svc)):
    return await _download("summary", visit_id, request, principal, service)

@router.get("/visits/{visit_id}/prescription.pdf")
async def prescription_pdf(visit_id: uuid.UUID, request: Request, principal: Principal = Depends(can_manage), service: DocumentService = Depends(svc)):
    return await _download("prescription", visit_id, request, principal, service)

@router.post("/visits/{visit_id}/summary/archive", response_model=ArchivedDocument, status_code=201)
async def archive_summary(visit_id: uuid.UUID, request: Request, principal: Principal = Depends(can_manage), service: DocumentService = Depends(svc)):
    out = await service.archive_summary(principal.org_id, visit_id, actor=principal.user_id, request=request)
    if out is None:
        raise HTTPException(404, "Visit not found")
    return out
