from fastapi import APIRouter
from clinicdesk.modules.tenants.router import router as tenants_router
from clinicdesk.modules.users.router import router as users_router
from clinicdesk.modules.patients.router import router as patients_router
from clinicdesk.modules.visits.router import router as visits_router
from clinicdesk.modules.documents.router import router as documents_router
from clinicdesk.modules.appointments.router import router as appointments_router
from clinicdesk.modules.availability.router import router as availability_router
from clinicdesk.modules.analytics.router import router as analytics_router
from clinicdesk.modules.notifications.router import router as notifications_router
from clinicdesk.modules.audit.router import router as audit_router

api_router = APIRouter()
api_router.include_router(tenants_router, tags=["tenant"])
api_router.include_router(users_router, tags=["users"])
api_router.include_router(patients_router, prefix="/patients", tags=["patients"])
api_router.include_router(visits_router, prefix="/visits", tags=["visits"])
# documents_router mounts its own /visits/{id}/... paths
api_router.include_router(documents_router, tags=["documents"])
api_router.include_router(appointments_router, prefix="/appointments", tags=["appointments"])
api_router.include_router(availability_router, tags=["availability"])
api_router.include_router(analytics_router, tags=["analytics"])
api_router.include_router(notifications_router, tags=["notifications"])
api_router.include_router(audit_router, tags=["audit"])

@api_router.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}
