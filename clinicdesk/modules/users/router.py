import uuid
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from clinicdesk.core.db import get_session
from clinicdesk.core.roles import Capability, Role
from clinicdesk.core.security import Principal, get_principal, issue_token, require_capability
from clinicdesk.modules.tenants.repository import TenantRepository
from clinicdesk.modules.users.schemas import (
    AcceptedOut, ActiveChange, CapabilitiesOut, InvitationAccept, InvitationCreate, InvitationOut,
    InvitationPreview, RoleChange, StaffUserOut, StaffUserUpdate,
)
from clinicdesk.modules.users.service import UserService, accept_url

router = APIRouter()

def svc(session: AsyncSession = Depends(get_session)) -> UserService:
    return UserService(session)

ERRORS = {
    "not_found": (status.HTTP_404_NOT_FOUND, "User not found"),
    "forbidden": (status.HTTP_403_FORBIDDEN, "Only an admin can assign or modify the admin role"),
    "self_demotion": (status.HTTP_400_BAD_REQUEST, "You cannot remove your own admin role"),
    "self_deactivation": (status.HTTP_400_BAD_REQUEST, "You cannot deactivate yourself"),
    "already_member": (status.HTTP_409_CONFLICT, "A user with this email already exists"),
    "pending_exists": (status.HTTP_409_CONFLICT, "An active invitation already exists for this email"),
}

INVITATION_ERRORS = {
    "not_found": (status.HTTP_404_NOT_FOUND, "Invitation not found"),
    "used": (status.HTTP_410_GONE, "Invitation has already been used"),
    "expired": (status.HTTP_410_GONE, "Invitation has expired"),
}

def _raise(table: dict, err: str):
    code, detail = table[err]
    raise HTTPException(status_code=code, detail=detail)

@router.get("/me/capabilities", response_model=CapabilitiesOut)
async def my_capabilities(principal: Principal = Depends(get_principal)):
    return CapabilitiesOut(
        user_id=principal.user_id,
        org_id=principal.org_id,
        role=principal.primary_role,
        capabilities=sorted(c.value for c in principal.capabilities),
    )

@router.get("/users", response_model=list[StaffUserOut])
async def list_users(
    role: Role | None = None,
    active: bool | None = None,
    principal: Principal = Depends(require_capability(Capability.MANAGE_USERS)),
    service: UserService = Depends(svc),
):
    return await service.list(principal.org_id, role=role.value if role else None, active=active)

@router.get("/users/doctors", response_model=list[StaffUserOut])
async def list_doctors(
    principal: Principal = Depends(require_capability(Capability.MANAGE_VISITS)),
    service: UserService = Depends(svc),
):
    return await service.list(principal.org_id, role=Role.DOCTOR.value, active=True)

@router.patch("/users/{user_id}", response_model=StaffUserOut)
async def update_user(
    user_id: uuid.UUID,
    payload: StaffUserUpdate,
    principal: Principal = Depends(get_principal),
    service: UserService = Depends(svc),
):
    if user_id != principal.user_id and Capability.MANAGE_USERS not in principal.capabilities:
        raise HTTPException(status_code=403, detail="Insufficient role")
    obj = await service.update_profile(principal.org_id, user_id, payload)
    if not obj:
        raise HTTPException(status_code=404, detail="User not found")
    return obj

@router.patch("/users/{user_id}/role", response_model=StaffUserOut)
async def change_role(
    user_id: uuid.UUID,
    payload: RoleChange,
    principal: Principal = Depends(require_capability(Capability.MANAGE_USERS)),
    service: UserService = Depends(svc),
):
    obj, err = await service.change_role(principal, user_id, payload.role)
    if err:
        _raise(ERRORS, err)
    return obj

@router.patch("/users/{user_id}/active", response_model=StaffUserOut)
async def set_active(
    user_id: uuid.UUID,
    payload: ActiveChange,
    principal: Principal = Depends(require_capability(Capability.MANAGE_USERS)),
    service: UserService = Depends(svc),
):
    obj, err = await service.set_active(principal, user_id, payload.is_active)
    if err:
        _raise(ERRORS, err)
    return obj

@router.post("/invitations", response_model=InvitationOut, status_code=201)
async def create_invitation(
    payload: InvitationCreate,
    principal: Principal = Depends(require_capability(Capability.MANAGE_USERS)),
    service: UserService = Depends(svc),
):
    inv, err = await service.invite(principal, payload)
    if err:
        _raise(ERRORS, err)
    out = InvitationOut.model_validate(inv)
    out.accept_url = accept_url(inv.token)
    return out

@router.get("/invitations", response_model=list[InvitationOut])
async def list_invitations(
    pending: bool = False,
    principal: Principal = Depends(require_capability(Capability.MANAGE_USERS)),
    service: UserService = Depends(svc),
):
    return await service.list_invitations(principal.org_id, pending_only=pending)

@router.get("/invitations/{token}", response_model=InvitationPreview)
async def preview_invitation(token: str, session: AsyncSession = Depends(get_session)):
    inv, err = await UserService(session).lookup(token)
    if err:
        _raise(INVITATION_ERRORS, err)
    tenant = await TenantRepository(session).get(inv.org_id)
    return InvitationPreview(email=inv.email, role=inv.role, clinic_name=tenant.name if tenant else "", expires_at=inv.expires_at)

@router.post("/invitations/{token}/accept", response_model=AcceptedOut, status_code=201)
async def accept_invitation(token: str, payload: InvitationAccept, service: UserService = Depends(svc)):
    user, err = await service.accept(token, payload)
    if err:
        _raise(INVITATION_ERRORS, err)
    return AcceptedOut(
        user=StaffUserOut.model_validate(user),
        access_token=issue_token(user.id, user.org_id, [user.role]),
    )
