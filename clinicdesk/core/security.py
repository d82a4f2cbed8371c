import uuid
from datetime import datetime, timedelta, timezone
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from pydantic import BaseModel
from clinicdesk.core.config import settings
from clinicdesk.core.roles import Capability, capabilities_for_roles

http_bearer = HTTPBearer(auto_error=False)

class Principal(BaseModel):
    user_id: uuid.UUID
    org_id: uuid.UUID
    roles: list[str] = []
    scopes: list[str] = []

    @property
    def capabilities(self) -> frozenset[Capability]:
        return capabilities_for_roles(self.roles)

    @property
    def primary_role(self) -> str | None:
        return self.roles[0] if self.roles else None

def _decode_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG], audience=settings.REQUIRED_AUDIENCE)
        return payload
    except JWTError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=f"Invalid token: {e}")

def issue_token(user_id: uuid.UUID, org_id: uuid.UUID, roles: list[str], expires_minutes: int = 60 * 12) -> str:
    claims = {
        "sub": str(user_id),
        "org_id": str(org_id),
        "roles": roles,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=expires_minutes),
    }
    if settings.REQUIRED_AUDIENCE:
        claims["aud"] = settings.REQUIRED_AUDIENCE
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALG)

async def get_principal(creds: HTTPAuthorizationCredentials | None = Depends(http_bearer)) -> Principal:
    # In local/dev, allow missing token and use default org
    if creds is None and settings.ENV == "local":
        return Principal(user_id=uuid.uuid4(), org_id=uuid.UUID(settings.DEFAULT_ORG_ID), roles=["admin"], scopes=["*"])
    if creds is None:
        raise HTTPException(status_code=401, detail="Missing token")

    data = _decode_token(creds.credentials)
    try:
        user_id = uuid.UUID(str(data.get("sub") or data.get("user_id")))
        org_id = uuid.UUID(str(data.get("org_id") or settings.DEFAULT_ORG_ID))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token subject")
    roles = data.get("roles", [])
    scopes = data.get("scopes", [])
    return Principal(user_id=user_id, org_id=org_id, roles=roles, scopes=scopes)

def require_capability(*needed: Capability):
    def dep(principal: Principal = Depends(get_principal)) -> Principal:
        if not set(needed).issubset(principal.capabilities):
            raise HTTPException(status_code=403, detail="Insufficient role")
        return principal
    return dep
