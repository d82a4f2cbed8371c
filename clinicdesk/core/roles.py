"""Staff roles and the capabilities each one unlocks.

Navigation and route gating both read from :func:`capabilities_for`, so a
role's reach is defined in exactly one table.
"""
from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    DOCTOR = "doctor"
    RECEPTIONIST = "receptionist"
    STAFF = "staff"


class Capability(str, Enum):
    MANAGE_USERS = "manage_users"
    ASSIGN_ADMIN_ROLE = "assign_admin_role"
    TENANT_SETTINGS = "tenant_settings"
    VIEW_ANALYTICS = "view_analytics"
    VIEW_PATIENT_RISK = "view_patient_risk"
    MANAGE_PATIENTS = "manage_patients"
    MANAGE_VISITS = "manage_visits"
    VIEW_REPORTS = "view_reports"


_CLINICAL = {Capability.MANAGE_PATIENTS, Capability.MANAGE_VISITS, Capability.VIEW_REPORTS}

ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.ADMIN: frozenset(Capability),
    Role.MANAGER: frozenset(_CLINICAL | {
        Capability.MANAGE_USERS,
        Capability.VIEW_ANALYTICS,
        Capability.VIEW_PATIENT_RISK,
    }),
    Role.DOCTOR: frozenset(_CLINICAL | {Capability.VIEW_ANALYTICS, Capability.VIEW_PATIENT_RISK}),
    Role.RECEPTIONIST: frozenset(_CLINICAL),
    Role.STAFF: frozenset({Capability.VIEW_REPORTS}),
}


def parse_role(value: str | None) -> Role | None:
    if not value:
        return None
    try:
        return Role(value.lower())
    except ValueError:
        return None


def capabilities_for(role: Role | str | None) -> frozenset[Capability]:
    """Capability set for a role; unknown or missing roles get nothing."""
    if not isinstance(role, Role):
        role = parse_role(role)
    if role is None:
        return frozenset()
    return ROLE_CAPABILITIES[role]


def capabilities_for_roles(roles: list[str]) -> frozenset[Capability]:
    caps: set[Capability] = set()
    for r in roles:
        caps |= capabilities_for(r)
    return frozenset(caps)
