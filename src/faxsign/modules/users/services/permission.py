from enum import Enum

from faxsign.modules.users.models.user import UserRole


class Capability(Enum):
    VIEW_ALL_FAXES = "view_all_faxes"
    UPLOAD_FAXES = "upload_faxes"
    ASSIGN_FAX_DEPARTMENT = "assign_fax_department"
    MANAGE_FAX_PERMISSIONS = "manage_fax_permissions"
    ASSIGN_USER_DEPARTMENT = "assign_user_department"
    CHANGE_USER_ROLE = "change_user_role"
    MANAGE_DEPARTMENTS = "manage_departments"


# Fax department assignment and permission overrides are manager-only; admins
# are intentionally left out of both.
ROLE_CAPABILITIES = {
    UserRole.ADMIN: frozenset({
        Capability.VIEW_ALL_FAXES,
        Capability.UPLOAD_FAXES,
        Capability.ASSIGN_USER_DEPARTMENT,
        Capability.CHANGE_USER_ROLE,
        Capability.MANAGE_DEPARTMENTS,
    }),
    UserRole.MANAGER: frozenset({
        Capability.VIEW_ALL_FAXES,
        Capability.UPLOAD_FAXES,
        Capability.ASSIGN_FAX_DEPARTMENT,
        Capability.MANAGE_FAX_PERMISSIONS,
        Capability.ASSIGN_USER_DEPARTMENT,
    }),
    UserRole.FAX_INTAKE: frozenset({
        Capability.VIEW_ALL_FAXES,
        Capability.UPLOAD_FAXES,
    }),
    UserRole.STANDARD: frozenset(),
}

_unmapped = set(UserRole) - set(ROLE_CAPABILITIES)
if _unmapped:
    raise RuntimeError(f"Roles without a capability entry: {sorted(r.value for r in _unmapped)}")


def can(role: UserRole, capability: Capability) -> bool:
    return capability in ROLE_CAPABILITIES[role]

