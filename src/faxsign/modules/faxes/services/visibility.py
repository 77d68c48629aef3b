"""
Read-access resolution for faxes.

Privileged readers (admin, manager, fax intake) see every fax. Everyone else
is judged in one of two exclusive modes, decided per group:

* restricted: the group has at least one explicit permission row, and only
  the listed users may read it;
* department: no permission rows exist, and the fax is readable by members
  of its assigned department.

A department match never grants access to a restricted fax.
"""
from typing import AbstractSet, Optional

from sqlalchemy.orm import Session

from faxsign.errors import PermissionDenied
from faxsign.modules.auth.context import Principal
from faxsign.modules.faxes.models.fax import Fax
from faxsign.modules.faxes.services.fax_group import FaxGroup
from faxsign.modules.users.services.permission import Capability


def resolve_access(principal: Principal, fax_department_id: Optional[int],
                   permitted_user_ids: AbstractSet[int]) -> bool:
    if principal.can(Capability.VIEW_ALL_FAXES):
        return True
    if permitted_user_ids:
        return principal.id in permitted_user_ids
    return principal.department_id is not None and fax_department_id == principal.department_id


def can_view_fax(session: Session, principal: Principal, fax: Fax) -> bool:
    if principal.can(Capability.VIEW_ALL_FAXES):
        return True
    group = FaxGroup.of(session, fax)
    return resolve_access(principal, fax.assigned_department_id, group.permitted_user_ids())


def ensure_can_view(session: Session, principal: Principal, fax: Fax, message: str = "Access denied"):
    if not can_view_fax(session, principal, fax):
        raise PermissionDenied(message)
