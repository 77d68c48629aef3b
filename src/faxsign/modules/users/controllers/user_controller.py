from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from faxsign.database import get_db
from faxsign.modules.auth.context import Principal
from faxsign.modules.auth.dependencies import get_current_principal
from faxsign.modules.users.schemas import DepartmentAssignment, RoleUpdate, UserSummary
from faxsign.modules.users.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=list[UserSummary])
def list_users(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Directory used to pick signers and permission holders"""
    return UserService.list_users(db)


@router.patch("/{user_id}/role", response_model=UserSummary)
def update_user_role(
    user_id: int,
    payload: RoleUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return UserService.change_role(db, principal, user_id, payload.role)


@router.patch("/{user_id}/department", response_model=UserSummary)
def update_user_department(
    user_id: int,
    payload: DepartmentAssignment,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return UserService.assign_department(db, principal, user_id, payload.department_id)
