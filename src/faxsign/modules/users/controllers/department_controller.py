from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from faxsign.database import get_db
from faxsign.modules.auth.context import Principal
from faxsign.modules.auth.dependencies import get_current_principal
from faxsign.modules.users.schemas import DepartmentRequest, DepartmentResponse
from faxsign.modules.users.services.department_service import DepartmentService

router = APIRouter(prefix="/departments", tags=["departments"])


@router.get("", response_model=list[DepartmentResponse])
def list_departments(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return DepartmentService.list_departments(db)


@router.post("", response_model=DepartmentResponse)
def create_department(
    payload: DepartmentRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return DepartmentService.create_department(db, principal, payload.name)


@router.put("/{department_id}", response_model=DepartmentResponse)
def update_department(
    department_id: int,
    payload: DepartmentRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return DepartmentService.rename_department(db, principal, department_id, payload.name)


@router.delete("/{department_id}")
def delete_department(
    department_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    DepartmentService.delete_department(db, principal, department_id)
    return {"message": "Department deleted successfully"}
