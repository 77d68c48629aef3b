import logging
from typing import Optional

from sqlalchemy.orm import Session

from faxsign.errors import NotFoundError, PermissionDenied, StateConflictError, ValidationError
from faxsign.modules.auth.context import Principal
from faxsign.modules.users.models import Department, User
from faxsign.modules.users.services.permission import Capability

logger = logging.getLogger(__name__)


class DepartmentService:

    @staticmethod
    def list_departments(session: Session) -> list[Department]:
        return session.query(Department).order_by(Department.name).all()

    @staticmethod
    def create_department(session: Session, principal: Principal, name: Optional[str]) -> Department:
        DepartmentService._require_admin(principal, "Only administrators can create departments")
        name = DepartmentService._clean_name(name)
        DepartmentService._ensure_unique(session, name)

        department = Department(name=name)
        session.add(department)
        session.commit()
        session.refresh(department)
        logger.info("Department %r created by %s", name, principal.username)
        return department

    @staticmethod
    def rename_department(session: Session, principal: Principal, department_id: int,
                          name: Optional[str]) -> Department:
        DepartmentService._require_admin(principal, "Only administrators can modify departments")
        name = DepartmentService._clean_name(name)
        department = session.get(Department, department_id)
        if not department:
            raise NotFoundError("Department not found")
        DepartmentService._ensure_unique(session, name, exclude_id=department_id)

        department.name = name
        session.commit()
        return department

    @staticmethod
    def delete_department(session: Session, principal: Principal, department_id: int) -> None:
        """Deletes a department that no user references any more"""
        DepartmentService._require_admin(principal, "Only administrators can delete departments")
        department = session.get(Department, department_id)
        if not department:
            raise NotFoundError("Department not found")

        members = session.query(User).filter(User.department_id == department_id).count()
        if members > 0:
            raise StateConflictError("Cannot delete department: users are still assigned to it")

        session.delete(department)
        session.commit()
        logger.info("Department %r deleted by %s", department.name, principal.username)

    @staticmethod
    def _require_admin(principal: Principal, message: str):
        if not principal.can(Capability.MANAGE_DEPARTMENTS):
            raise PermissionDenied(message)

    @staticmethod
    def _clean_name(name: Optional[str]) -> str:
        if not name or not name.strip():
            raise ValidationError("Department name is required")
        return name.strip()

    @staticmethod
    def _ensure_unique(session: Session, name: str, exclude_id: Optional[int] = None):
        query = session.query(Department).filter(Department.name == name)
        if exclude_id is not None:
            query = query.filter(Department.id != exclude_id)
        if query.first():
            raise StateConflictError("Department name already exists")
