import logging
from typing import Optional

from sqlalchemy.orm import Session

from faxsign.errors import NotFoundError, PermissionDenied, ValidationError
from faxsign.modules.auth.context import Principal
from faxsign.modules.users.models import Department, User, UserRole
from faxsign.modules.users.services.permission import Capability

logger = logging.getLogger(__name__)


class UserService:

    @staticmethod
    def list_users(session: Session) -> list[User]:
        return session.query(User).order_by(User.full_name).all()

    @staticmethod
    def change_role(session: Session, principal: Principal, user_id: int, role: Optional[str]) -> User:
        """
        Changes another user's role. Admin only; an admin can never change
        their own role, whatever the payload.
        """
        if not principal.can(Capability.CHANGE_USER_ROLE):
            raise PermissionDenied("Only administrators can modify user roles")

        if user_id == principal.id:
            raise ValidationError("Cannot modify your own role")

        try:
            new_role = UserRole(role)
        except ValueError:
            raise ValidationError(
                "Valid role (admin, manager, fax_intake or standard) is required"
            )

        user = session.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")

        previous = user.role
        user.role = new_role
        session.commit()
        logger.info("User %s role changed from %s to %s by %s",
                    user.username, previous.value, new_role.value, principal.username)
        return user

    @staticmethod
    def assign_department(session: Session, principal: Principal, user_id: int,
                          department_id: Optional[int]) -> User:
        """Moves a user into a department, or out of any when department_id is None"""
        if not principal.can(Capability.ASSIGN_USER_DEPARTMENT):
            raise PermissionDenied("Only managers or admins can assign users to departments")

        user = session.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")

        if department_id is not None and not session.get(Department, department_id):
            raise ValidationError("Invalid department_id")

        user.department_id = department_id
        session.commit()
        session.refresh(user)
        logger.info("User %s assigned to department %s by %s",
                    user.username, department_id, principal.username)
        return user
