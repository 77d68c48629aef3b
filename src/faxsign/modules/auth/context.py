from dataclasses import dataclass
from typing import Optional

from faxsign.modules.users.models.user import User, UserRole
from faxsign.modules.users.services.permission import Capability, can


@dataclass(frozen=True)
class Principal:
    """Authenticated identity for the duration of one request."""
    id: int
    username: str
    role: UserRole
    department_id: Optional[int] = None
    department_name: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(
            id=user.id,
            username=user.username,
            role=user.role,
            department_id=user.department_id,
            department_name=user.department_name,
        )

    def can(self, capability: Capability) -> bool:
        return can(self.role, capability)
