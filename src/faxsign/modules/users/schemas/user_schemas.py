from typing import Optional

from pydantic import BaseModel

from faxsign.modules.users.models.user import UserRole


class RoleUpdate(BaseModel):
    role: Optional[str] = None


class DepartmentAssignment(BaseModel):
    department_id: Optional[int] = None


class DepartmentRequest(BaseModel):
    name: Optional[str] = None


class DepartmentResponse(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}


class UserSummary(BaseModel):
    id: int
    username: str
    email: str
    full_name: str
    role: UserRole
    department_id: Optional[int] = None
    department_name: Optional[str] = None

    model_config = {"from_attributes": True}
