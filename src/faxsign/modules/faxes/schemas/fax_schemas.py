from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel

from faxsign.modules.faxes.models.fax import FaxStatus


class FaxResponse(BaseModel):
    id: int
    fax_number: str
    sender_name: str
    received_at: datetime
    status: FaxStatus
    confirmed_at: Optional[datetime] = None
    group_id: Optional[str] = None
    original_filename: str
    content_type: str
    file_size: int
    page_count: Optional[int] = None
    uploaded_by_id: int
    uploaded_by_name: Optional[str] = None
    assigned_department_id: Optional[int] = None
    assigned_department_name: Optional[str] = None
    permissions_count: int
    comments_count: int
    is_permitted: bool


class UploadResponse(BaseModel):
    message: str
    group_id: Optional[str] = None
    fax_ids: List[int]


class StatusUpdate(BaseModel):
    status: Optional[str] = None


class StatusResponse(BaseModel):
    message: str
    fax_id: int
    status: FaxStatus


class DepartmentAssignmentRequest(BaseModel):
    department_id: Optional[int] = None


class AssignmentResponse(BaseModel):
    message: str
    fax_ids: List[int]
    department_id: int


class PermissionUpdate(BaseModel):
    # Entries that are not positive integers are ignored
    user_ids: List[Any] = []


class PermittedUser(BaseModel):
    id: int
    username: str
    full_name: str

    model_config = {"from_attributes": True}


class PermissionsResponse(BaseModel):
    fax_id: int
    group_id: Optional[str] = None
    fax_ids: List[int]
    restricted: bool
    user_ids: List[int]
    users: List[PermittedUser]


class CommentCreate(BaseModel):
    comment: Optional[str] = None


class CommentResponse(BaseModel):
    id: int
    fax_id: int
    author_id: int
    author_name: Optional[str] = None
    text: str
    created_at: datetime

    model_config = {"from_attributes": True}
