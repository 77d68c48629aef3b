from .fax_schemas import (
    AssignmentResponse, CommentCreate, CommentResponse, DepartmentAssignmentRequest,
    FaxResponse, PermissionUpdate, PermissionsResponse, StatusResponse, StatusUpdate,
    UploadResponse
)

__all__ = [
    'AssignmentResponse', 'CommentCreate', 'CommentResponse', 'DepartmentAssignmentRequest',
    'FaxResponse', 'PermissionUpdate', 'PermissionsResponse', 'StatusResponse', 'StatusUpdate',
    'UploadResponse'
]
