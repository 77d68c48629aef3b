from .user_schemas import (
    DepartmentAssignment, DepartmentRequest, DepartmentResponse, RoleUpdate, UserSummary
)

__all__ = [
    'DepartmentAssignment', 'DepartmentRequest', 'DepartmentResponse', 'RoleUpdate', 'UserSummary'
]
