from .department import Department
from .user import User, UserRole

__all__ = ['Department', 'User', 'UserRole']
