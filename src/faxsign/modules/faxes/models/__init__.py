from .comment import Comment, MAX_COMMENT_LENGTH
from .fax import Fax, FaxStatus
from .fax_permission import FaxPermission

__all__ = ['Comment', 'MAX_COMMENT_LENGTH', 'Fax', 'FaxStatus', 'FaxPermission']
