from .comment_service import CommentService
from .fax_service import FaxService, IncomingFile
from .fax_state_service import FaxStateService, IllegalTransitionError

__all__ = ['CommentService', 'FaxService', 'IncomingFile', 'FaxStateService', 'IllegalTransitionError']
