from .signature_service import SignatureService
from .workflow_service import SignerInput, WorkflowService

__all__ = ['SignatureService', 'SignerInput', 'WorkflowService']
