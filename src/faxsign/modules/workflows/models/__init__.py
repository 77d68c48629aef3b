from .signer import Signer, SignerStatus
from .workflow import SignatureWorkflow, WorkflowStatus

__all__ = ['Signer', 'SignerStatus', 'SignatureWorkflow', 'WorkflowStatus']
