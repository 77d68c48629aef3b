from .workflow_schemas import (
    SignRequest, SignResponse, SignerRequest, SignerResponse, WorkflowCreate,
    WorkflowCreated, WorkflowDetail, WorkflowSummary
)

__all__ = [
    'SignRequest', 'SignResponse', 'SignerRequest', 'SignerResponse', 'WorkflowCreate',
    'WorkflowCreated', 'WorkflowDetail', 'WorkflowSummary'
]
