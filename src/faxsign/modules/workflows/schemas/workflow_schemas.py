from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from faxsign.modules.workflows.models import SignerStatus, WorkflowStatus


class SignerRequest(BaseModel):
    user_id: int
    email: str
    name: str


class WorkflowCreate(BaseModel):
    fax_id: int
    workflow_name: Optional[str] = None
    signers: List[SignerRequest] = []


class WorkflowCreated(BaseModel):
    message: str
    workflow_id: int


class SignerResponse(BaseModel):
    id: int
    user_id: int
    email: str
    name: str
    position: int
    status: SignerStatus
    signed_at: Optional[datetime] = None
    signature_data: Optional[str] = None
    document_sha256: Optional[str] = None

    model_config = {"from_attributes": True}


class WorkflowSummary(BaseModel):
    id: int
    fax_id: int
    name: str
    status: WorkflowStatus
    created_at: datetime
    completed_at: Optional[datetime] = None
    created_by_id: int
    created_by_name: Optional[str] = None
    fax_number: str
    sender_name: str
    signed_count: int
    signers_count: int


class WorkflowDetail(WorkflowSummary):
    signers: List[SignerResponse]


class SignRequest(BaseModel):
    signature_data: Optional[str] = None


class SignResponse(BaseModel):
    message: str
    workflow_id: int
    position: int
    signed_at: datetime
