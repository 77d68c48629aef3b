from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from faxsign.database import get_db
from faxsign.modules.auth.context import Principal
from faxsign.modules.auth.dependencies import get_current_principal
from faxsign.modules.workflows.schemas import (
    WorkflowCreate, WorkflowCreated, WorkflowDetail, WorkflowSummary
)
from faxsign.modules.workflows.services import SignerInput, WorkflowService

router = APIRouter(prefix="/workflows", tags=["workflows"])


@router.post("", response_model=WorkflowCreated)
def create_workflow(
    payload: WorkflowCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    workflow = WorkflowService.create_workflow(
        db,
        principal,
        payload.fax_id,
        payload.workflow_name,
        [SignerInput(user_id=s.user_id, email=s.email, name=s.name) for s in payload.signers],
    )
    return WorkflowCreated(message="Workflow created successfully", workflow_id=workflow.id)


@router.get("", response_model=List[WorkflowSummary])
def list_workflows(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return WorkflowService.list_workflows(db, principal)


@router.get("/{workflow_id}", response_model=WorkflowDetail)
def get_workflow(
    workflow_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return WorkflowService.get_workflow(db, principal, workflow_id)
