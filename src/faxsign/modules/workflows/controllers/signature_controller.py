from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from faxsign.database import get_db
from faxsign.modules.auth.context import Principal
from faxsign.modules.auth.dependencies import get_current_principal
from faxsign.modules.workflows.schemas import SignRequest, SignResponse
from faxsign.modules.workflows.services import SignatureService

router = APIRouter(prefix="/sign", tags=["workflows"])


@router.post("/{workflow_id}", response_model=SignResponse)
def sign_workflow(
    workflow_id: int,
    payload: SignRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Signs the caller's pending slot in a workflow"""
    signer = SignatureService.sign(db, principal, workflow_id, payload.signature_data)
    return SignResponse(
        message="Document signed successfully",
        workflow_id=workflow_id,
        position=signer.position,
        signed_at=signer.signed_at,
    )
