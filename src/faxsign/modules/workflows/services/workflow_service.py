import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from faxsign.errors import NotFoundError, PermissionDenied, ValidationError
from faxsign.modules.auth.context import Principal
from faxsign.modules.faxes.models.fax import Fax
from faxsign.modules.faxes.services.visibility import can_view_fax
from faxsign.modules.users.models.user import User
from faxsign.modules.workflows.models import SignatureWorkflow, Signer, SignerStatus, WorkflowStatus

logger = logging.getLogger(__name__)


@dataclass
class SignerInput:
    user_id: int
    email: str
    name: str


class WorkflowService:

    @staticmethod
    def create_workflow(session: Session, principal: Principal, fax_id: int,
                        name: Optional[str], signers: list[SignerInput]) -> SignatureWorkflow:
        """
        Binds an ordered signer list to a fax the creator can read. Signers are
        stored at positions 1..N in the order given.
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("workflow_name is required")
        if not signers:
            raise ValidationError("At least one signer is required")

        fax = session.get(Fax, fax_id)
        if not fax:
            raise NotFoundError("Fax not found")
        if not can_view_fax(session, principal, fax):
            raise PermissionDenied("Access denied to create workflow for this fax")

        user_ids = [signer.user_id for signer in signers]
        if len(set(user_ids)) != len(user_ids):
            raise ValidationError("A user can appear only once in a workflow")
        known = {row[0] for row in session.query(User.id).filter(User.id.in_(user_ids)).all()}
        unknown = [uid for uid in user_ids if uid not in known]
        if unknown:
            raise ValidationError(f"Unknown signer user id(s): {', '.join(str(u) for u in unknown)}")

        workflow = SignatureWorkflow(
            fax_id=fax.id,
            name=name,
            created_by_id=principal.id,
            status=WorkflowStatus.ACTIVE,
        )
        for position, signer in enumerate(signers, start=1):
            workflow.signers.append(Signer(
                user_id=signer.user_id,
                email=signer.email,
                name=signer.name,
                position=position,
                status=SignerStatus.PENDING,
            ))

        try:
            session.add(workflow)
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            raise

        session.refresh(workflow)
        logger.info("%s created workflow %s on fax %s with %d signer(s)",
                    principal.username, workflow.id, fax.id, len(signers))
        return workflow

    @staticmethod
    def list_workflows(session: Session, principal: Principal) -> list[dict]:
        workflows = (
            session.query(SignatureWorkflow)
            .options(
                joinedload(SignatureWorkflow.fax),
                joinedload(SignatureWorkflow.created_by),
                joinedload(SignatureWorkflow.signers),
            )
            .order_by(SignatureWorkflow.created_at.desc(), SignatureWorkflow.id.desc())
            .all()
        )
        visible: dict[int, bool] = {}
        rows = []
        for workflow in workflows:
            if workflow.fax_id not in visible:
                visible[workflow.fax_id] = can_view_fax(session, principal, workflow.fax)
            if visible[workflow.fax_id]:
                rows.append(WorkflowService._to_row(workflow))
        return rows

    @staticmethod
    def get_workflow(session: Session, principal: Principal, workflow_id: int) -> dict:
        workflow = session.get(SignatureWorkflow, workflow_id)
        if not workflow:
            raise NotFoundError("Workflow not found")
        if not can_view_fax(session, principal, workflow.fax):
            raise PermissionDenied("Access denied")

        row = WorkflowService._to_row(workflow)
        row["signers"] = workflow.signers
        return row

    @staticmethod
    def _to_row(workflow: SignatureWorkflow) -> dict:
        signed = sum(1 for s in workflow.signers if s.status == SignerStatus.SIGNED)
        return {
            "id": workflow.id,
            "fax_id": workflow.fax_id,
            "name": workflow.name,
            "status": workflow.status,
            "created_at": workflow.created_at,
            "completed_at": workflow.completed_at,
            "created_by_id": workflow.created_by_id,
            "created_by_name": workflow.created_by.full_name if workflow.created_by else None,
            "fax_number": workflow.fax.fax_number,
            "sender_name": workflow.fax.sender_name,
            "signed_count": signed,
            "signers_count": len(workflow.signers),
        }
