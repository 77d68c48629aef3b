import hashlib
import logging
import os
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from faxsign.errors import NotFoundError, StateConflictError, ValidationError
from faxsign.modules.auth.context import Principal
from faxsign.modules.workflows.models import SignatureWorkflow, Signer, SignerStatus, WorkflowStatus

logger = logging.getLogger(__name__)


class SignatureService:

    @staticmethod
    def sign(session: Session, principal: Principal, workflow_id: int,
             signature_data: Optional[str]) -> Signer:
        """
        Records the caller's signature on a workflow. Only a pending signer row
        for (workflow, caller) can be signed, and only once. Position order is
        not enforced.
        """
        workflow = session.get(SignatureWorkflow, workflow_id)
        if not workflow:
            raise NotFoundError("Workflow not found")
        if not signature_data or not signature_data.strip():
            raise ValidationError("signature_data is required")

        document_hash = SignatureService._hash_file(workflow.fax.file_path)
        now = datetime.utcnow()
        try:
            # Conditional update so two concurrent calls cannot both succeed
            changed = (
                session.query(Signer)
                .filter(
                    Signer.workflow_id == workflow_id,
                    Signer.user_id == principal.id,
                    Signer.status == SignerStatus.PENDING,
                )
                .update(
                    {
                        Signer.status: SignerStatus.SIGNED,
                        Signer.signed_at: now,
                        Signer.signature_data: signature_data,
                        Signer.document_sha256: document_hash,
                    },
                    synchronize_session=False,
                )
            )
            if changed == 0:
                raise StateConflictError("No pending signature found for this user")

            remaining = (
                session.query(Signer)
                .filter(Signer.workflow_id == workflow_id, Signer.status == SignerStatus.PENDING)
                .count()
            )
            if remaining == 0:
                workflow.status = WorkflowStatus.COMPLETED
                workflow.completed_at = now
            session.commit()
        except (SQLAlchemyError, StateConflictError):
            session.rollback()
            raise

        signer = (
            session.query(Signer)
            .filter(Signer.workflow_id == workflow_id, Signer.user_id == principal.id)
            .one()
        )
        session.refresh(signer)
        logger.info("%s signed workflow %s (position %s)", principal.username, workflow_id, signer.position)
        return signer

    @staticmethod
    def _hash_file(file_path: str) -> Optional[str]:
        if not os.path.exists(file_path):
            return None
        sha256 = hashlib.sha256()
        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(65536), b""):
                sha256.update(chunk)
        return sha256.hexdigest()
