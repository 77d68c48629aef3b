from sqlalchemy import Column, Integer, ForeignKey, DateTime, String, Text, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from enum import Enum as PyEnum
from faxsign.database import Base


class SignerStatus(PyEnum):
    PENDING = "pending"
    SIGNED = "signed"


class Signer(Base):
    __tablename__ = "signers"
    __table_args__ = (UniqueConstraint("workflow_id", "user_id", name="uq_signer_workflow_user"),)

    id = Column(Integer, primary_key=True)
    workflow_id = Column(Integer, ForeignKey("signature_workflows.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    email = Column(String, nullable=False)
    name = Column(String, nullable=False)
    position = Column(Integer, nullable=False)
    status = Column(Enum(SignerStatus), nullable=False, default=SignerStatus.PENDING)
    signed_at = Column(DateTime, nullable=True)
    signature_data = Column(Text, nullable=True)
    # SHA-256 of the fax file at the moment of signing
    document_sha256 = Column(String(64), nullable=True)

    workflow = relationship("SignatureWorkflow", back_populates="signers")
    user = relationship("User")
