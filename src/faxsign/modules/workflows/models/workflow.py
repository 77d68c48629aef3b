from sqlalchemy import Column, Integer, String, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum as PyEnum
from faxsign.database import Base


class WorkflowStatus(PyEnum):
    ACTIVE = "active"
    COMPLETED = "completed"


class SignatureWorkflow(Base):
    __tablename__ = 'signature_workflows'

    id = Column(Integer, primary_key=True)
    fax_id = Column(Integer, ForeignKey('faxes.id'), nullable=False, index=True)
    name = Column(String, nullable=False)
    created_by_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    status = Column(Enum(WorkflowStatus), nullable=False, default=WorkflowStatus.ACTIVE)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)

    fax = relationship("Fax")
    created_by = relationship("User")

    # Positions are fixed at creation
    signers = relationship("Signer", back_populates="workflow", order_by="Signer.position",
                           cascade="all, delete-orphan")
