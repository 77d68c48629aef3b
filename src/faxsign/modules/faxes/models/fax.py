from sqlalchemy import Column, Integer, String, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum as PyEnum
from faxsign.database import Base


class FaxStatus(PyEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"


class Fax(Base):
    __tablename__ = 'faxes'

    id = Column(Integer, primary_key=True)
    fax_number = Column(String, nullable=False)
    sender_name = Column(String, nullable=False)
    received_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    file_path = Column(String, nullable=False)
    original_filename = Column(String, nullable=False)
    content_type = Column(String, nullable=False)
    file_size = Column(Integer, nullable=False)
    page_count = Column(Integer, nullable=True)
    status = Column(Enum(FaxStatus), nullable=False, default=FaxStatus.PENDING)
    confirmed_at = Column(DateTime, nullable=True)

    # Files uploaded together share this token; NULL means a group of one
    group_id = Column(String(64), nullable=True, index=True)

    uploaded_by_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    uploaded_by = relationship("User", foreign_keys=[uploaded_by_id])

    assigned_department_id = Column(Integer, ForeignKey('departments.id'), nullable=True)
    assigned_department = relationship("Department")

    permissions = relationship("FaxPermission", back_populates="fax", cascade="all, delete-orphan")
    comments = relationship("Comment", back_populates="fax", order_by="Comment.created_at",
                            cascade="all, delete-orphan")
