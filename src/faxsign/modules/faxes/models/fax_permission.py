from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from faxsign.database import Base


class FaxPermission(Base):
    """Explicit allow-list entry; any row for a fax switches it to restricted mode."""
    __tablename__ = 'fax_permissions'
    __table_args__ = (UniqueConstraint('fax_id', 'user_id', name='uq_fax_permission'),)

    id = Column(Integer, primary_key=True)
    fax_id = Column(Integer, ForeignKey('faxes.id'), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)

    fax = relationship("Fax", back_populates="permissions")
    user = relationship("User")
