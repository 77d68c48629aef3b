from sqlalchemy import Column, Integer, String, Enum, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from enum import Enum as PyEnum
from datetime import datetime
from faxsign.database import Base

# Labels earlier deployments stored or sent for the same roles
_ROLE_ALIASES = {
    "faxes": "fax_intake",
    "fax-intake": "fax_intake",
    "user": "standard",
}


class UserRole(PyEnum):
    ADMIN = "admin"
    MANAGER = "manager"
    FAX_INTAKE = "fax_intake"
    STANDARD = "standard"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            canonical = _ROLE_ALIASES.get(value.strip().lower(), value.strip().lower())
            for member in cls:
                if member.value == canonical:
                    return member
        return None


class User(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    username = Column(String, unique=True, nullable=False)
    email = Column(String, unique=True, nullable=False)
    password_hash = Column(String, nullable=False)
    full_name = Column(String, nullable=False)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.STANDARD)
    created_at = Column(DateTime, default=datetime.utcnow)

    department_id = Column(Integer, ForeignKey('departments.id'), nullable=True)
    department = relationship("Department", back_populates="users")

    @property
    def department_name(self):
        return self.department.name if self.department else None
