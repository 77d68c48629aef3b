from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from faxsign.database import Base


class Department(Base):
    __tablename__ = 'departments'

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)

    users = relationship("User", back_populates="department")
