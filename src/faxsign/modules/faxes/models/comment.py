from sqlalchemy import Column, Integer, ForeignKey, DateTime, String
from sqlalchemy.orm import relationship
from datetime import datetime
from faxsign.database import Base

MAX_COMMENT_LENGTH = 2000


class Comment(Base):
    __tablename__ = "fax_comments"

    id = Column(Integer, primary_key=True)
    fax_id = Column(Integer, ForeignKey("faxes.id"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    text = Column(String(MAX_COMMENT_LENGTH), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    fax = relationship("Fax", back_populates="comments")
    author = relationship("User")

    @property
    def author_name(self):
        return self.author.full_name if self.author else None
