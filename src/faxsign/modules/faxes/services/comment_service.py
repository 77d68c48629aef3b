import logging
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from faxsign.errors import ValidationError
from faxsign.modules.auth.context import Principal
from faxsign.modules.faxes.models.comment import Comment, MAX_COMMENT_LENGTH
from faxsign.modules.faxes.services.fax_service import FaxService

logger = logging.getLogger(__name__)


class CommentService:

    @staticmethod
    def list_comments(session: Session, principal: Principal, fax_id: int) -> list[Comment]:
        fax = FaxService.get_visible_fax(session, principal, fax_id)
        return (
            session.query(Comment)
            .options(joinedload(Comment.author))
            .filter(Comment.fax_id == fax.id)
            .order_by(Comment.created_at.asc(), Comment.id.asc())
            .all()
        )

    @staticmethod
    def add_comment(session: Session, principal: Principal, fax_id: int,
                    text: Optional[str]) -> Comment:
        """Appends a comment; readers of the fax may write to its thread"""
        fax = FaxService.get_visible_fax(session, principal, fax_id)

        text = (text or "").strip()
        if not text:
            raise ValidationError("Comment text is required")
        if len(text) > MAX_COMMENT_LENGTH:
            raise ValidationError(f"Comment must be at most {MAX_COMMENT_LENGTH} characters")

        comment = Comment(fax_id=fax.id, author_id=principal.id, text=text)
        session.add(comment)
        session.commit()
        session.refresh(comment)
        logger.info("%s commented on fax %s", principal.username, fax.id)
        return comment
