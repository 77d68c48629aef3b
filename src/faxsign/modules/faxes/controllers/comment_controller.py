from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from faxsign.database import get_db
from faxsign.modules.auth.context import Principal
from faxsign.modules.auth.dependencies import get_current_principal
from faxsign.modules.faxes.schemas import CommentCreate, CommentResponse
from faxsign.modules.faxes.services import CommentService

router = APIRouter(prefix="/faxes", tags=["comments"])


@router.get("/{fax_id}/comments", response_model=List[CommentResponse])
def list_comments(
    fax_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return CommentService.list_comments(db, principal, fax_id)


@router.post("/{fax_id}/comments", response_model=CommentResponse)
def add_comment(
    fax_id: int,
    payload: CommentCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return CommentService.add_comment(db, principal, fax_id, payload.comment)
