from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from faxsign.config import Settings, get_settings
from faxsign.database import get_db
from faxsign.errors import PermissionDenied
from faxsign.modules.auth.context import Principal
from faxsign.modules.auth.dependencies import get_current_principal
from faxsign.modules.faxes.schemas import (
    AssignmentResponse, DepartmentAssignmentRequest, FaxResponse, PermissionUpdate,
    PermissionsResponse, StatusResponse, StatusUpdate, UploadResponse
)
from faxsign.modules.faxes.services import FaxService, FaxStateService, IncomingFile
from faxsign.modules.users.services.permission import Capability

router = APIRouter(prefix="/faxes", tags=["faxes"])


@router.post("/upload", response_model=UploadResponse)
async def upload_faxes(
    file: List[UploadFile] = File(...),
    fax_number: Optional[str] = Form(None),
    sender_name: Optional[str] = Form(None),
    group_id: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    settings: Settings = Depends(get_settings),
):
    """Accepts one or more files as a single fax submission"""
    if not principal.can(Capability.UPLOAD_FAXES):
        raise PermissionDenied("Only users with fax intake, admin, or manager role can upload faxes")
    incoming = [
        IncomingFile(
            filename=upload.filename or "fax",
            content_type=upload.content_type or "",
            contents=await upload.read(),
        )
        for upload in file
    ]
    faxes = FaxService.upload_faxes(
        db,
        principal,
        incoming,
        fax_number=fax_number,
        sender_name=sender_name,
        group_id=group_id,
        upload_dir=settings.upload_dir,
        max_file_size=settings.max_file_size,
        allowed_content_types=settings.allowed_content_types,
    )
    return UploadResponse(
        message="Fax uploaded successfully",
        group_id=faxes[0].group_id,
        fax_ids=[fax.id for fax in faxes],
    )


@router.get("", response_model=List[FaxResponse])
def list_faxes(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return FaxService.list_faxes(db, principal)


@router.get("/{fax_id}", response_model=FaxResponse)
def get_fax(
    fax_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return FaxService.get_fax(db, principal, fax_id)


@router.get("/{fax_id}/file")
def download_fax_file(
    fax_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    fax = FaxService.open_fax_file(db, principal, fax_id)
    return FileResponse(
        fax.file_path,
        media_type=fax.content_type,
        filename=fax.original_filename,
        content_disposition_type="inline",
    )


@router.post("/{fax_id}/status", response_model=StatusResponse)
def update_fax_status(
    fax_id: int,
    payload: StatusUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    fax = FaxStateService.change_fax_status(db, principal, fax_id, payload.status)
    return StatusResponse(message="Fax status updated successfully", fax_id=fax.id, status=fax.status)


@router.post("/{fax_id}/assign-department", response_model=AssignmentResponse)
def assign_fax_department(
    fax_id: int,
    payload: DepartmentAssignmentRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    members = FaxService.assign_department(db, principal, fax_id, payload.department_id)
    return AssignmentResponse(
        message="Fax assigned successfully",
        fax_ids=[fax.id for fax in members],
        department_id=payload.department_id,
    )


@router.get("/{fax_id}/permissions", response_model=PermissionsResponse)
def get_fax_permissions(
    fax_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return FaxService.get_permissions(db, principal, fax_id)


@router.post("/{fax_id}/permissions", response_model=PermissionsResponse)
def set_fax_permissions(
    fax_id: int,
    payload: PermissionUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return FaxService.set_permissions(db, principal, fax_id, payload.user_ids)
