import io
import logging
import os
import time
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Optional

from PyPDF2 import PdfReader
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from faxsign.errors import NotFoundError, PermissionDenied, StateConflictError, ValidationError
from faxsign.modules.auth.context import Principal
from faxsign.modules.faxes.models import Comment, Fax, FaxPermission, FaxStatus
from faxsign.modules.faxes.services.fax_group import FaxGroup, group_key
from faxsign.modules.faxes.services.visibility import ensure_can_view, resolve_access
from faxsign.modules.users.models import Department, User
from faxsign.modules.users.services.permission import Capability

logger = logging.getLogger(__name__)

MAX_GROUP_ID_LENGTH = 64
# Largest id a signed 64-bit integer column can hold
MAX_DB_INTEGER = 2**63 - 1


@dataclass
class IncomingFile:
    filename: str
    content_type: str
    contents: bytes


class FaxService:

    @staticmethod
    def upload_faxes(
        session: Session,
        principal: Principal,
        files: list[IncomingFile],
        fax_number: Optional[str],
        sender_name: Optional[str],
        group_id: Optional[str],
        upload_dir: str,
        max_file_size: int,
        allowed_content_types: Iterable[str],
    ) -> list[Fax]:
        """
        Stores one submission of N files as N fax rows:
        - validates every file before anything is written
        - tags all rows with the shared group id
        - persists the rows in a single transaction
        """
        if not principal.can(Capability.UPLOAD_FAXES):
            raise PermissionDenied("Only users with fax intake, admin, or manager role can upload faxes")

        if not files:
            raise ValidationError("Please select a fax file to upload")
        fax_number = (fax_number or "").strip()
        sender_name = (sender_name or "").strip()
        if not fax_number or not sender_name:
            raise ValidationError("fax_number and sender_name are required")

        group_id = (group_id or "").strip() or None
        if group_id is not None and len(group_id) > MAX_GROUP_ID_LENGTH:
            raise ValidationError(f"group_id must be at most {MAX_GROUP_ID_LENGTH} characters")
        if group_id is None and len(files) > 1:
            group_id = uuid.uuid4().hex

        # Files added to an existing group take on its department and permissions
        department_id = principal.department_id
        inherited_user_ids = set()
        if group_id is not None:
            existing = (
                session.query(Fax).filter(Fax.group_id == group_id).order_by(Fax.id).first()
            )
            if existing is not None:
                if existing.status != FaxStatus.PENDING:
                    raise StateConflictError("Cannot add files to a confirmed fax group")
                department_id = existing.assigned_department_id
                inherited_user_ids = FaxGroup.of(session, existing).permitted_user_ids()

        # 1) Validate everything up front
        allowed = set(allowed_content_types)
        page_counts = [
            FaxService._validate_file(incoming, allowed, max_file_size) for incoming in files
        ]

        # 2) Write files, then rows; undo the files if the rows cannot be committed
        os.makedirs(upload_dir, exist_ok=True)
        written = []
        faxes = []
        try:
            received_at = datetime.utcnow()
            for incoming, page_count in zip(files, page_counts):
                file_path = FaxService._store_file(upload_dir, incoming)
                written.append(file_path)
                fax = Fax(
                    fax_number=fax_number,
                    sender_name=sender_name,
                    received_at=received_at,
                    file_path=file_path,
                    original_filename=os.path.basename(incoming.filename),
                    content_type=incoming.content_type,
                    file_size=len(incoming.contents),
                    page_count=page_count,
                    status=FaxStatus.PENDING,
                    group_id=group_id,
                    uploaded_by_id=principal.id,
                    assigned_department_id=department_id,
                )
                session.add(fax)
                faxes.append(fax)
            if inherited_user_ids:
                session.flush()
                FaxGroup.of(session, faxes[0]).replace_permissions(inherited_user_ids)
            session.commit()
        except (OSError, SQLAlchemyError):
            session.rollback()
            for path in written:
                if os.path.exists(path):
                    os.remove(path)
            raise

        logger.info("%s uploaded %d fax file(s) from %s (group=%s)",
                    principal.username, len(faxes), sender_name, group_id)
        return faxes

    @staticmethod
    def list_faxes(session: Session, principal: Principal) -> list[dict]:
        """Every fax the principal may read, newest first, with counters attached"""
        faxes = (
            session.query(Fax)
            .options(joinedload(Fax.uploaded_by), joinedload(Fax.assigned_department))
            .order_by(Fax.received_at.desc(), Fax.id.desc())
            .all()
        )
        group_of = {fax.id: group_key(fax.id, fax.group_id) for fax in faxes}

        permitted_by_group: dict[str, set[int]] = {}
        for fax_id, user_id in session.query(FaxPermission.fax_id, FaxPermission.user_id).all():
            key = group_of.get(fax_id)
            if key is not None:
                permitted_by_group.setdefault(key, set()).add(user_id)

        comment_counts = dict(
            session.query(Comment.fax_id, func.count(Comment.id)).group_by(Comment.fax_id).all()
        )

        rows = []
        for fax in faxes:
            permitted = permitted_by_group.get(group_of[fax.id], set())
            if not resolve_access(principal, fax.assigned_department_id, permitted):
                continue
            rows.append(FaxService._to_row(fax, principal, permitted, comment_counts.get(fax.id, 0)))
        return rows

    @staticmethod
    def get_fax(session: Session, principal: Principal, fax_id: int) -> dict:
        fax = FaxService.get_visible_fax(session, principal, fax_id)
        permitted = FaxGroup.of(session, fax).permitted_user_ids()
        comments_count = session.query(Comment).filter(Comment.fax_id == fax.id).count()
        return FaxService._to_row(fax, principal, permitted, comments_count)

    @staticmethod
    def get_visible_fax(session: Session, principal: Principal, fax_id: int) -> Fax:
        """Loads a fax, raising not-found or access-denied"""
        fax = session.get(Fax, fax_id)
        if not fax:
            raise NotFoundError("Fax not found")
        ensure_can_view(session, principal, fax)
        return fax

    @staticmethod
    def open_fax_file(session: Session, principal: Principal, fax_id: int) -> Fax:
        fax = FaxService.get_visible_fax(session, principal, fax_id)
        if not os.path.exists(fax.file_path):
            logger.error("Stored file for fax %s is missing: %s", fax.id, fax.file_path)
            raise NotFoundError("Fax file not found")
        return fax

    @staticmethod
    def assign_department(session: Session, principal: Principal, fax_id: int,
                          department_id: Optional[int]) -> list[Fax]:
        """Assigns the fax, and every fax uploaded with it, to a department"""
        if not principal.can(Capability.ASSIGN_FAX_DEPARTMENT):
            raise PermissionDenied("Only managers can assign faxes to departments")

        fax = session.get(Fax, fax_id)
        if not fax:
            raise NotFoundError("Fax not found")
        if not department_id:
            raise ValidationError("department_id is required")
        if not session.get(Department, department_id):
            raise ValidationError("Invalid department_id")

        group = FaxGroup.of(session, fax)
        try:
            group.assign_department(department_id)
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            raise

        logger.info("%s assigned fax(es) %s to department %s",
                    principal.username, group.fax_ids, department_id)
        return group.members

    @staticmethod
    def get_permissions(session: Session, principal: Principal, fax_id: int) -> dict:
        if not principal.can(Capability.MANAGE_FAX_PERMISSIONS):
            raise PermissionDenied("Only managers can view fax permissions")

        fax = session.get(Fax, fax_id)
        if not fax:
            raise NotFoundError("Fax not found")

        group = FaxGroup.of(session, fax)
        user_ids = group.permitted_user_ids()
        users = (
            session.query(User).filter(User.id.in_(user_ids)).order_by(User.full_name).all()
            if user_ids else []
        )
        return {
            "fax_id": fax.id,
            "group_id": fax.group_id,
            "fax_ids": group.fax_ids,
            "restricted": bool(user_ids),
            "user_ids": sorted(user_ids),
            "users": users,
        }

    @staticmethod
    def set_permissions(session: Session, principal: Principal, fax_id: int,
                        raw_user_ids: Optional[list[Any]]) -> dict:
        """
        Replaces the explicit allow-list of the fax's whole group. An empty
        list puts the group back into department visibility. All-or-nothing.
        """
        if not principal.can(Capability.MANAGE_FAX_PERMISSIONS):
            raise PermissionDenied("Only managers can change fax permissions")

        fax = session.get(Fax, fax_id)
        if not fax:
            raise NotFoundError("Fax not found")

        user_ids = normalize_user_ids(raw_user_ids or [])
        if user_ids:
            known = {row[0] for row in session.query(User.id).filter(User.id.in_(user_ids)).all()}
            unknown = sorted(set(user_ids) - known)
            if unknown:
                raise ValidationError(f"Unknown user id(s): {', '.join(str(u) for u in unknown)}")

        group = FaxGroup.of(session, fax)
        try:
            group.replace_permissions(user_ids)
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            raise

        logger.info("%s set permissions on fax(es) %s to users %s",
                    principal.username, group.fax_ids, user_ids)
        return FaxService.get_permissions(session, principal, fax_id)

    @staticmethod
    def _to_row(fax: Fax, principal: Principal, permitted: set[int], comments_count: int) -> dict:
        return {
            "id": fax.id,
            "fax_number": fax.fax_number,
            "sender_name": fax.sender_name,
            "received_at": fax.received_at,
            "status": fax.status,
            "confirmed_at": fax.confirmed_at,
            "group_id": fax.group_id,
            "original_filename": fax.original_filename,
            "content_type": fax.content_type,
            "file_size": fax.file_size,
            "page_count": fax.page_count,
            "uploaded_by_id": fax.uploaded_by_id,
            "uploaded_by_name": fax.uploaded_by.full_name if fax.uploaded_by else None,
            "assigned_department_id": fax.assigned_department_id,
            "assigned_department_name": (
                fax.assigned_department.name if fax.assigned_department else None
            ),
            "permissions_count": len(permitted),
            "comments_count": comments_count,
            "is_permitted": principal.id in permitted,
        }

    @staticmethod
    def _validate_file(incoming: IncomingFile, allowed: set[str], max_file_size: int) -> Optional[int]:
        """Checks type and size; returns the page count for PDFs"""
        if incoming.content_type not in allowed:
            raise ValidationError(
                "Invalid file type. Only PDF, JPEG, PNG, and TIFF files are allowed."
            )
        if not incoming.contents:
            raise ValidationError(f"File '{incoming.filename}' is empty")
        if len(incoming.contents) > max_file_size:
            raise ValidationError(f"The maximum file size is {max_file_size // (1024 * 1024)} MB")

        if incoming.content_type != "application/pdf":
            return None
        try:
            return len(PdfReader(io.BytesIO(incoming.contents)).pages)
        except Exception:
            raise ValidationError(f"Invalid or damaged PDF: '{incoming.filename}'")

    @staticmethod
    def _store_file(upload_dir: str, incoming: IncomingFile) -> str:
        base = os.path.basename(incoming.filename) or "fax"
        unique_name = f"{int(time.time() * 1000)}-{uuid.uuid4()}-{base}"
        file_path = os.path.join(upload_dir, unique_name)
        with open(file_path, "wb") as f:
            f.write(incoming.contents)
        return file_path


def normalize_user_ids(raw_user_ids: Iterable[Any]) -> list[int]:
    """Keeps well-formed positive integers (ints or digit strings), drops the rest"""
    user_ids = []
    for value in raw_user_ids:
        if isinstance(value, bool):
            continue
        if isinstance(value, int):
            candidate = value
        elif isinstance(value, str) and value.strip().isdecimal():
            candidate = int(value.strip())
        else:
            continue
        if 0 < candidate <= MAX_DB_INTEGER and candidate not in user_ids:
            user_ids.append(candidate)
    return user_ids
