from typing import Iterable, Optional

from sqlalchemy.orm import Session

from faxsign.modules.faxes.models.fax import Fax, FaxStatus
from faxsign.modules.faxes.models.fax_permission import FaxPermission


def group_key(fax_id: int, group_id: Optional[str]) -> str:
    """Identity of the logical submission a fax row belongs to"""
    return f"group:{group_id}" if group_id is not None else f"fax:{fax_id}"


class FaxGroup:
    """
    One logical submission: every fax row uploaded together. Department
    assignment, permission overrides and status are applied to all members at
    once so they never diverge. Callers own the transaction.
    """

    def __init__(self, session: Session, members: list[Fax]):
        self.session = session
        self.members = members

    @classmethod
    def of(cls, session: Session, fax: Fax) -> "FaxGroup":
        if fax.group_id is None:
            return cls(session, [fax])
        members = (
            session.query(Fax)
            .filter(Fax.group_id == fax.group_id)
            .order_by(Fax.id)
            .all()
        )
        return cls(session, members)

    @property
    def fax_ids(self) -> list[int]:
        return [fax.id for fax in self.members]

    def permitted_user_ids(self) -> set[int]:
        """Distinct users holding an explicit permission on any member"""
        rows = (
            self.session.query(FaxPermission.user_id)
            .filter(FaxPermission.fax_id.in_(self.fax_ids))
            .distinct()
            .all()
        )
        return {row[0] for row in rows}

    def assign_department(self, department_id: int):
        for fax in self.members:
            fax.assigned_department_id = department_id

    def replace_permissions(self, user_ids: Iterable[int]):
        """Deletes every member's permission rows, then grants each user on each member"""
        user_ids = sorted(set(user_ids))
        (
            self.session.query(FaxPermission)
            .filter(FaxPermission.fax_id.in_(self.fax_ids))
            .delete(synchronize_session=False)
        )
        self.session.flush()
        for fax_id in self.fax_ids:
            for user_id in user_ids:
                self.session.add(FaxPermission(fax_id=fax_id, user_id=user_id))
        self.session.flush()

    def confirm(self, confirmed_at) -> int:
        """Moves every still-pending member to confirmed; returns the number of rows changed"""
        changed = (
            self.session.query(Fax)
            .filter(Fax.id.in_(self.fax_ids), Fax.status == FaxStatus.PENDING)
            .update(
                {Fax.status: FaxStatus.CONFIRMED, Fax.confirmed_at: confirmed_at},
                synchronize_session=False,
            )
        )
        for fax in self.members:
            self.session.expire(fax)
        return changed
