import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from faxsign.errors import StateConflictError
from faxsign.modules.auth.context import Principal
from faxsign.modules.faxes.models.fax import Fax, FaxStatus
from faxsign.modules.faxes.services.fax_group import FaxGroup
from faxsign.modules.faxes.services.fax_service import FaxService

logger = logging.getLogger(__name__)

# pending -> confirmed is the only legal move; confirmed is terminal
ALLOWED_TRANSITIONS = {
    FaxStatus.PENDING: frozenset({FaxStatus.CONFIRMED}),
    FaxStatus.CONFIRMED: frozenset(),
}


class IllegalTransitionError(StateConflictError):
    """Exception for fax status transition errors"""
    pass


class FaxStateService:

    @staticmethod
    def can_transition(current: FaxStatus, new_status: FaxStatus) -> bool:
        return new_status in ALLOWED_TRANSITIONS[current]

    @staticmethod
    def get_allowed_transitions(fax: Fax) -> list[FaxStatus]:
        return [state for state in FaxStatus if FaxStateService.can_transition(fax.status, state)]

    @staticmethod
    def change_fax_status(session: Session, principal: Principal, fax_id: int,
                          requested: Optional[str]) -> Fax:
        """
        Applies a status change requested by any reader of the fax. The change
        covers every fax of the same upload group.
        """
        fax = FaxService.get_visible_fax(session, principal, fax_id)
        current = fax.status

        try:
            new_status = FaxStatus(requested)
        except ValueError:
            raise IllegalTransitionError(
                f"Illegal status transition from {current.value} to {requested!r}"
            )

        if not FaxStateService.can_transition(current, new_status):
            raise IllegalTransitionError(
                f"Illegal status transition from {current.value} to {new_status.value}"
            )

        group = FaxGroup.of(session, fax)
        try:
            changed = group.confirm(datetime.utcnow())
            if changed == 0:
                # Another request confirmed the group first
                raise IllegalTransitionError(
                    f"Illegal status transition from {FaxStatus.CONFIRMED.value} "
                    f"to {new_status.value}"
                )
            session.commit()
        except (SQLAlchemyError, IllegalTransitionError):
            session.rollback()
            raise

        session.refresh(fax)
        logger.info("Fax(es) %s changed from %s to %s by %s",
                    group.fax_ids, current.value, new_status.value, principal.username)
        return fax
