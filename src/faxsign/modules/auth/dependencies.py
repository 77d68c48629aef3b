from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from faxsign.database import get_db
from faxsign.errors import AuthenticationError, PermissionDenied
from faxsign.modules.auth.context import Principal
from faxsign.modules.auth.services.auth_service import AuthService
from faxsign.modules.users.models.user import User

security = HTTPBearer(auto_error=False)


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Principal:
    """Resolves the bearer token to the caller's identity"""
    if credentials is None:
        raise AuthenticationError("Access token required")
    user_id = AuthService.verify_token(credentials.credentials)
    if user_id is None:
        raise PermissionDenied("Invalid token")

    user = db.get(User, user_id)
    if user is None:
        raise AuthenticationError("User no longer exists")
    return Principal.from_user(user)
