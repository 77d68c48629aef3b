import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from faxsign.database import get_db
from faxsign.modules.auth.context import Principal
from faxsign.modules.auth.dependencies import get_current_principal
from faxsign.modules.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, UserResponse
from faxsign.modules.auth.services.auth_service import AuthService
from faxsign.modules.users.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/login", response_model=TokenResponse)
def login(login_data: LoginRequest, db: Session = Depends(get_db)):
    user = AuthService.authenticate_user(db, login_data.username, login_data.password)
    if not user:
        logger.warning("Failed login for %r", login_data.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.info("User %s logged in", user.username)
    return TokenResponse(
        token=AuthService.create_access_token(user),
        user=UserResponse.model_validate(user),
    )


@router.post("/register", response_model=UserResponse)
def register_user(register_data: RegisterRequest, db: Session = Depends(get_db)):
    """Public self-registration"""
    return AuthService.register_user(
        db,
        username=register_data.username.strip(),
        email=register_data.email,
        password=register_data.password,
        full_name=register_data.full_name.strip(),
    )


@router.get("/me", response_model=UserResponse)
def get_current_user_info(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    return db.get(User, principal.id)
