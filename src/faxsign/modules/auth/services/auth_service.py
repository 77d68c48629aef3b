import logging
from datetime import datetime, timedelta
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from faxsign.config import get_settings
from faxsign.errors import StateConflictError
from faxsign.modules.users.models.user import User, UserRole

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class AuthService:

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Checks a password against its bcrypt hash"""
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def get_password_hash(password: str) -> str:
        return pwd_context.hash(password)

    @staticmethod
    def authenticate_user(db: Session, username: str, password: str) -> Optional[User]:
        """Authenticates a user by username and password"""
        user = db.query(User).filter(User.username == username).first()
        if not user:
            return None
        if not AuthService.verify_password(password, user.password_hash):
            return None
        return user

    @staticmethod
    def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
        """Issues a JWT carrying the user's id, role and department"""
        settings = get_settings()
        if expires_delta is None:
            expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
        to_encode = {
            "sub": str(user.id),
            "username": user.username,
            "role": user.role.value,
            "department_id": user.department_id,
            "department_name": user.department_name,
            "exp": datetime.utcnow() + expires_delta,
        }
        return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)

    @staticmethod
    def verify_token(token: str) -> Optional[int]:
        """Verifies a JWT and returns the user id it was issued for"""
        settings = get_settings()
        try:
            payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        except JWTError:
            return None
        subject = payload.get("sub")
        if subject is None or not str(subject).isdecimal():
            return None
        return int(subject)

    @staticmethod
    def register_user(db: Session, username: str, email: str, password: str, full_name: str) -> User:
        """Self-registration; new accounts are standard users without a department"""
        duplicate = db.query(User).filter(
            (User.username == username) | (User.email == email)
        ).first()
        if duplicate:
            raise StateConflictError("Username or email already exists")

        user = User(
            username=username,
            email=email,
            password_hash=AuthService.get_password_hash(password),
            full_name=full_name,
            role=UserRole.STANDARD,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("Registered user %s (id=%s)", user.username, user.id)
        return user
