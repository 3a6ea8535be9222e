"""Authentication service with business logic."""

from sqlalchemy.orm import Session
from datetime import datetime, timedelta
from typing import Optional, Tuple

from spectral.models.user import User
from spectral.models.session import UserSession
from spectral.models.schemas import UserCreate, UserLogin
from spectral.utils.security import hash_password, verify_password, create_access_token, validate_password_strength
from spectral.utils.validators import validate_email, sanitize_input
from spectral.config import settings


class AuthService:
    """Service for authentication operations."""

    @staticmethod
    def register_user(db: Session, user_data: UserCreate) -> Tuple[Optional[User], Optional[str]]:
        """
        Register a new creator or editor.

        Args:
            db: Database session
            user_data: User registration data

        Returns:
            Tuple of (user, error_message)
        """
        email = user_data.email.lower()

        # Validate email
        is_valid, error = validate_email(email)
        if not is_valid:
            return None, error

        # Validate password strength
        is_valid, error = validate_password_strength(user_data.password)
        if not is_valid:
            return None, error

        # Check if email already exists
        existing_user = db.query(User).filter(User.email == email).first()
        if existing_user:
            return None, "Email already registered"

        new_user = User(
            email=email,
            name=sanitize_input(user_data.name, max_length=100),
            hashed_password=hash_password(user_data.password),
            role=user_data.role.value,
            image=user_data.image,
            is_active=True
        )

        db.add(new_user)
        db.commit()
        db.refresh(new_user)

        return new_user, None

    @staticmethod
    def authenticate_user(db: Session, login_data: UserLogin) -> Tuple[Optional[User], Optional[str]]:
        """
        Authenticate a user with email/password.

        Args:
            db: Database session
            login_data: Login credentials

        Returns:
            Tuple of (user, error_message)
        """
        user = db.query(User).filter(User.email == login_data.email.lower()).first()

        if not user:
            return None, "Invalid credentials"

        if not user.is_active:
            return None, "Account is deactivated"

        if not verify_password(login_data.password, user.hashed_password):
            return None, "Invalid credentials"

        # Update last login
        user.last_login = datetime.utcnow()
        db.commit()

        return user, None

    @staticmethod
    def create_user_session(
        db: Session,
        user: User,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> str:
        """
        Create a new user session and JWT token.

        Args:
            db: Database session
            user: User object
            ip_address: Client IP address
            user_agent: Client user agent

        Returns:
            JWT access token
        """
        token_data = {
            "sub": str(user.id),
            "role": user.role
        }
        access_token = create_access_token(token_data)

        expires_at = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        session = UserSession(
            user_id=user.id,
            session_token=access_token,
            ip_address=ip_address,
            user_agent=user_agent,
            expires_at=expires_at
        )

        db.add(session)
        db.commit()

        return access_token

    @staticmethod
    def validate_session(db: Session, token: str) -> Tuple[Optional[User], Optional[str]]:
        """
        Validate a session token.

        Args:
            db: Database session
            token: JWT token

        Returns:
            Tuple of (user, error_message)
        """
        session = db.query(UserSession).filter(UserSession.session_token == token).first()

        if not session:
            return None, "Invalid session"

        if session.expires_at < datetime.utcnow():
            db.delete(session)
            db.commit()
            return None, "Session expired"

        session.last_activity = datetime.utcnow()
        db.commit()

        user = db.query(User).filter(User.id == session.user_id).first()
        if not user or not user.is_active:
            return None, "User not found or inactive"

        return user, None

    @staticmethod
    def logout_user(db: Session, token: str) -> bool:
        """
        Logout user by deleting session.

        Args:
            db: Database session
            token: JWT token

        Returns:
            True if successful, False otherwise
        """
        session = db.query(UserSession).filter(UserSession.session_token == token).first()
        if session:
            db.delete(session)
            db.commit()
            return True
        return False

    @staticmethod
    def cleanup_expired_sessions(db: Session) -> int:
        """
        Clean up expired sessions.

        Args:
            db: Database session

        Returns:
            Number of sessions deleted
        """
        count = db.query(UserSession).filter(
            UserSession.expires_at < datetime.utcnow()
        ).delete()
        db.commit()
        return count
