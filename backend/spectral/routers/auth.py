"""Authentication endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session

from spectral.database import get_db
from spectral.models.schemas import (
    UserCreate,
    UserLogin,
    UserResponse,
    Token,
    MessageResponse
)
from spectral.models.user import User
from spectral.services.auth_service import AuthService
from spectral.middleware.auth import get_current_active_user, security

router = APIRouter()


def _issue_token(db: Session, user: User, request: Request) -> Token:
    ip_address = request.client.host if request.client else None
    user_agent = request.headers.get("user-agent")

    access_token = AuthService.create_user_session(
        db=db,
        user=user,
        ip_address=ip_address,
        user_agent=user_agent
    )

    return Token(
        access_token=access_token,
        token_type="bearer",
        user=UserResponse.model_validate(user)
    )


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Register a new creator or editor.

    Requirements:
    - Unique email
    - Role: creator or editor
    - Password (min 8 chars, uppercase, lowercase, digit)

    Returns:
        JWT access token and user data
    """
    user, error = AuthService.register_user(db, user_data)

    if error:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error
        )

    return _issue_token(db, user, request)


@router.post("/login", response_model=Token)
async def login(
    login_data: UserLogin,
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Login with email and password.

    Returns:
        JWT access token and user data
    """
    user, error = AuthService.authenticate_user(db, login_data)

    if error:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error,
            headers={"WWW-Authenticate": "Bearer"},
        )

    return _issue_token(db, user, request)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    credentials=Depends(security),
    db: Session = Depends(get_db)
):
    """
    Logout current user by invalidating session.

    Requires:
        Authorization: Bearer <token>
    """
    success = AuthService.logout_user(db, credentials.credentials)

    if not success:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Session not found"
        )

    return MessageResponse(message="Successfully logged out")


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_active_user)
):
    """Get current authenticated user's information."""
    return UserResponse.model_validate(current_user)


@router.get("/verify", response_model=MessageResponse)
async def verify_token(
    current_user: User = Depends(get_current_active_user)
):
    """Verify if the current token is valid."""
    return MessageResponse(
        message="Token is valid",
        detail=f"Authenticated as {current_user.email} ({current_user.role})"
    )
