"""Password hashing and JWT helpers."""

from datetime import datetime, timedelta
from typing import Optional, Dict, Any, Tuple
import re
import uuid

from jose import jwt, JWTError
from passlib.context import CryptContext

from spectral.config import settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

OAUTH_STATE_PURPOSE = "account_link"


def hash_password(password: str) -> str:
    """
    Hash a password for storage.

    Args:
        password: Plain text password

    Returns:
        Password hash
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Check a plain text password against its stored hash.

    Args:
        plain_password: Password supplied at login
        hashed_password: Stored hash

    Returns:
        True if the password matches
    """
    return pwd_context.verify(plain_password, hashed_password)


def validate_password_strength(password: str) -> Tuple[bool, str]:
    """
    Validate password strength.

    Requirements:
    - At least 8 characters
    - At least one uppercase and one lowercase letter
    - At least one digit

    Args:
        password: Password to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if len(password) < 8:
        return False, "Password must be at least 8 characters long"

    if not re.search(r"[A-Z]", password):
        return False, "Password must contain at least one uppercase letter"

    if not re.search(r"[a-z]", password):
        return False, "Password must contain at least one lowercase letter"

    if not re.search(r"\d", password):
        return False, "Password must contain at least one digit"

    return True, ""


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT access token.

    Args:
        data: Claims to encode
        expires_delta: Custom lifetime, defaults to ACCESS_TOKEN_EXPIRE_MINUTES

    Returns:
        Encoded JWT
    """
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    # jti keeps tokens issued within the same second distinct
    to_encode.update({"exp": expire, "iat": datetime.utcnow(), "jti": uuid.uuid4().hex})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and verify a JWT.

    Args:
        token: Encoded JWT

    Returns:
        Claims dictionary or None if the token is invalid or expired
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None


def create_oauth_state(creator_id: str) -> str:
    """Sign the creator id into the OAuth ``state`` parameter."""
    return create_access_token(
        {"sub": creator_id, "purpose": OAUTH_STATE_PURPOSE},
        expires_delta=timedelta(minutes=settings.OAUTH_STATE_EXPIRE_MINUTES)
    )


def read_oauth_state(state: str) -> Optional[str]:
    """Return the creator id carried by a valid OAuth state, else None."""
    payload = decode_access_token(state)
    if not payload or payload.get("purpose") != OAUTH_STATE_PURPOSE:
        return None
    return payload.get("sub")