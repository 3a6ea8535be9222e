"""Pydantic schemas for request/response validation."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional
from datetime import datetime
from uuid import UUID

from spectral.models.enums import UserRole


# ============================================
# User Schemas
# ============================================

class UserBase(BaseModel):
    """Base user schema."""
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=100)
    role: UserRole


class UserCreate(UserBase):
    """Schema for user registration."""
    password: str = Field(..., min_length=8)
    image: Optional[str] = Field(None, max_length=500)


class UserLogin(BaseModel):
    """Schema for user login."""
    email: str
    password: str


class UserResponse(UserBase):
    """Schema for user response."""
    id: UUID
    image: Optional[str] = None
    is_active: bool
    created_at: datetime
    last_login: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class UserSummary(BaseModel):
    """Public view of another user (map counterparts, comment authors)."""
    id: UUID
    email: str
    name: str
    image: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


# ============================================
# Authentication Schemas
# ============================================

class Token(BaseModel):
    """Schema for JWT token response."""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


# ============================================
# Generic Response Schemas
# ============================================

class MessageResponse(BaseModel):
    """Generic message response."""
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Generic error response."""
    error: str
    detail: Optional[str] = None
    status_code: int
