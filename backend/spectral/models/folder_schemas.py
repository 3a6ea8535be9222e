"""Pydantic schemas for folders and media."""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime
from uuid import UUID

from spectral.models.enums import MediaType


# ============================================
# Media
# ============================================

class MediaResponse(BaseModel):
    """Stored media object."""
    id: UUID
    type: MediaType
    integration_url: Optional[str] = None
    integration_key: Optional[str] = None
    file_name: Optional[str] = None
    mime_type: Optional[str] = None
    size: Optional[int] = 0
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============================================
# Folders
# ============================================

class FolderCreate(BaseModel):
    """Schema for creating a folder in an account."""
    name: str = Field(..., min_length=1, max_length=255)
    account_id: UUID

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v):
        """Reject whitespace-only names."""
        if not v.strip():
            raise ValueError("Folder name cannot be blank")
        return v.strip()


class FolderUpdate(BaseModel):
    """Schema for renaming a folder."""
    name: str = Field(..., min_length=1, max_length=255)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v):
        """Reject whitespace-only names."""
        if not v.strip():
            raise ValueError("Folder name cannot be blank")
        return v.strip()


class FolderResponse(BaseModel):
    """Folder record."""
    id: UUID
    drive_folder_id: str
    name: str
    creator_id: UUID
    editor_id: Optional[UUID] = None
    account_id: UUID
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class FolderItemCreate(BaseModel):
    """Schema for adding existing media to a folder."""
    media_id: UUID


class FolderItemResponse(BaseModel):
    """Folder item including its media."""
    id: UUID
    folder_id: UUID
    media_id: UUID
    created_at: datetime
    media: MediaResponse

    model_config = ConfigDict(from_attributes=True)
