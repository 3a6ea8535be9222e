"""Pydantic schemas for contributions, versions and comments."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime
from uuid import UUID

from spectral.models.enums import VersionStatus
from spectral.models.folder_schemas import MediaResponse
from spectral.models.schemas import UserSummary


class CommentCreate(BaseModel):
    """Schema for posting review feedback."""
    content: str = Field(..., min_length=1, max_length=5000)


class CommentResponse(BaseModel):
    """Version comment with its author."""
    id: UUID
    version_id: UUID
    author_id: UUID
    content: str
    created_at: datetime
    author: UserSummary

    model_config = ConfigDict(from_attributes=True)


class VersionStatusUpdate(BaseModel):
    """
    Review decision for a version.

    COMPLETED publishes the version to the account's YouTube channel.
    """
    status: VersionStatus
    privacy_status: Optional[str] = Field(None, pattern="^(private|unlisted|public)$")


class VersionResponse(BaseModel):
    """Contribution version without nested data."""
    id: UUID
    contribution_id: UUID
    version_number: int
    video_id: UUID
    thumbnail_id: UUID
    title: str
    description: Optional[str] = None
    tags: List[str] = []
    duration: Optional[int] = 0
    status: VersionStatus
    youtube_video_id: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class VersionDetail(VersionResponse):
    """Version including media and comment thread."""
    video: MediaResponse
    thumbnail: MediaResponse
    comments: List[CommentResponse] = []


class ContributionResponse(BaseModel):
    """Contribution summary with version list."""
    id: UUID
    account_id: UUID
    editor_id: UUID
    title: str
    description: Optional[str] = None
    tags: List[str] = []
    created_at: datetime
    updated_at: Optional[datetime] = None
    editor: UserSummary
    versions: List[VersionResponse] = []

    model_config = ConfigDict(from_attributes=True)


class ContributionDetail(ContributionResponse):
    """Contribution with fully expanded versions."""
    versions: List[VersionDetail] = []
