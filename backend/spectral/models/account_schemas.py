"""Pydantic schemas for linked accounts and relationship maps."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, Any
from datetime import datetime
from uuid import UUID

from spectral.models.enums import AccountStatus, MapStatus
from spectral.models.schemas import UserSummary


# ============================================
# Linked YouTube Accounts
# ============================================

class AccountLinkRequest(BaseModel):
    """Authorization code returned by Google after consent."""
    code: str = Field(..., min_length=1)


class AccountLinkUrl(BaseModel):
    """Google consent URL for linking a channel."""
    url: str


class AccountUpdate(BaseModel):
    """Schema for updating a linked account entry."""
    status: Optional[AccountStatus] = None
    email: Optional[str] = Field(None, max_length=255)


class AccountResponse(BaseModel):
    """Linked account (tokens never included)."""
    id: UUID
    creator_id: UUID
    email: str
    channel_id: Optional[str] = None
    channel_title: Optional[str] = None
    status: AccountStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ChannelInfo(BaseModel):
    """Channel details reported by the YouTube Data API."""
    channel_id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    uploads_playlist_id: Optional[str] = None
    subscriber_count: int = 0
    video_count: int = 0
    view_count: int = 0
    raw: Dict[str, Any] = Field(default_factory=dict)


# ============================================
# Creator <-> Editor Maps
# ============================================

class CreatorEditorMapResponse(BaseModel):
    """Creator-editor relationship record."""
    id: UUID
    creator_id: UUID
    editor_id: UUID
    status: MapStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CreatorEditorMapWithEditor(CreatorEditorMapResponse):
    """Map as seen by the creator."""
    editor: UserSummary


class CreatorEditorMapWithCreator(CreatorEditorMapResponse):
    """Map as seen by the editor."""
    creator: UserSummary


class EditorLookup(BaseModel):
    """Result of searching an editor by email from a creator's point of view."""
    creator_id: UUID
    editor_id: UUID
    editor_mail: str
    editor_name: str
    editor_avatar: str = ""
    status: MapStatus


class MapStatusUpdate(BaseModel):
    """New status for a relationship map."""
    status: MapStatus


# ============================================
# Account <-> Editor Maps
# ============================================

class AccountEditorMapResponse(BaseModel):
    """Account-editor access record."""
    id: UUID
    account_id: UUID
    editor_id: UUID
    status: MapStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AccountEditorMapWithEditor(AccountEditorMapResponse):
    """Account-editor map including the editor."""
    editor: UserSummary


class AccountEditorMapWithAccount(AccountEditorMapResponse):
    """Account-editor map including the account."""
    account: AccountResponse
