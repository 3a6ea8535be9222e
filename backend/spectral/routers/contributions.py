"""Contribution, version and comment endpoints."""

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from spectral.database import get_db
from spectral.middleware.auth import get_current_active_user, get_current_creator, get_current_editor
from spectral.models.contribution import ContributionVersion
from spectral.models.contribution_schemas import (
    CommentCreate,
    CommentResponse,
    ContributionDetail,
    ContributionResponse,
    VersionDetail,
    VersionStatusUpdate,
)
from spectral.models.user import User
from spectral.platforms.drive.drive_service import DriveService, get_drive_service
from spectral.platforms.youtube.youtube_service import YouTubeIntegrationService, get_youtube_service
from spectral.routers.media import to_payload
from spectral.services.access import get_accessible_account
from spectral.services.contribute_service import ContributeService

router = APIRouter()
versions_router = APIRouter()


def _get_version(db: Session, version_id: UUID, user: User) -> ContributionVersion:
    version = ContributeService(db).get_version_by_id(version_id)
    get_accessible_account(db, version.contribution.account_id, user)
    return version


# ============================================
# Contributions
# ============================================

@router.get("", response_model=List[ContributionResponse])
async def list_contributions(
    account_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Contributions submitted to an account, newest first."""
    get_accessible_account(db, account_id, current_user)
    return ContributeService(db).get_contributions_by_account_id(account_id)


@router.post("", response_model=ContributionDetail, status_code=status.HTTP_201_CREATED)
def create_contribution(
    video: UploadFile = File(...),
    thumbnail: UploadFile = File(...),
    account_id: UUID = Form(...),
    title: str = Form(..., max_length=255),
    description: Optional[str] = Form(None),
    tags: Optional[str] = Form(None, description="Comma separated tags"),
    current_user: User = Depends(get_current_editor),
    drive: DriveService = Depends(get_drive_service),
    db: Session = Depends(get_db)
):
    """
    Submit a video with its thumbnail to an account.

    Requires ACTIVE access to the account. Creates version 1 in PENDING.
    """
    service = ContributeService(db, drive)
    contribution = service.create_contribution(
        to_payload(video),
        to_payload(thumbnail),
        account_id=account_id,
        title=title,
        description=description,
        tags=tags,
        editor_id=current_user.id
    )
    return service.get_contribution_by_id(contribution.id)


@router.get("/{contribution_id}", response_model=ContributionDetail)
async def get_contribution(
    contribution_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Contribution with all versions, media and comments."""
    contribution = ContributeService(db).get_contribution_by_id(contribution_id)
    get_accessible_account(db, contribution.account_id, current_user)
    return contribution


@router.post("/{contribution_id}/versions", response_model=VersionDetail, status_code=status.HTTP_201_CREATED)
def create_version(
    contribution_id: UUID,
    video: UploadFile = File(...),
    thumbnail: UploadFile = File(...),
    title: Optional[str] = Form(None, max_length=255),
    description: Optional[str] = Form(None),
    tags: Optional[str] = Form(None, description="Comma separated tags"),
    current_user: User = Depends(get_current_editor),
    drive: DriveService = Depends(get_drive_service),
    db: Session = Depends(get_db)
):
    """
    Submit a new version of a contribution.

    Only the contributing editor may do so, and not after publication.
    """
    service = ContributeService(db, drive)
    version = service.create_version(
        contribution_id,
        to_payload(video),
        to_payload(thumbnail),
        title=title,
        description=description,
        tags=tags,
        editor_id=current_user.id
    )
    return service.get_version_by_id(version.id)


@router.get("/{contribution_id}/versions", response_model=List[VersionDetail])
async def list_versions(
    contribution_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Versions of a contribution, newest first."""
    service = ContributeService(db)
    contribution = service.get_contribution_by_id(contribution_id)
    get_accessible_account(db, contribution.account_id, current_user)
    return service.get_versions_by_contribution_id(contribution.id)


# ============================================
# Versions
# ============================================

@versions_router.get("/{version_id}", response_model=VersionDetail)
async def get_version(
    version_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Get a version with media and comments."""
    return _get_version(db, version_id, current_user)


@versions_router.patch("/{version_id}/status", response_model=VersionDetail)
def update_version_status(
    version_id: UUID,
    update_data: VersionStatusUpdate,
    current_user: User = Depends(get_current_creator),
    drive: DriveService = Depends(get_drive_service),
    youtube: YouTubeIntegrationService = Depends(get_youtube_service),
    db: Session = Depends(get_db)
):
    """
    Review a version.

    COMPLETED publishes it to the account's YouTube channel; a failed upload
    returns 502 and leaves the previous status in place.
    """
    service = ContributeService(db, drive, youtube)
    version = service.update_version_status(
        version_id,
        update_data.status,
        current_user,
        privacy_status=update_data.privacy_status
    )
    return service.get_version_by_id(version.id)


@versions_router.get("/{version_id}/comments", response_model=List[CommentResponse])
async def list_comments(
    version_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Comments on a version, oldest first."""
    version = _get_version(db, version_id, current_user)
    return ContributeService(db).get_version_comments(version.id)


@versions_router.post("/{version_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    version_id: UUID,
    comment_data: CommentCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Comment on a version. Open to the account owner and the contributing editor."""
    return ContributeService(db).create_version_comment(version_id, current_user, comment_data.content)
