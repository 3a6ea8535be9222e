"""Folder endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID

from spectral.database import get_db
from spectral.middleware.auth import get_current_active_user
from spectral.models.folder import Folder
from spectral.models.folder_schemas import (
    FolderCreate,
    FolderItemCreate,
    FolderItemResponse,
    FolderResponse,
    FolderUpdate,
)
from spectral.models.enums import UserRole
from spectral.models.schemas import MessageResponse
from spectral.models.user import User
from spectral.platforms.drive.drive_service import DriveService, get_drive_service
from spectral.services.access import get_accessible_account
from spectral.services.folder_service import FolderService

router = APIRouter()


def get_folder_for_user(db: Session, folder_id: UUID, user: User) -> Folder:
    """Live folder inside an account the user may access."""
    folder = FolderService(db).get_folder_by_id(folder_id)
    if not folder:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Folder not found")

    get_accessible_account(db, folder.account_id, user)
    return folder


@router.get("", response_model=List[FolderResponse])
async def list_folders(
    account_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """
    Folders of an account.

    Creators see every folder of their account; editors see the folders they created.
    """
    get_accessible_account(db, account_id, current_user)
    service = FolderService(db)

    if current_user.role == UserRole.CREATOR.value:
        return service.get_folders_by_creator(current_user.id, account_id)
    return service.get_folders_by_editor(current_user.id, account_id)


@router.post("", response_model=FolderResponse, status_code=status.HTTP_201_CREATED)
def create_folder(
    folder_data: FolderCreate,
    current_user: User = Depends(get_current_active_user),
    drive: DriveService = Depends(get_drive_service),
    db: Session = Depends(get_db)
):
    """
    Create a folder in an account.

    Returns 409 if a live folder with the same name exists in the account.
    """
    account = get_accessible_account(db, folder_data.account_id, current_user)
    editor_id = current_user.id if current_user.role == UserRole.EDITOR.value else None

    return FolderService(db, drive).create_folder(
        folder_data.name,
        creator_id=account.creator_id,
        editor_id=editor_id,
        account_id=account.id
    )


@router.get("/{folder_id}", response_model=FolderResponse)
async def get_folder(
    folder_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Get a folder."""
    return get_folder_for_user(db, folder_id, current_user)


@router.patch("/{folder_id}", response_model=FolderResponse)
def rename_folder(
    folder_id: UUID,
    folder_data: FolderUpdate,
    current_user: User = Depends(get_current_active_user),
    drive: DriveService = Depends(get_drive_service),
    db: Session = Depends(get_db)
):
    """Rename a folder."""
    folder = get_folder_for_user(db, folder_id, current_user)
    return FolderService(db, drive).update_folder(folder.id, folder_data.name)


@router.delete("/{folder_id}", response_model=MessageResponse)
async def delete_folder(
    folder_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Delete a folder. Only its creator or editor may do so."""
    FolderService(db).delete_folder(folder_id, current_user.id)
    return MessageResponse(message="Folder deleted")


@router.get("/{folder_id}/items", response_model=List[FolderItemResponse])
async def list_folder_items(
    folder_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Media in a folder, newest first."""
    folder = get_folder_for_user(db, folder_id, current_user)
    return FolderService(db).get_folder_items(folder.id)


@router.post("/{folder_id}/items", response_model=FolderItemResponse, status_code=status.HTTP_201_CREATED)
async def add_folder_item(
    folder_id: UUID,
    item_data: FolderItemCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Add existing media to a folder."""
    folder = get_folder_for_user(db, folder_id, current_user)
    return FolderService(db).create_folder_item(folder.id, item_data.media_id, current_user)


@router.get("/{folder_id}/items/{media_id}", response_model=FolderItemResponse)
async def get_folder_item(
    folder_id: UUID,
    media_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Get one media entry of a folder."""
    folder = get_folder_for_user(db, folder_id, current_user)
    item = FolderService(db).get_folder_item(folder.id, media_id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Folder item not found")
    return item


@router.delete("/{folder_id}/items/{media_id}", response_model=MessageResponse)
async def remove_folder_item(
    folder_id: UUID,
    media_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Remove media from a folder."""
    folder = get_folder_for_user(db, folder_id, current_user)
    FolderService(db).delete_folder_item(folder.id, media_id)
    return MessageResponse(message="Folder item removed")
