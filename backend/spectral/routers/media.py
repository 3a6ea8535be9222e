"""Media upload endpoints."""

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from spectral.database import get_db
from spectral.middleware.auth import get_current_active_user
from spectral.models.enums import MediaType
from spectral.models.folder_schemas import MediaResponse
from spectral.models.media import Media
from spectral.models.schemas import MessageResponse
from spectral.models.user import User
from spectral.platforms.drive.drive_service import DriveService, get_drive_service
from spectral.routers.folders import get_folder_for_user
from spectral.services.media_service import FilePayload, MediaService

router = APIRouter()


def to_payload(upload: UploadFile) -> FilePayload:
    """Read an uploaded file into memory."""
    return FilePayload(
        data=upload.file.read(),
        mime_type=upload.content_type or "application/octet-stream",
        file_name=upload.filename or "upload"
    )


def _get_media(service: MediaService, media_id: UUID, user: User) -> Media:
    media = service.get_by_id(media_id)
    if not media:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Media not found")

    if not service.can_access(media, user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You do not have access to this media")
    return media


@router.post("", response_model=MediaResponse, status_code=status.HTTP_201_CREATED)
def upload_media(
    file: UploadFile = File(...),
    media_type: MediaType = Form(..., alias="type"),
    folder_id: Optional[UUID] = Form(None),
    current_user: User = Depends(get_current_active_user),
    drive: DriveService = Depends(get_drive_service),
    db: Session = Depends(get_db)
):
    """
    Upload a file to Drive.

    With ``folder_id`` the file is stored in the folder's Drive folder and
    linked to it in the same transaction.
    """
    payload = to_payload(file)
    if not payload.data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")

    service = MediaService(db, drive)

    if folder_id:
        folder = get_folder_for_user(db, folder_id, current_user)
        return service.save_with_folder_relation(payload, media_type, folder.id, current_user.id)

    return service.save(payload, media_type)


@router.get("/{media_id}", response_model=MediaResponse)
async def get_media(
    media_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Get a media object."""
    return _get_media(MediaService(db), media_id, current_user)


@router.delete("/{media_id}", response_model=MessageResponse)
def delete_media(
    media_id: UUID,
    current_user: User = Depends(get_current_active_user),
    drive: DriveService = Depends(get_drive_service),
    db: Session = Depends(get_db)
):
    """
    Delete a media object and its Drive file.

    Returns 409 while a contribution version still uses it.
    """
    service = MediaService(db, drive)
    media = _get_media(service, media_id, current_user)
    service.delete(media.id)
    return MessageResponse(message="Media deleted")
