"""Media storage on Google Drive with database records."""

from dataclasses import dataclass
from datetime import datetime
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID
import logging
import uuid

from spectral.models.contribution import ContributionVersion
from spectral.models.enums import MediaType
from spectral.models.folder import Folder, FolderItem
from spectral.models.media import Media
from spectral.models.user import User
from spectral.platforms.drive.drive_service import DriveService
from spectral.services.access import has_account_access
from spectral.services.errors import ConflictError, IntegrationError, NotFoundError
from spectral.services.logging_service import app_metrics
from spectral.utils.validators import mime_subtype, safe_file_name

logger = logging.getLogger(__name__)


@dataclass
class FilePayload:
    """An uploaded file read into memory."""
    data: bytes
    mime_type: str
    file_name: str

    @property
    def size(self) -> int:
        return len(self.data)


class MediaService:
    """Uploads files to Drive and keeps the Media rows in step."""

    def __init__(self, db: Session, drive: Optional[DriveService] = None):
        self.db = db
        self.drive = drive

    def save(self, payload: FilePayload, media_type: MediaType) -> Media:
        """
        Upload a file into the root Drive folder and record it.

        Args:
            payload: File content and metadata
            media_type: VIDEO or IMAGE

        Returns:
            The new Media row

        Raises:
            IntegrationError: If the Drive upload fails
        """
        original = safe_file_name(payload.file_name)
        file_name = (
            f"{datetime.utcnow().isoformat()}_{original}_{uuid.uuid4()}"
            f".{mime_subtype(payload.mime_type)}"
        )

        result = self._upload(payload, file_name)

        media = self._build_media(payload, media_type, result, file_name)
        self.db.add(media)
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            self._discard_upload(result["file_id"])
            raise

        self.db.refresh(media)
        return media

    def save_with_folder_relation(
        self,
        payload: FilePayload,
        media_type: MediaType,
        folder_id: UUID,
        user_id: UUID
    ) -> Media:
        """
        Upload a file into a folder's Drive folder and link it to the folder.

        The Media row and the FolderItem row are committed together.

        Raises:
            NotFoundError: If the folder does not exist
            IntegrationError: If the Drive upload fails
        """
        folder = self.db.query(Folder).filter(
            Folder.id == folder_id,
            Folder.deleted_at.is_(None)
        ).first()
        if not folder:
            raise NotFoundError("Folder not found")

        original = safe_file_name(payload.file_name)
        file_name = (
            f"{folder.name}_{datetime.utcnow().isoformat()}_{original}_{uuid.uuid4()}"
            f".{mime_subtype(payload.mime_type)}_{user_id}"
        )

        result = self._upload(payload, file_name, parent_id=folder.drive_folder_id)

        media = self._build_media(payload, media_type, result, file_name)
        try:
            self.db.add(media)
            self.db.flush()
            self.db.add(FolderItem(folder_id=folder.id, media_id=media.id))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            self._discard_upload(result["file_id"])
            raise

        self.db.refresh(media)
        return media

    def delete(self, media_id: UUID):
        """
        Delete a media object and its Drive file.

        Raises:
            NotFoundError: If the media does not exist
            ConflictError: If a contribution version still uses it
        """
        media = self.get_by_id(media_id)
        if not media:
            raise NotFoundError("Media not found")

        in_use = self.db.query(ContributionVersion.id).filter(
            (ContributionVersion.video_id == media.id) | (ContributionVersion.thumbnail_id == media.id)
        ).first()
        if in_use:
            raise ConflictError("Media is used by a contribution version")

        if media.integration_key:
            self.drive.delete_file(media.integration_key)

        self.db.delete(media)
        self.db.commit()

    def get_by_id(self, media_id: UUID) -> Optional[Media]:
        """Media by id, or None."""
        return self.db.query(Media).filter(Media.id == media_id).first()

    def can_access(self, media: Media, user: User) -> bool:
        """
        Whether the user may see or delete a media object.

        Media reachable through a folder or a contribution inherits that
        account's access rules; media not linked anywhere yet is open to
        any signed-in user.
        """
        accounts = [
            folder.account for folder in self.db.query(Folder).join(FolderItem).filter(
                FolderItem.media_id == media.id
            ).all()
        ]
        accounts += [
            version.contribution.account for version in self.db.query(ContributionVersion).filter(
                (ContributionVersion.video_id == media.id) | (ContributionVersion.thumbnail_id == media.id)
            ).all()
        ]

        if not accounts:
            return True
        return any(has_account_access(self.db, account, user) for account in accounts)

    def _upload(self, payload: FilePayload, file_name: str, parent_id: Optional[str] = None) -> dict:
        try:
            if parent_id:
                return self.drive.upload_file(
                    payload.data, payload.mime_type, file_name=file_name, parent_id=parent_id
                )
            return self.drive.upload_file(
                payload.data, payload.mime_type, self.drive.root_folder_name, file_name=file_name
            )
        except IntegrationError as e:
            app_metrics.increment_integration("drive_errors")
            raise IntegrationError(f"Drive upload failed: {e.message}", upstream_status=e.upstream_status)

    def _discard_upload(self, file_id: str):
        try:
            self.drive.delete_file(file_id)
        except IntegrationError as e:
            logger.error(f"Could not remove orphaned Drive file {file_id}: {e}")

    @staticmethod
    def _build_media(payload: FilePayload, media_type: MediaType, result: dict, file_name: str) -> Media:
        return Media(
            type=media_type.value,
            integration_url=result["url"],
            integration_key=result["file_id"],
            file_name=file_name,
            mime_type=payload.mime_type,
            size=payload.size
        )
