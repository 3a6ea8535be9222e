"""Folders of media scoped to a linked account."""

from datetime import datetime
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
from typing import List, Optional
from uuid import UUID
import logging

from spectral.models.folder import Folder, FolderItem
from spectral.models.media import Media
from spectral.models.user import User
from spectral.platforms.drive.drive_service import DriveService
from spectral.services.errors import ConflictError, IntegrationError, NotFoundError, PermissionDenied
from spectral.services.media_service import MediaService

logger = logging.getLogger(__name__)

DUPLICATE_NAME = "A folder with this name already exists"


class FolderService:
    """Folder CRUD backed by a Drive folder per row."""

    def __init__(self, db: Session, drive: Optional[DriveService] = None):
        self.db = db
        self.drive = drive

    def get_folders_by_creator(self, creator_id: UUID, account_id: UUID) -> List[Folder]:
        """Non-deleted folders of an account owned by the creator, newest first."""
        return self.db.query(Folder).filter(
            Folder.creator_id == creator_id,
            Folder.account_id == account_id,
            Folder.deleted_at.is_(None)
        ).order_by(Folder.created_at.desc()).all()

    def get_folders_by_editor(self, editor_id: UUID, account_id: UUID) -> List[Folder]:
        """Non-deleted folders an editor created in an account, newest first."""
        return self.db.query(Folder).filter(
            Folder.editor_id == editor_id,
            Folder.account_id == account_id,
            Folder.deleted_at.is_(None)
        ).order_by(Folder.created_at.desc()).all()

    def create_folder(
        self,
        name: str,
        creator_id: UUID,
        editor_id: Optional[UUID],
        account_id: UUID
    ) -> Folder:
        """
        Create a folder and its Drive counterpart.

        Args:
            name: Folder name, unique among the account's live folders
            creator_id: Account owner
            editor_id: Editor creating the folder, if any
            account_id: Owning account

        Raises:
            ConflictError: If the name is taken
        """
        self._ensure_name_free(name, account_id)

        drive_folder_id = self.drive.create_folder(name)

        folder = Folder(
            drive_folder_id=drive_folder_id,
            name=name,
            creator_id=creator_id,
            editor_id=editor_id,
            account_id=account_id
        )
        self.db.add(folder)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            self._remove_drive_folder(drive_folder_id)
            raise ConflictError(DUPLICATE_NAME)

        self.db.refresh(folder)
        logger.info(f"Created folder {folder.id} in account {account_id}")
        return folder

    def update_folder(self, folder_id: UUID, name: str) -> Folder:
        """
        Rename a folder in Drive and in the database.

        Raises:
            NotFoundError: If the folder does not exist
            ConflictError: If the new name is taken
        """
        folder = self.get_folder_by_id(folder_id)
        if not folder:
            raise NotFoundError("Folder not found")

        if name == folder.name:
            return folder

        self._ensure_name_free(name, folder.account_id, exclude_id=folder.id)

        previous = folder.name
        self.drive.update_folder(folder.drive_folder_id, name)

        folder.name = name
        folder.updated_at = datetime.utcnow()
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            self._restore_drive_name(folder.drive_folder_id, previous)
            raise ConflictError(DUPLICATE_NAME)
        self.db.refresh(folder)
        return folder

    def delete_folder(self, folder_id: UUID, user_id: UUID) -> Folder:
        """
        Soft delete a folder. Only its creator or editor may do so.

        Raises:
            NotFoundError: If the folder is missing or the user is neither
        """
        folder = self.db.query(Folder).filter(
            Folder.id == folder_id,
            Folder.deleted_at.is_(None),
            (Folder.creator_id == user_id) | (Folder.editor_id == user_id)
        ).first()
        if not folder:
            raise NotFoundError("Folder not found or unauthorized")

        folder.deleted_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(folder)
        return folder

    def get_folder_by_id(self, folder_id: UUID) -> Optional[Folder]:
        """Non-deleted folder by id, or None."""
        return self.db.query(Folder).filter(
            Folder.id == folder_id,
            Folder.deleted_at.is_(None)
        ).first()

    def get_folder_items(self, folder_id: UUID) -> List[FolderItem]:
        """Live items of a folder with their media, newest first."""
        return self.db.query(FolderItem).options(
            joinedload(FolderItem.media)
        ).filter(
            FolderItem.folder_id == folder_id,
            FolderItem.deleted_at.is_(None)
        ).order_by(FolderItem.created_at.desc()).all()

    def get_folder_item(self, folder_id: UUID, media_id: UUID) -> Optional[FolderItem]:
        """Live folder item for a media object, or None."""
        return self.db.query(FolderItem).options(
            joinedload(FolderItem.media)
        ).filter(
            FolderItem.folder_id == folder_id,
            FolderItem.media_id == media_id,
            FolderItem.deleted_at.is_(None)
        ).first()

    def create_folder_item(self, folder_id: UUID, media_id: UUID, user: Optional[User] = None) -> FolderItem:
        """
        Place existing media in a folder. A removed link is restored.

        When ``user`` is given they must already be able to access the media.

        Raises:
            NotFoundError: If the media does not exist
            PermissionDenied: If the user may not access the media
            ConflictError: If the media is already in the folder
        """
        media = self.db.query(Media).filter(Media.id == media_id).first()
        if not media:
            raise NotFoundError("Media not found")

        if user is not None and not MediaService(self.db).can_access(media, user):
            raise PermissionDenied("You do not have access to this media")

        item = self.db.query(FolderItem).filter(
            FolderItem.folder_id == folder_id,
            FolderItem.media_id == media_id
        ).first()

        if item and item.deleted_at is None:
            raise ConflictError("Media is already in this folder")

        if item:
            item.deleted_at = None
            item.created_at = datetime.utcnow()
        else:
            item = FolderItem(folder_id=folder_id, media_id=media_id)
            self.db.add(item)

        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Media is already in this folder")

        self.db.refresh(item)
        return item

    def delete_folder_item(self, folder_id: UUID, media_id: UUID) -> FolderItem:
        """
        Remove media from a folder (soft delete).

        Raises:
            NotFoundError: If the media is not in the folder
        """
        item = self.get_folder_item(folder_id, media_id)
        if not item:
            raise NotFoundError("Folder item not found")

        item.deleted_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(item)
        return item

    def _ensure_name_free(self, name: str, account_id: UUID, exclude_id: Optional[UUID] = None):
        query = self.db.query(Folder.id).filter(
            Folder.name == name,
            Folder.account_id == account_id,
            Folder.deleted_at.is_(None)
        )
        if exclude_id:
            query = query.filter(Folder.id != exclude_id)
        if query.first():
            raise ConflictError(DUPLICATE_NAME)

    def _remove_drive_folder(self, drive_folder_id: str):
        try:
            self.drive.delete_file(drive_folder_id)
        except IntegrationError as e:
            logger.error(f"Could not remove orphaned Drive folder {drive_folder_id}: {e}")

    def _restore_drive_name(self, drive_folder_id: str, name: str):
        try:
            self.drive.update_folder(drive_folder_id, name)
        except IntegrationError as e:
            logger.error(f"Could not restore Drive folder name {drive_folder_id}: {e}")
