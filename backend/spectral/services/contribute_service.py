"""Contributions, their versions, review and publishing."""

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload
from typing import List, Optional
from uuid import UUID
import logging

from spectral.models.account import AccountEditorMap
from spectral.models.contribution import Contribution, ContributionVersion, VersionComment
from spectral.models.enums import AccountStatus, MapStatus, MediaType, VersionStatus, VERSION_TRANSITIONS
from spectral.models.user import User
from spectral.platforms.drive.drive_service import DriveService
from spectral.platforms.youtube.youtube_service import YouTubeIntegrationService
from spectral.services.account_service import AccountService
from spectral.services.errors import (
    ConflictError,
    IntegrationError,
    NotFoundError,
    PermissionDenied,
    ValidationError,
)
from spectral.services.logging_service import app_metrics
from spectral.services.media_service import FilePayload, MediaService
from spectral.utils.validators import parse_tags, sanitize_input

logger = logging.getLogger(__name__)


class ContributeService:
    """Editor submissions and the creator's review of them."""

    def __init__(
        self,
        db: Session,
        drive: Optional[DriveService] = None,
        youtube: Optional[YouTubeIntegrationService] = None
    ):
        self.db = db
        self.drive = drive
        self.youtube = youtube
        self.media = MediaService(db, drive)

    # ============================================
    # Contributions
    # ============================================

    def create_contribution(
        self,
        video: FilePayload,
        thumbnail: FilePayload,
        account_id: UUID,
        title: str,
        description: Optional[str],
        tags: Optional[str],
        editor_id: UUID
    ) -> Contribution:
        """
        Submit a new contribution with its first version.

        Args:
            video: Video upload
            thumbnail: Thumbnail image upload
            account_id: Target account
            title: Video title
            description: Video description
            tags: Comma separated tags
            editor_id: Submitting editor

        Returns:
            The Contribution; version 1 is PENDING

        Raises:
            PermissionDenied: If the editor has no active access to the account
            ValidationError: If the files have the wrong type or the title is empty
        """
        self._require_editor_access(account_id, editor_id)
        title, description, tag_list = self._clean_metadata(title, description, tags)
        self._check_files(video, thumbnail)

        video_media, thumbnail_media = self._save_files(video, thumbnail)

        contribution = Contribution(
            account_id=account_id,
            editor_id=editor_id,
            title=title,
            description=description,
            tags=tag_list
        )
        version = ContributionVersion(
            version_number=1,
            video_id=video_media.id,
            thumbnail_id=thumbnail_media.id,
            title=title,
            description=description,
            tags=tag_list,
            duration=video.size,
            status=VersionStatus.PENDING.value
        )
        contribution.versions.append(version)
        self.db.add(contribution)

        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            self._discard_media(video_media.id, thumbnail_media.id)
            raise

        self.db.refresh(contribution)
        logger.info(f"Editor {editor_id} submitted contribution {contribution.id} to account {account_id}")
        return contribution

    def get_contributions_by_account_id(self, account_id: UUID) -> List[Contribution]:
        """Contributions of an account, newest first."""
        return self.db.query(Contribution).options(
            joinedload(Contribution.editor),
            selectinload(Contribution.versions)
        ).filter(
            Contribution.account_id == account_id
        ).order_by(Contribution.created_at.desc()).all()

    def get_contribution_by_id(self, contribution_id: UUID) -> Contribution:
        """
        Contribution with versions, media and comments.

        Raises:
            NotFoundError: If the contribution does not exist
        """
        contribution = self.db.query(Contribution).options(
            joinedload(Contribution.editor),
            selectinload(Contribution.versions).joinedload(ContributionVersion.video),
            selectinload(Contribution.versions).joinedload(ContributionVersion.thumbnail),
            selectinload(Contribution.versions).selectinload(ContributionVersion.comments).joinedload(VersionComment.author)
        ).filter(Contribution.id == contribution_id).first()

        if not contribution:
            raise NotFoundError("Contribution not found")
        return contribution

    # ============================================
    # Versions
    # ============================================

    def create_version(
        self,
        contribution_id: UUID,
        video: FilePayload,
        thumbnail: FilePayload,
        title: Optional[str],
        description: Optional[str],
        tags: Optional[str],
        editor_id: UUID
    ) -> ContributionVersion:
        """
        Add a revision to a contribution.

        Missing title falls back to the contribution's current title. The
        contribution's metadata follows the newest version.

        Raises:
            NotFoundError: If the contribution does not exist
            PermissionDenied: If the caller is not the contribution's editor
            ConflictError: If a version has already been published
        """
        contribution = self.db.query(Contribution).filter(Contribution.id == contribution_id).first()
        if not contribution:
            raise NotFoundError("Contribution not found")

        if contribution.editor_id != editor_id:
            raise PermissionDenied("Only the contributing editor can add versions")

        self._require_editor_access(contribution.account_id, editor_id)

        published = self.db.query(ContributionVersion.id).filter(
            ContributionVersion.contribution_id == contribution.id,
            ContributionVersion.status == VersionStatus.COMPLETED.value
        ).first()
        if published:
            raise ConflictError("Contribution has already been published")

        title, description, tag_list = self._clean_metadata(title or contribution.title, description, tags)
        self._check_files(video, thumbnail)

        video_media, thumbnail_media = self._save_files(video, thumbnail)

        latest = self.db.query(func.max(ContributionVersion.version_number)).filter(
            ContributionVersion.contribution_id == contribution.id
        ).scalar() or 0

        version = ContributionVersion(
            contribution_id=contribution.id,
            version_number=latest + 1,
            video_id=video_media.id,
            thumbnail_id=thumbnail_media.id,
            title=title,
            description=description,
            tags=tag_list,
            duration=video.size,
            status=VersionStatus.PENDING.value
        )
        self.db.add(version)

        contribution.title = title
        contribution.description = description
        contribution.tags = tag_list

        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            self._discard_media(video_media.id, thumbnail_media.id)
            raise ConflictError("Another version was submitted at the same time, please retry")

        self.db.refresh(version)
        return version

    def get_versions_by_contribution_id(self, contribution_id: UUID) -> List[ContributionVersion]:
        """Versions of a contribution, newest first."""
        return self.db.query(ContributionVersion).options(
            joinedload(ContributionVersion.video),
            joinedload(ContributionVersion.thumbnail),
            selectinload(ContributionVersion.comments).joinedload(VersionComment.author)
        ).filter(
            ContributionVersion.contribution_id == contribution_id
        ).order_by(ContributionVersion.version_number.desc()).all()

    def get_version_by_id(self, version_id: UUID) -> ContributionVersion:
        """
        Version with media and comments.

        Raises:
            NotFoundError: If the version does not exist
        """
        version = self.db.query(ContributionVersion).options(
            joinedload(ContributionVersion.contribution),
            joinedload(ContributionVersion.video),
            joinedload(ContributionVersion.thumbnail),
            selectinload(ContributionVersion.comments).joinedload(VersionComment.author)
        ).filter(ContributionVersion.id == version_id).first()

        if not version:
            raise NotFoundError("Version not found")
        return version

    def update_version_status(
        self,
        version_id: UUID,
        status: VersionStatus,
        reviewer: User,
        privacy_status: Optional[str] = None
    ) -> ContributionVersion:
        """
        Apply the creator's review decision.

        COMPLETED publishes the version to YouTube: the version is held in
        PROCESSING during the upload and falls back to its previous status if
        the upload fails.

        Args:
            version_id: Version under review
            status: New status
            reviewer: Must own the contribution's account
            privacy_status: YouTube privacy for the published video

        Raises:
            NotFoundError: If the version does not exist
            PermissionDenied: If the reviewer does not own the account
            ValidationError: If the transition is not allowed
            ConflictError: If another version is already published
            IntegrationError: If publishing fails
        """
        version = self.get_version_by_id(version_id)
        account = version.contribution.account

        if account.creator_id != reviewer.id:
            raise PermissionDenied("Only the account owner can review versions")

        current = VersionStatus(version.status)
        if status == current:
            return version

        if status not in VERSION_TRANSITIONS[current]:
            raise ValidationError(f"Cannot change status from {current.value} to {status.value}")

        if status != VersionStatus.COMPLETED:
            version.status = status.value
            self.db.commit()
            self.db.refresh(version)
            return version

        return self._publish(version, account, current, privacy_status)

    def _publish(self, version: ContributionVersion, account, previous: VersionStatus, privacy_status: Optional[str]):
        if account.status != AccountStatus.ACTIVE.value:
            raise ValidationError("Account is not active")

        already = self.db.query(ContributionVersion.id).filter(
            ContributionVersion.contribution_id == version.contribution_id,
            ContributionVersion.status == VersionStatus.COMPLETED.value
        ).first()
        if already:
            raise ConflictError("Contribution has already been published")

        version.status = VersionStatus.PROCESSING.value
        self.db.commit()

        metadata = {
            "title": version.title,
            "description": version.description,
            "tags": version.tags or [],
            "privacy_status": privacy_status,
            "mime_type": version.video.mime_type,
            "thumbnail_mime_type": version.thumbnail.mime_type,
        }

        try:
            accounts = AccountService(self.db, self.youtube)
            youtube_video_id = self.youtube.upload_from_drive(
                accounts.get_tokens(account),
                self.drive,
                version.video.integration_key,
                version.thumbnail.integration_key,
                metadata
            )
        except Exception as e:
            version.status = previous.value
            self.db.commit()
            app_metrics.increment_integration("youtube_errors")
            logger.error(f"Publishing version {version.id} failed: {e}")
            raise IntegrationError(
                f"YouTube upload failed: {e}",
                upstream_status=getattr(e, "upstream_status", None)
            )

        version.status = VersionStatus.COMPLETED.value
        version.youtube_video_id = youtube_video_id
        self.db.commit()
        self.db.refresh(version)

        app_metrics.increment_integration("youtube_uploads")
        logger.info(f"Published version {version.id} as YouTube video {youtube_video_id}")
        return version

    # ============================================
    # Comments
    # ============================================

    def create_version_comment(self, version_id: UUID, author: User, content: str) -> VersionComment:
        """
        Post feedback on a version.

        Raises:
            NotFoundError: If the version does not exist
            PermissionDenied: If the author is neither the account owner nor the contributing editor
            ValidationError: If the content is empty
        """
        version = self.get_version_by_id(version_id)
        contribution = version.contribution

        if author.id not in (contribution.account.creator_id, contribution.editor_id):
            raise PermissionDenied("Only the creator and the contributing editor can comment")

        content = sanitize_input(content, max_length=5000)
        if not content:
            raise ValidationError("Comment cannot be empty")

        comment = VersionComment(version_id=version.id, author_id=author.id, content=content)
        self.db.add(comment)
        self.db.commit()
        self.db.refresh(comment)
        return comment

    def get_version_comments(self, version_id: UUID) -> List[VersionComment]:
        """Comments on a version, oldest first."""
        return self.db.query(VersionComment).options(
            joinedload(VersionComment.author)
        ).filter(
            VersionComment.version_id == version_id
        ).order_by(VersionComment.created_at.asc()).all()

    # ============================================
    # Helpers
    # ============================================

    def _require_editor_access(self, account_id: UUID, editor_id: UUID):
        grant = self.db.query(AccountEditorMap).filter(
            AccountEditorMap.account_id == account_id,
            AccountEditorMap.editor_id == editor_id,
            AccountEditorMap.status == MapStatus.ACTIVE.value
        ).first()
        if not grant:
            raise PermissionDenied("Editor does not have access to this account")

    @staticmethod
    def _clean_metadata(title: Optional[str], description: Optional[str], tags: Optional[str]):
        title = sanitize_input(title, max_length=255)
        if not title:
            raise ValidationError("Title is required")
        return title, sanitize_input(description, max_length=5000), parse_tags(tags)

    @staticmethod
    def _check_files(video: FilePayload, thumbnail: FilePayload):
        if not video.data or not (video.mime_type or "").startswith("video/"):
            raise ValidationError("A video file is required")
        if not thumbnail.data or not (thumbnail.mime_type or "").startswith("image/"):
            raise ValidationError("A thumbnail image is required")

    def _save_files(self, video: FilePayload, thumbnail: FilePayload):
        video_media = self.media.save(video, MediaType.VIDEO)
        try:
            thumbnail_media = self.media.save(thumbnail, MediaType.IMAGE)
        except (IntegrationError, SQLAlchemyError):
            self._discard_media(video_media.id)
            raise
        return video_media, thumbnail_media

    def _discard_media(self, *media_ids: UUID):
        for media_id in media_ids:
            try:
                self.media.delete(media_id)
            except (IntegrationError, NotFoundError) as e:
                logger.error(f"Could not remove media {media_id}: {e}")
