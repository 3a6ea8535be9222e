"""Folder models for grouping media inside an account."""

from sqlalchemy import Column, String, DateTime, ForeignKey, Index, Uuid, UniqueConstraint, text
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from spectral.database import Base


class Folder(Base):
    """Named grouping of media items scoped to one account. Soft deleted."""
    __tablename__ = "folders"
    __table_args__ = (
        # Unique among live folders only
        Index(
            "uq_folders_account_live_name",
            "account_id",
            "name",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    drive_folder_id = Column(String(100), nullable=False)  # Google Drive folder ID
    name = Column(String(255), nullable=False)

    creator_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    editor_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    account_id = Column(Uuid(as_uuid=True), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True, index=True)

    # Relationships
    account = relationship("Account", back_populates="folders")
    items = relationship("FolderItem", back_populates="folder", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Folder(name='{self.name}', account_id={self.account_id})>"


class FolderItem(Base):
    """Join record placing a media object inside a folder."""
    __tablename__ = "folder_items"
    __table_args__ = (
        UniqueConstraint("folder_id", "media_id", name="uq_folder_media"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    folder_id = Column(Uuid(as_uuid=True), ForeignKey("folders.id", ondelete="CASCADE"), nullable=False, index=True)
    media_id = Column(Uuid(as_uuid=True), ForeignKey("media.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    deleted_at = Column(DateTime, nullable=True)

    # Relationships
    folder = relationship("Folder", back_populates="items")
    media = relationship("Media", back_populates="folder_items")

    def __repr__(self):
        return f"<FolderItem(folder_id={self.folder_id}, media_id={self.media_id})>"
