"""Linked YouTube accounts and the creator/editor relationship maps."""

from sqlalchemy import Column, String, DateTime, ForeignKey, Text, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from spectral.database import Base


class Account(Base):
    """A creator's YouTube channel linked through Google OAuth."""
    __tablename__ = "accounts"
    __table_args__ = (
        UniqueConstraint("creator_id", "email", name="uq_creator_account_email"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    creator_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    email = Column(String(255), nullable=False, index=True)  # Google account email

    # OAuth tokens, Fernet encrypted
    encrypted_access_token = Column(Text, nullable=False)
    encrypted_refresh_token = Column(Text, nullable=True)

    # Channel details, filled on link
    channel_id = Column(String(100))
    channel_title = Column(String(255))

    status = Column(String(20), default="ACTIVE", nullable=False, index=True)

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    creator = relationship("User", back_populates="accounts")
    editor_maps = relationship("AccountEditorMap", back_populates="account", cascade="all, delete-orphan")
    folders = relationship("Folder", back_populates="account", cascade="all, delete-orphan")
    contributions = relationship("Contribution", back_populates="account", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Account(email='{self.email}', status={self.status})>"


class CreatorEditorMap(Base):
    """Invitation/relationship between a creator and an editor."""
    __tablename__ = "creator_editor_maps"
    __table_args__ = (
        UniqueConstraint("creator_id", "editor_id", name="uq_creator_editor"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    creator_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    editor_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), default="PENDING", nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    creator = relationship("User", foreign_keys=[creator_id])
    editor = relationship("User", foreign_keys=[editor_id])

    def __repr__(self):
        return f"<CreatorEditorMap(creator_id={self.creator_id}, editor_id={self.editor_id}, status={self.status})>"


class AccountEditorMap(Base):
    """Grants an editor access to one specific creator account."""
    __tablename__ = "account_editor_maps"
    __table_args__ = (
        UniqueConstraint("account_id", "editor_id", name="uq_account_editor"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    account_id = Column(Uuid(as_uuid=True), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    editor_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), default="PENDING", nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    account = relationship("Account", back_populates="editor_maps")
    editor = relationship("User")

    def __repr__(self):
        return f"<AccountEditorMap(account_id={self.account_id}, editor_id={self.editor_id}, status={self.status})>"
