"""Contribution, version and review comment models."""

from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, BigInteger, JSON, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from spectral.database import Base


class Contribution(Base):
    """An editor's submission for a creator account."""
    __tablename__ = "contributions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    account_id = Column(Uuid(as_uuid=True), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    editor_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text)
    tags = Column(JSON, default=list)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    account = relationship("Account", back_populates="contributions")
    editor = relationship("User")
    versions = relationship(
        "ContributionVersion",
        back_populates="contribution",
        cascade="all, delete-orphan",
        order_by="ContributionVersion.version_number"
    )

    def __repr__(self):
        return f"<Contribution(title='{self.title}', account_id={self.account_id})>"


class ContributionVersion(Base):
    """One numbered revision of a contribution with its own media and status."""
    __tablename__ = "contribution_versions"
    __table_args__ = (
        UniqueConstraint("contribution_id", "version_number", name="uq_contribution_version"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    contribution_id = Column(Uuid(as_uuid=True), ForeignKey("contributions.id", ondelete="CASCADE"), nullable=False, index=True)
    version_number = Column(Integer, nullable=False)

    video_id = Column(Uuid(as_uuid=True), ForeignKey("media.id"), nullable=False)
    thumbnail_id = Column(Uuid(as_uuid=True), ForeignKey("media.id"), nullable=False)

    title = Column(String(255), nullable=False)
    description = Column(Text)
    tags = Column(JSON, default=list)
    duration = Column(BigInteger, default=0)

    status = Column(String(20), default="PENDING", nullable=False, index=True)
    youtube_video_id = Column(String(50))  # Set once published

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    contribution = relationship("Contribution", back_populates="versions")
    video = relationship("Media", foreign_keys=[video_id])
    thumbnail = relationship("Media", foreign_keys=[thumbnail_id])
    comments = relationship(
        "VersionComment",
        back_populates="version",
        cascade="all, delete-orphan",
        order_by="VersionComment.created_at"
    )

    def __repr__(self):
        return f"<ContributionVersion(number={self.version_number}, status={self.status})>"


class VersionComment(Base):
    """Review feedback on a version."""
    __tablename__ = "version_comments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    version_id = Column(Uuid(as_uuid=True), ForeignKey("contribution_versions.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    version = relationship("ContributionVersion", back_populates="comments")
    author = relationship("User")

    def __repr__(self):
        return f"<VersionComment(version_id={self.version_id}, author_id={self.author_id})>"
