"""Media stored in Google Drive."""

from sqlalchemy import Column, String, DateTime, BigInteger, Uuid
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from spectral.database import Base


class Media(Base):
    """A video or image file uploaded to Drive."""
    __tablename__ = "media"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    type = Column(String(20), nullable=False)  # 'VIDEO' or 'IMAGE'

    # External storage
    integration_url = Column(String(500))
    integration_key = Column(String(100), index=True)  # Drive file ID

    file_name = Column(String(500))
    mime_type = Column(String(100))
    size = Column(BigInteger, default=0)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    folder_items = relationship("FolderItem", back_populates="media", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Media(type={self.type}, key='{self.integration_key}')>"
