# fileshare/models/file_record.py
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, BigInteger, Boolean
from sqlalchemy.orm import relationship
from .base import Base


class FileRecord(Base):
    """Metadata of an uploaded file, the bytes live in the blob store"""
    __tablename__ = "files"

    id = Column(Integer, primary_key=True, index=True)
    filename = Column(String(255), unique=True, nullable=False)  # generated storage name
    original_name = Column(String(1024), nullable=False)  # user supplied, untrusted
    file_path = Column(String(2048), nullable=False)
    file_size = Column(BigInteger, nullable=False)
    mime_type = Column(String(255), nullable=False)
    uploaded_by = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)  # NULL - never expires
    is_public = Column(Boolean, default=False, nullable=False, index=True)

    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )

    owner = relationship("User", back_populates="files")

    def __repr__(self):
        return f"<FileRecord(id={self.id}, filename={self.filename}, owner={self.uploaded_by})>"
