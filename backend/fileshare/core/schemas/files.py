# fileshare/core/schemas/files.py
from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import datetime


class FileSummary(BaseModel):
    id: int
    filename: str
    original_name: str
    file_size: int
    mime_type: str
    uploaded_by: int
    expires_at: Optional[datetime] = None
    is_public: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UploadResponse(BaseModel):
    message: str = "File uploaded successfully"
    file: FileSummary


class FileListResponse(BaseModel):
    files: List[FileSummary]


class ShareUrls(BaseModel):
    view: str
    download: str


class EmbedSnippets(BaseModel):
    image: Optional[str] = None
    iframe: Optional[str] = None
    link: str


class FileInfoResponse(BaseModel):
    id: int
    filename: str  # original name, the storage name is never exposed here
    mime_type: str
    file_size: int
    is_public: bool
    expires_at: Optional[datetime] = None
    created_at: datetime
    urls: ShareUrls
    embed: EmbedSnippets


class MessageResponse(BaseModel):
    message: str
