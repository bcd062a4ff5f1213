# fileshare/api/v1/routes/files.py
from typing import Literal, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, Response, UploadFile, status
import logging

from fileshare.core.config import settings
from fileshare.core.schemas.auth import Identity
from fileshare.core.schemas.files import (
    FileInfoResponse,
    FileListResponse,
    FileSummary,
    MessageResponse,
    UploadResponse,
)
from fileshare.core.utils import (
    get_current_identity,
    get_file_service,
    get_optional_identity,
    get_upload_coordinator,
)
from fileshare.services.access_control import FileAction
from fileshare.services.file_service import FileService
from fileshare.services.share_links import build_embed, build_urls, content_disposition
from fileshare.services.upload_service import UploadCoordinator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["files"])


@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    file: Optional[UploadFile] = File(None),
    expire_days: Optional[int] = Form(None, alias="expireDays"),
    is_public: bool = Form(False, alias="isPublic"),
    identity: Identity = Depends(get_current_identity),
    coordinator: UploadCoordinator = Depends(get_upload_coordinator),
):
    """Upload a file. expireDays=0 keeps it forever, omitted means the default lifetime"""
    data = None
    original_name = None
    mime_type = None
    if file is not None:
        # one byte past the limit is enough to reject the upload
        data = await file.read(settings.storage.MAX_FILE_SIZE + 1)
        original_name = file.filename
        mime_type = file.content_type

    record = await coordinator.ingest(
        owner=identity,
        data=data,
        original_name=original_name,
        mime_type=mime_type,
        expire_days=expire_days,
        is_public=is_public,
    )
    return UploadResponse(file=FileSummary.model_validate(record))


@router.get("/files", response_model=FileListResponse)
async def list_my_files(
    identity: Identity = Depends(get_current_identity),
    file_service: FileService = Depends(get_file_service),
):
    """The caller's live files, newest first"""
    records = await file_service.list_owned(identity)
    return FileListResponse(files=[FileSummary.model_validate(r) for r in records])


@router.get("/files/{file_id}")
async def get_file(
    file_id: int,
    action: Literal["view", "download"] = Query("view"),
    identity: Optional[Identity] = Depends(get_optional_identity),
    file_service: FileService = Depends(get_file_service),
):
    """Raw file bytes, inline for view or as an attachment for download"""
    file_action = FileAction.DOWNLOAD if action == "download" else FileAction.VIEW
    record, data = await file_service.open_file(file_id, identity, file_action)

    # set the header directly, media_type would append a charset to text/* types
    return Response(
        content=data,
        headers={
            "Content-Type": record.mime_type,
            "Content-Disposition": content_disposition(record, file_action is FileAction.DOWNLOAD),
        },
    )


@router.get("/files/{file_id}/info", response_model=FileInfoResponse)
async def get_file_info(
    file_id: int,
    request: Request,
    identity: Optional[Identity] = Depends(get_optional_identity),
    file_service: FileService = Depends(get_file_service),
):
    """Metadata, share URLs and embed snippets"""
    record = await file_service.describe(file_id, identity)

    base_url = settings.public_base_url or f"{str(request.base_url).rstrip('/')}{settings.api_prefix}"
    urls = build_urls(base_url, record)
    return FileInfoResponse(
        id=record.id,
        filename=record.original_name,
        mime_type=record.mime_type,
        file_size=record.file_size,
        is_public=record.is_public,
        expires_at=record.expires_at,
        created_at=record.created_at,
        urls=urls,
        embed=build_embed(urls, record),
    )


@router.delete("/files/{file_id}", response_model=MessageResponse)
async def delete_file(
    file_id: int,
    identity: Identity = Depends(get_current_identity),
    file_service: FileService = Depends(get_file_service),
):
    await file_service.delete_file(file_id, identity)
    return MessageResponse(message="File deleted successfully")


@router.get("/public/files", response_model=FileListResponse)
async def list_public_files(
    file_service: FileService = Depends(get_file_service),
):
    """Public, live, unrestricted files, newest first"""
    records = await file_service.list_public()
    return FileListResponse(files=[FileSummary.model_validate(r) for r in records])
