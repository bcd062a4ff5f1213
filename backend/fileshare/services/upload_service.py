# fileshare/services/upload_service.py
import contextlib
import logging
import os
import re
import uuid
from typing import Optional

from fileshare.core.config import settings
from fileshare.core.exceptions import AuthenticationError, DatabaseError, ValidationError
from fileshare.core.schemas.auth import Identity
from fileshare.models.file_record import FileRecord
from fileshare.repositories.blob_store import BlobStore
from fileshare.repositories.file_repository import FileRepository
from fileshare.services.lifecycle import LifecycleManager

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"
MAX_BASE_NAME_LENGTH = 100
MAX_ORIGINAL_NAME_LENGTH = 1024
MAX_MIME_TYPE_LENGTH = 255
MAX_NAME_ATTEMPTS = 3

_UNSAFE_CHARS = re.compile(r'[^A-Za-z0-9._-]+')


def sanitize_filename(original_name: str) -> tuple[str, str]:
    """Split a user supplied name into a safe (base, extension) pair"""
    name = original_name.replace("\\", "/").rsplit("/", 1)[-1]
    base, ext = os.path.splitext(name)
    base = _UNSAFE_CHARS.sub("_", base).strip("._")[:MAX_BASE_NAME_LENGTH] or "file"
    ext = _UNSAFE_CHARS.sub("", ext)[:16]
    if ext == ".":
        ext = ""
    return base, ext


def generate_storage_name(original_name: str) -> str:
    """``<base>_<uuid4 hex><ext>``, only the sanitized base and extension come from the client"""
    base, ext = sanitize_filename(original_name)
    return f"{base}_{uuid.uuid4().hex}{ext}"


class UploadCoordinator:
    def __init__(
        self,
        files: FileRepository,
        blobs: BlobStore,
        lifecycle: LifecycleManager,
        max_file_size: int = settings.storage.MAX_FILE_SIZE,
        default_expire_days: int = settings.storage.DEFAULT_EXPIRE_DAYS,
        max_expire_days: int = settings.storage.MAX_EXPIRE_DAYS,
    ):
        self.files = files
        self.blobs = blobs
        self.lifecycle = lifecycle
        self.max_file_size = max_file_size
        self.default_expire_days = default_expire_days
        self.max_expire_days = max_expire_days

    def validate(
        self,
        data: Optional[bytes],
        original_name: Optional[str],
        expire_days: int,
        mime_type: Optional[str] = None,
    ) -> None:
        if data is None or not original_name:
            raise ValidationError("No file provided")
        # column widths of files.original_name and files.mime_type
        if len(original_name) > MAX_ORIGINAL_NAME_LENGTH:
            raise ValidationError(
                f"Filename too long. Maximum length is {MAX_ORIGINAL_NAME_LENGTH} characters"
            )
        if mime_type and len(mime_type) > MAX_MIME_TYPE_LENGTH:
            raise ValidationError(
                f"MIME type too long. Maximum length is {MAX_MIME_TYPE_LENGTH} characters"
            )
        if len(data) > self.max_file_size:
            raise ValidationError(
                f"File size too large. Maximum size is {self.max_file_size // (1024 * 1024)}MB"
            )
        if expire_days < 0 or expire_days > self.max_expire_days:
            raise ValidationError(
                f"expireDays must be between 0 and {self.max_expire_days}"
            )

    async def ingest(
        self,
        owner: Optional[Identity],
        data: Optional[bytes],
        original_name: Optional[str],
        mime_type: Optional[str],
        expire_days: Optional[int] = None,
        is_public: bool = False,
    ) -> FileRecord:
        """Validate and store an upload, blob first and metadata second.

        If the metadata insert fails the freshly written blob is removed
        again, so no blob outlives a failed upload and no row points at a
        blob that was never written.
        """
        if owner is None:
            raise AuthenticationError()
        if expire_days is None:
            expire_days = self.default_expire_days
        self.validate(data, original_name, expire_days, mime_type)

        storage_name, path = await self._write_blob(original_name, data)
        expires_at = self.lifecycle.expires_at(expire_days)

        try:
            record = await self.files.create(
                filename=storage_name,
                original_name=original_name,
                file_path=str(path),
                file_size=len(data),
                mime_type=mime_type or DEFAULT_MIME_TYPE,
                uploaded_by=owner.id,
                expires_at=expires_at,
                is_public=is_public,
            )
        except Exception as e:
            logger.error(f"Metadata insert failed for blob {storage_name}, removing it: {e}")
            try:
                await self.blobs.delete(storage_name)
            except OSError:
                logger.error(f"Compensating delete of blob {storage_name} failed", exc_info=True)
            raise DatabaseError("Failed to save file") from e

        logger.info(
            f"User {owner.id} uploaded file {record.id} as {storage_name} "
            f"({record.file_size} bytes, public={record.is_public}, expires_at={record.expires_at})"
        )
        return record

    async def _write_blob(self, original_name: str, data: bytes):
        for _ in range(MAX_NAME_ATTEMPTS):
            storage_name = generate_storage_name(original_name)
            try:
                path = await self.blobs.write(storage_name, data)
            except FileExistsError:
                logger.warning(f"Storage name {storage_name} already taken, generating another")
                continue
            except OSError:
                # drop whatever part of the blob reached the disk
                with contextlib.suppress(OSError):
                    await self.blobs.delete(storage_name)
                raise
            return storage_name, path
        raise DatabaseError("Could not allocate a storage name")
