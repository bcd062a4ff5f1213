# fileshare/services/file_service.py
import logging
from typing import List, Optional, Tuple

from fileshare.core.exceptions import AuthenticationError, AuthorizationError, NotFoundError
from fileshare.core.schemas.auth import Identity
from fileshare.models.file_record import FileRecord
from fileshare.repositories.blob_store import BlobNotFoundError, BlobStore
from fileshare.repositories.file_repository import FileRepository
from fileshare.services.access_control import (
    AccessDecision,
    DenyReason,
    FileAction,
    authorize,
    visible_owned,
    visible_public,
)
from fileshare.services.lifecycle import LifecycleManager

logger = logging.getLogger(__name__)


def enforce(decision: AccessDecision) -> None:
    """Turn a deny decision into the matching HTTP error"""
    if decision.allowed:
        return
    if decision.reason is DenyReason.AUTHENTICATION_REQUIRED:
        raise AuthenticationError(decision.message)
    raise AuthorizationError(decision.message)


class FileService:
    """Request flow for stored files: lookup, lazy reap, authorize, then touch the blob"""

    def __init__(self, files: FileRepository, blobs: BlobStore, lifecycle: LifecycleManager):
        self.files = files
        self.blobs = blobs
        self.lifecycle = lifecycle

    async def get_accessible(
        self,
        file_id: int,
        identity: Optional[Identity],
        action: FileAction,
    ) -> FileRecord:
        record = await self.files.get_by_id(file_id)
        if record is None:
            raise NotFoundError("File not found")

        record = await self.lifecycle.check_and_reap(record)
        enforce(authorize(record, identity, action))
        return record

    async def open_file(
        self,
        file_id: int,
        identity: Optional[Identity],
        action: FileAction = FileAction.VIEW,
    ) -> Tuple[FileRecord, bytes]:
        record = await self.get_accessible(file_id, identity, action)
        try:
            data = await self.blobs.read(record.filename)
        except BlobNotFoundError:
            logger.warning(f"Blob {record.filename} of file {record.id} is missing on disk")
            raise NotFoundError("File not found on disk")
        return record, data

    async def describe(self, file_id: int, identity: Optional[Identity]) -> FileRecord:
        """Same checks as viewing, without reading the blob"""
        return await self.get_accessible(file_id, identity, FileAction.VIEW)

    async def delete_file(self, file_id: int, identity: Optional[Identity]) -> None:
        record = await self.get_accessible(file_id, identity, FileAction.DELETE)

        # row first: a failure afterwards leaves an orphaned blob, never a row without one
        await self.files.delete(record.id)
        await self.blobs.delete(record.filename)
        logger.info(f"User {identity.id} deleted file {record.id}")

    async def list_owned(self, identity: Optional[Identity]) -> List[FileRecord]:
        if identity is None:
            raise AuthenticationError()
        records = await self.files.list_by_owner(identity.id)
        return visible_owned(records, identity, self.lifecycle.now())

    async def list_public(self) -> List[FileRecord]:
        records = await self.files.list_public()
        return visible_public(records, self.lifecycle.now())
