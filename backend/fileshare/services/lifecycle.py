# fileshare/services/lifecycle.py
"""Expiration rules and lazy reaping of expired files.

Expired files are purged when a request touches them; nothing needs to run
in the background for reads to stay correct. ``sweep_expired`` exists for
deployments that also want expired blobs removed eagerly.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from fileshare.core.exceptions import FileExpiredError
from fileshare.models.file_record import FileRecord
from fileshare.repositories.blob_store import BlobStore
from fileshare.repositories.file_repository import FileRepository

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo, they are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def compute_expiration(days: int, now: datetime) -> Optional[datetime]:
    """``now + days`` for a positive count, None (never) for 0"""
    if days < 0:
        raise ValueError("days must not be negative")
    if days == 0:
        return None
    return now + timedelta(days=days)


def is_expired(expires_at: Optional[datetime], now: datetime) -> bool:
    if expires_at is None:
        return False
    return as_utc(expires_at) < as_utc(now)


class LifecycleManager:
    def __init__(self, files: FileRepository, blobs: BlobStore, clock: Clock = utc_now):
        self.files = files
        self.blobs = blobs
        self.clock = clock

    def now(self) -> datetime:
        return as_utc(self.clock())

    def expires_at(self, days: int) -> Optional[datetime]:
        return compute_expiration(days, self.now())

    def is_expired(self, record: FileRecord) -> bool:
        return is_expired(record.expires_at, self.now())

    async def check_and_reap(self, record: FileRecord) -> FileRecord:
        """Return the record if it is live, otherwise purge it and raise FileExpiredError"""
        if not self.is_expired(record):
            return record

        logger.info(f"File {record.id} expired at {record.expires_at}, reaping")
        await self.purge(record)
        raise FileExpiredError(record.id)

    async def purge(self, record: FileRecord) -> None:
        """Best-effort removal of the metadata row and the blob.

        Failures are logged and swallowed; a concurrent purge of the same
        record finds both already gone, which counts as success.
        """
        file_id, storage_name = record.id, record.filename
        try:
            await self.files.delete(file_id)
        except SQLAlchemyError:
            logger.warning(f"Failed to delete metadata of expired file {file_id}", exc_info=True)
        try:
            await self.blobs.delete(storage_name)
        except OSError:
            logger.warning(f"Failed to delete blob {storage_name} of expired file {file_id}", exc_info=True)

    async def sweep_expired(self) -> int:
        """Purge every expired record in one pass, returns how many were found"""
        expired = await self.files.list_expired(self.now())
        for record in expired:
            await self.purge(record)
        if expired:
            logger.info(f"Swept {len(expired)} expired files")
        return len(expired)
