# fileshare/repositories/file_repository.py
from typing import List, Optional
from datetime import datetime
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from fileshare.models.file_record import FileRecord


class FileRepository:
    """Metadata store for uploaded files"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        filename: str,
        original_name: str,
        file_path: str,
        file_size: int,
        mime_type: str,
        uploaded_by: int,
        expires_at: Optional[datetime],
        is_public: bool,
    ) -> FileRecord:
        record = FileRecord(
            filename=filename,
            original_name=original_name,
            file_path=file_path,
            file_size=file_size,
            mime_type=mime_type,
            uploaded_by=uploaded_by,
            expires_at=expires_at,
            is_public=is_public,
        )
        self.session.add(record)
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        await self.session.refresh(record)
        return record

    async def get_by_id(self, file_id: int) -> Optional[FileRecord]:
        stmt = select(FileRecord).where(FileRecord.id == file_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_owner(self, owner_id: int) -> List[FileRecord]:
        """All records of one owner, newest first. Expired rows included"""
        stmt = (
            select(FileRecord)
            .where(FileRecord.uploaded_by == owner_id)
            .order_by(FileRecord.created_at.desc(), FileRecord.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_public(self) -> List[FileRecord]:
        """All public records, newest first. Expired rows included"""
        stmt = (
            select(FileRecord)
            .where(FileRecord.is_public.is_(True))
            .order_by(FileRecord.created_at.desc(), FileRecord.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_expired(self, now: datetime) -> List[FileRecord]:
        stmt = (
            select(FileRecord)
            .where(FileRecord.expires_at.is_not(None))
            .where(FileRecord.expires_at < now)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete(self, file_id: int) -> bool:
        """Delete the row. Deleting a missing row is not an error"""
        stmt = delete(FileRecord).where(FileRecord.id == file_id)
        try:
            result = await self.session.execute(stmt)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return result.rowcount > 0
