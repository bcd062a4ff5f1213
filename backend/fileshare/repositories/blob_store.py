# fileshare/repositories/blob_store.py
"""Blob store: raw file bytes on the local filesystem, addressed by generated name."""
import logging
from pathlib import Path
from typing import Union

import aiofiles
import aiofiles.os

logger = logging.getLogger(__name__)


class BlobNotFoundError(FileNotFoundError):
    """No blob stored under the requested name"""


class BlobStore:
    """Reads and writes blobs under a single directory.

    Names are plain file names generated by the upload path; anything
    carrying a directory component is rejected so a name can never point
    outside the storage root.
    """

    def __init__(self, base_path: Union[str, Path]):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def path_for(self, name: str) -> Path:
        if not name or name in (".", "..") or Path(name).name != name or "\\" in name:
            raise ValueError(f"Invalid blob name: {name!r}")
        return self.base_path / name

    async def write(self, name: str, data: bytes) -> Path:
        """Create a new blob. Raises FileExistsError if the name is taken"""
        path = self.path_for(name)
        async with aiofiles.open(path, "xb") as f:
            await f.write(data)
        return path

    async def read(self, name: str) -> bytes:
        path = self.path_for(name)
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except FileNotFoundError as e:
            raise BlobNotFoundError(name) from e

    async def delete(self, name: str) -> bool:
        """Delete if present. Returns False when there was nothing to delete"""
        path = self.path_for(name)
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            logger.debug(f"Blob {name} already absent")
            return False
        return True

    async def exists(self, name: str) -> bool:
        return await aiofiles.os.path.isfile(self.path_for(name))
