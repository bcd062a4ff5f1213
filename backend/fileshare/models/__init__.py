# fileshare/models/__init__.py
from .base import Base
from .user import User
from .file_record import FileRecord

__all__ = [
    "Base",
    "User",
    "FileRecord",
]
