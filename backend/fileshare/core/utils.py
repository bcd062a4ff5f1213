# fileshare/core/utils.py
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from fileshare.core.config import settings
from fileshare.core.database import db_helper
from fileshare.core.exceptions import AuthenticationError
from fileshare.core.schemas.auth import Identity
from fileshare.repositories.blob_store import BlobStore
from fileshare.repositories.file_repository import FileRepository
from fileshare.repositories.user_repository import UserRepository
from fileshare.services.auth_service import AuthService
from fileshare.services.file_service import FileService
from fileshare.services.lifecycle import Clock, LifecycleManager, utc_now
from fileshare.services.upload_service import UploadCoordinator

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.api_prefix}/login", auto_error=False)


@lru_cache()
def get_blob_store() -> BlobStore:
    return BlobStore(settings.storage.UPLOAD_DIR)


def get_clock() -> Clock:
    return utc_now


def get_auth_service(
    session: AsyncSession = Depends(db_helper.session_getter),
) -> AuthService:
    return AuthService(UserRepository(session))


def get_lifecycle_manager(
    session: AsyncSession = Depends(db_helper.session_getter),
    blobs: BlobStore = Depends(get_blob_store),
    clock: Clock = Depends(get_clock),
) -> LifecycleManager:
    return LifecycleManager(FileRepository(session), blobs, clock)


def get_file_service(
    lifecycle: LifecycleManager = Depends(get_lifecycle_manager),
) -> FileService:
    return FileService(lifecycle.files, lifecycle.blobs, lifecycle)


def get_upload_coordinator(
    lifecycle: LifecycleManager = Depends(get_lifecycle_manager),
) -> UploadCoordinator:
    return UploadCoordinator(lifecycle.files, lifecycle.blobs, lifecycle)


async def get_credential(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
) -> Optional[str]:
    """Bearer header first, then the cookie set by /login"""
    return token or request.cookies.get(settings.security.AUTH_COOKIE_NAME)


async def get_optional_identity(
    credential: Optional[str] = Depends(get_credential),
    auth_service: AuthService = Depends(get_auth_service),
) -> Optional[Identity]:
    return await auth_service.verify(credential)


async def get_current_identity(
    identity: Optional[Identity] = Depends(get_optional_identity),
) -> Identity:
    if identity is None:
        raise AuthenticationError("Authentication required")
    return identity
