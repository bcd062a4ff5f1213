# fileshare/services/auth_service.py
import logging
from typing import Tuple, Optional
from datetime import timedelta

from sqlalchemy.exc import IntegrityError

from fileshare.core.security import (
    get_password_hash,
    verify_password,
    create_access_token,
    create_refresh_token,
    decode_token,
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
)
from fileshare.repositories.user_repository import UserRepository
from fileshare.core.schemas.auth import Identity, UserCreate, Token
from fileshare.core.config import settings
from fileshare.core.exceptions import AuthenticationError, ConflictError
from fileshare.models.user import User

logger = logging.getLogger(__name__)

# Compared against when the login is unknown so both paths pay for one bcrypt check
_DUMMY_HASH = get_password_hash("not-a-real-password")


class AuthService:
    def __init__(self, user_repository: UserRepository):
        self.user_repository = user_repository

    async def register_user(self, user_create: UserCreate) -> User:
        if await self.user_repository.get_by_username(user_create.username):
            raise ConflictError("Username already exists")
        if await self.user_repository.get_by_email(user_create.email):
            raise ConflictError("Email already exists")

        password_hash = get_password_hash(user_create.password)
        try:
            return await self.user_repository.create(user_create, password_hash)
        except IntegrityError as e:
            # lost a race with a concurrent registration
            raise ConflictError("Username or email already exists") from e

    async def authenticate_user(self, login: str, password: str) -> Tuple[User, Token]:
        """Login by username or email"""
        if "@" in login:
            user = await self.user_repository.get_by_email(login)
        else:
            user = await self.user_repository.get_by_username(login)

        if user is None:
            verify_password(password, _DUMMY_HASH)
            raise AuthenticationError("Invalid username or password")
        if not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid username or password")

        return user, self._generate_tokens(user)

    async def refresh_tokens(self, refresh_token: str) -> Token:
        try:
            payload = decode_token(refresh_token)
        except ValueError as e:
            raise AuthenticationError(str(e))

        if payload.get("type") != REFRESH_TOKEN_TYPE:
            raise AuthenticationError("Invalid token type")

        user = await self._user_from_payload(payload)
        if user is None:
            raise AuthenticationError("Invalid token payload")
        return self._generate_tokens(user)

    async def verify(self, credential: Optional[str]) -> Optional[Identity]:
        """Resolve an access token to an identity, None means anonymous"""
        if not credential:
            return None
        try:
            payload = decode_token(credential)
        except ValueError as e:
            logger.debug(f"Rejected credential: {e}")
            return None
        if payload.get("type") != ACCESS_TOKEN_TYPE:
            return None

        user = await self._user_from_payload(payload)
        if user is None:
            return None
        return Identity(id=user.id, username=user.username)

    async def get_current_user(self, token: Optional[str]) -> User:
        identity = await self.verify(token)
        if identity is None:
            raise AuthenticationError("Could not validate credentials")
        user = await self.user_repository.get_by_id(identity.id)
        if user is None:
            raise AuthenticationError("User not found")
        return user

    async def _user_from_payload(self, payload: dict) -> Optional[User]:
        try:
            user_id = int(payload.get("sub"))
        except (TypeError, ValueError):
            return None
        return await self.user_repository.get_by_id(user_id)

    def _generate_tokens(self, user: User) -> Token:
        access_token_expires = timedelta(
            minutes=settings.security.JWT_ACCESS_TOKEN_EXPIRE_MINUTES
        )
        claims = {"sub": str(user.id), "username": user.username}

        return Token(
            access_token=create_access_token(claims, expires_delta=access_token_expires),
            refresh_token=create_refresh_token(claims),
            expires_in=int(access_token_expires.total_seconds())
        )
