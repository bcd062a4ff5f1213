# fileshare/core/schemas/auth.py
from pydantic import BaseModel, EmailStr, Field, ConfigDict, field_validator
from datetime import datetime

from fileshare.core.config import settings

# bcrypt ignores everything past 72 bytes
PASSWORD_MAX_BYTES = 72


class UserCreate(BaseModel):
    username: str = Field(..., max_length=50, description="Unique username")
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="User password")

    @field_validator('username')
    @classmethod
    def validate_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Username must not be empty")
        # /login reads anything with '@' as an email
        if "@" in v:
            raise ValueError("Username must not contain '@'")
        return v

    @field_validator('email')
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()

    @field_validator('password')
    @classmethod
    def validate_password(cls, v: str) -> str:
        min_length = settings.security.PASSWORD_MIN_LENGTH
        if len(v) < min_length:
            raise ValueError(f"Password must be at least {min_length} characters long")
        if len(v.encode('utf-8')) > PASSWORD_MAX_BYTES:
            raise ValueError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes long")
        return v


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token expiration time in seconds")


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., description="Refresh token for getting new access token")


class Identity(BaseModel):
    """Verified caller, produced only from a valid credential"""
    id: int
    username: str

    model_config = ConfigDict(frozen=True)


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RegisterResponse(BaseModel):
    message: str = "User created successfully"
    user: UserResponse
