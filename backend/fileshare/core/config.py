# fileshare/core/config.py
from pydantic_settings import BaseSettings
from pydantic import BaseModel, Field, SecretStr
from typing import List, Optional
from functools import lru_cache


class DataBaseConfig(BaseModel):
    DB_HOST: str = Field("localhost", description="Database host")
    DB_PORT: int = Field(5432, description="Database port")
    DB_NAME: str = Field("fileshare", description="Database name")
    DB_USER: str = Field("fileshare", description="Database user")
    DB_PASSWORD: SecretStr = Field(SecretStr("fileshare"), description="Database password")
    DB_URL: Optional[str] = Field(None, description="Full database URL, overrides the DB_* parts")
    DB_ECHO: bool = Field(False, description="Enable SQL echo")
    DB_POOL_SIZE: int = Field(5, description="Database pool size")
    DB_MAX_OVERFLOW: int = Field(10, description="Database max overflow")

    @property
    def DATABASE_URL(self) -> str:
        if self.DB_URL:
            return self.DB_URL
        return f"postgresql+asyncpg://{self.DB_USER}:{self.DB_PASSWORD.get_secret_value()}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    naming_convention: dict[str, str] = {
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_N_name)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }


class StorageConfig(BaseModel):
    UPLOAD_DIR: str = Field("uploads/files", description="Directory holding uploaded blobs")
    MAX_FILE_SIZE: int = Field(10 * 1024 * 1024, description="Maximum upload size in bytes")
    DEFAULT_EXPIRE_DAYS: int = Field(7, description="Expiration used when the upload omits expireDays")
    MAX_EXPIRE_DAYS: int = Field(365, description="Largest accepted expireDays value")
    EXPIRED_SWEEP_INTERVAL_SECONDS: int = Field(0, description="Eager sweep period, 0 disables it")


class SecurityConfig(BaseModel):
    JWT_SECRET_KEY: SecretStr = Field(..., description="JWT secret key")
    JWT_ALGORITHM: str = Field("HS256", description="JWT algorithm")
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(60 * 24 * 7, description="Access token expiration")
    JWT_REFRESH_TOKEN_EXPIRE_DAYS: int = Field(30, description="Refresh token expiration")
    PASSWORD_MIN_LENGTH: int = Field(6, description="Minimum password length")
    AUTH_COOKIE_NAME: str = Field("token", description="Cookie carrying the access token")
    AUTH_COOKIE_SECURE: bool = Field(False, description="Send the auth cookie over HTTPS only")


class AdminConfig(BaseModel):
    ADMIN_USERNAME: str = Field("admin", description="Admin panel login")
    ADMIN_PASSWORD: Optional[SecretStr] = Field(None, description="Admin panel password, unset disables /admin")


class Settings(BaseSettings):
    app_name: str = Field("FileShare", description="Application name")
    debug: bool = Field(False, description="Debug mode")
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        description="CORS origins"
    )
    api_prefix: str = Field("", description="Prefix for all API routes")
    public_base_url: Optional[str] = Field(None, description="Base URL used in share links")
    rate_limit_enabled: bool = Field(True, description="Enable slowapi rate limits")

    db: DataBaseConfig = DataBaseConfig()
    storage: StorageConfig = StorageConfig()
    security: SecurityConfig
    admin: AdminConfig = AdminConfig()

    class Config:
        env_file = ".env"
        env_file_encoding = 'utf-8'
        case_sensitive = False
        env_nested_delimiter = '__'


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance"""
    return Settings()


settings = get_settings()
