# fileshare/core/exceptions.py
from typing import Dict, Optional

from fastapi import status


class AppException(Exception):
    """Base application exception"""
    def __init__(self, status_code: int, detail: str, headers: Optional[Dict[str, str]] = None):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail
        self.headers = headers


class AuthenticationError(AppException):
    """Missing or invalid credential"""
    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status.HTTP_401_UNAUTHORIZED,
            detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(AppException):
    """Authenticated but not entitled"""
    def __init__(self, detail: str = "Access denied"):
        super().__init__(status.HTTP_403_FORBIDDEN, detail)


class ValidationError(AppException):
    """Bad or missing input"""
    def __init__(self, detail: str = "Validation error"):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail)


class NotFoundError(AppException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status.HTTP_404_NOT_FOUND, detail)


class ConflictError(AppException):
    """Unique field already taken"""
    def __init__(self, detail: str = "Resource already exists"):
        super().__init__(status.HTTP_409_CONFLICT, detail)


class GoneError(AppException):
    """The resource existed but has lapsed"""
    def __init__(self, detail: str = "Resource is gone"):
        super().__init__(status.HTTP_410_GONE, detail)


class FileExpiredError(GoneError):
    def __init__(self, file_id: int):
        super().__init__("File has expired")
        self.file_id = file_id


class DatabaseError(AppException):
    """Store failure, detail is never leaked to the caller"""
    def __init__(self, detail: str = "Internal server error"):
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, detail)


class RateLimitError(AppException):
    def __init__(self, detail: str = "Too many requests"):
        super().__init__(status.HTTP_429_TOO_MANY_REQUESTS, detail)
