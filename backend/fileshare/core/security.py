# fileshare/core/security.py
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from fileshare.core.config import settings

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


def _encode(claims: Dict[str, Any], lifetime: timedelta, token_type: str, **extra: Any) -> str:
    payload = {
        **claims,
        **extra,
        "exp": datetime.now(timezone.utc) + lifetime,
        "type": token_type,
    }
    return jwt.encode(
        payload,
        settings.security.JWT_SECRET_KEY.get_secret_value(),
        algorithm=settings.security.JWT_ALGORITHM,
    )


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Short-lived credential accepted by every authenticated route"""
    lifetime = expires_delta or timedelta(minutes=settings.security.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode(data, lifetime, ACCESS_TOKEN_TYPE)


def create_refresh_token(data: Dict[str, Any]) -> str:
    """Only good for POST /refresh. Each one carries a random jti"""
    lifetime = timedelta(days=settings.security.JWT_REFRESH_TOKEN_EXPIRE_DAYS)
    return _encode(data, lifetime, REFRESH_TOKEN_TYPE, jti=secrets.token_urlsafe(32))


def decode_token(token: str) -> Dict[str, Any]:
    """Verified claims of ``token``. Raises ValueError when it is expired or invalid"""
    try:
        return jwt.decode(
            token,
            settings.security.JWT_SECRET_KEY.get_secret_value(),
            algorithms=[settings.security.JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        raise ValueError("Token expired")
    except JWTError:
        raise ValueError("Invalid token")
