# fileshare/api/v1/routes/auth.py
from fastapi import APIRouter, Depends, HTTPException, status, Request, Response
from fastapi.security import OAuth2PasswordRequestForm
from typing import Optional
from fileshare.core.config import settings
from fileshare.core.utils import get_auth_service, get_credential
from fileshare.services.auth_service import AuthService
from fileshare.core.schemas.auth import (
    UserCreate,
    UserResponse,
    RegisterResponse,
    Token,
    RefreshTokenRequest,
)
from fileshare.core.schemas.files import MessageResponse
from fileshare.core.exceptions import AppException
from slowapi import Limiter
from slowapi.util import get_remote_address
import logging


logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)

router = APIRouter(tags=["authentication"])


def _set_auth_cookie(response: Response, token: Token) -> None:
    response.set_cookie(
        key=settings.security.AUTH_COOKIE_NAME,
        value=token.access_token,
        max_age=token.expires_in,
        httponly=True,
        secure=settings.security.AUTH_COOKIE_SECURE,
        samesite="lax",
    )


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
async def register_user(
    request: Request,
    user_create: UserCreate,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Create a new account"""
    client_ip = request.client.host if request.client else "unknown"
    logger.info(f"Registration attempt from IP: {client_ip} for username: {user_create.username}")

    try:
        user = await auth_service.register_user(user_create)
    except AppException as e:
        logger.warning(f"Registration rejected for {user_create.username}: {e.detail}")
        raise
    except Exception as e:
        logger.error(f"Internal error during registration: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )

    logger.info(f"Successful registration for user ID: {user.id}, username: {user.username}")
    return RegisterResponse(user=UserResponse.model_validate(user))


@router.post("/login", response_model=Token)
@limiter.limit("10/minute")
async def login_for_access_token(
    request: Request,
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Exchange username (or email) and password for a token pair"""
    client_ip = request.client.host if request.client else "unknown"
    logger.info(f"Login attempt from IP: {client_ip} for: {form_data.username}")

    try:
        _, token = await auth_service.authenticate_user(form_data.username, form_data.password)
    except AppException as e:
        logger.warning(f"Authentication failed for: {form_data.username} from IP: {client_ip}")
        raise
    except Exception as e:
        logger.error(f"Internal error during login: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )

    _set_auth_cookie(response, token)
    logger.info(f"Successful login for: {form_data.username}")
    return token


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response):
    response.delete_cookie(settings.security.AUTH_COOKIE_NAME)
    return MessageResponse(message="Logged out")


@router.post("/refresh", response_model=Token)
@limiter.limit("20/hour")
async def refresh_access_token(
    request: Request,
    response: Response,
    refresh_request: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Issue a new token pair from a refresh token"""
    try:
        token = await auth_service.refresh_tokens(refresh_request.refresh_token)
    except AppException as e:
        logger.warning(f"Token refresh failed: {e.detail}")
        raise

    _set_auth_cookie(response, token)
    return token


@router.get("/me", response_model=UserResponse)
async def get_me(
    credential: Optional[str] = Depends(get_credential),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Current user"""
    return await auth_service.get_current_user(credential)
