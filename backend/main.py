# main.py
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from datetime import datetime
from contextlib import asynccontextmanager
from typing import Optional
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import asyncio
import contextlib
import logging
from fileshare.core.admin import setup_admin
from fileshare.api.v1.routes import api_router
from fileshare.api.v1.routes.auth import limiter
from fileshare.core.config import settings
from fileshare.core.database import db_helper
from fileshare.core.exceptions import AppException
from fileshare.core.utils import get_blob_store
from fileshare.repositories.blob_store import BlobStore
from fileshare.repositories.file_repository import FileRepository
from fileshare.services.lifecycle import LifecycleManager

logging.basicConfig(
    level=logging.INFO if settings.debug else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def sweep_expired_files(interval: float, session_factory=None, blobs: Optional[BlobStore] = None):
    """Periodically purge expired files. Lazy reaping keeps reads correct without it"""
    session_factory = session_factory or db_helper.session_factory
    while True:
        await asyncio.sleep(interval)
        try:
            async with session_factory() as session:
                lifecycle = LifecycleManager(FileRepository(session), blobs or get_blob_store())
                await lifecycle.sweep_expired()
        except Exception as e:
            # one failed pass must not end the loop
            logger.error(f"Expired file sweep failed: {e}", exc_info=True)


async def stop_background_task(task: asyncio.Task):
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"🚀 Starting {settings.app_name} in {'DEBUG' if settings.debug else 'PRODUCTION'} mode")

    masked_db_url = settings.db.DATABASE_URL
    db_password = settings.db.DB_PASSWORD.get_secret_value()
    if db_password:
        masked_db_url = masked_db_url.replace(db_password, "***")
    logger.info(f"📝 Database: {masked_db_url}")
    logger.info(f"📁 Upload directory: {settings.storage.UPLOAD_DIR}")

    try:
        async with db_helper.session_factory() as session:
            await session.execute(text("SELECT 1"))
        logger.info("✅ Database connection successful")
    except Exception as e:
        logger.error(f"❌ Database connection failed: {e}")
        raise

    get_blob_store()
    if setup_admin(app, db_helper.engine):
        logger.info("🔐 Admin panel mounted at /admin")

    sweep_task = None
    if settings.storage.EXPIRED_SWEEP_INTERVAL_SECONDS > 0:
        sweep_task = asyncio.create_task(
            sweep_expired_files(settings.storage.EXPIRED_SWEEP_INTERVAL_SECONDS)
        )

    yield

    if sweep_task is not None:
        await stop_background_task(sweep_task)
    await db_helper.dispose()
    logger.info("👋 Application shutdown complete")

app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.state.limiter = limiter

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.api_prefix)

@app.get("/", summary="Root endpoint", tags=["root"])
async def root():
    return {
        "message": f"Welcome to {settings.app_name} API",
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc"
        } if settings.debug else None,
        "environment": "development" if settings.debug else "production",
        "timestamp": datetime.utcnow().isoformat()
    }

@app.get("/health", summary="Health check", tags=["health"])
async def health_check():
    try:
        async with db_helper.session_factory() as session:
            await session.execute(text("SELECT 1"))

        return {
            "status": "healthy",
            "timestamp": datetime.utcnow().isoformat(),
            "database": "connected",
            "app_name": settings.app_name,
        }
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "timestamp": datetime.utcnow().isoformat(),
                "database": "connection failed",
                "error": str(e) if settings.debug else "Database connection error"
            }
        )

@app.exception_handler(AppException)
async def app_exception_handler(request, exc: AppException):
    if exc.status_code >= 500:
        logger.error(f"AppException: {exc.detail} (type: {type(exc).__name__})", exc_info=exc.__cause__)
    else:
        logger.info(f"AppException: {exc.detail} (type: {type(exc).__name__})")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.detail,
            "error": type(exc).__name__,
            "timestamp": datetime.utcnow().isoformat()
        },
        headers=exc.headers,
    )

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request, exc: RequestValidationError):
    errors = [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "msg": error.get("msg", ""),
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={
            "detail": errors[0]["msg"] if errors else "Validation error",
            "error": "ValidationError",
            "errors": errors,
            "timestamp": datetime.utcnow().isoformat()
        }
    )

@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={
            "detail": f"Too many requests: {exc.detail}",
            "error": "RateLimitError",
            "timestamp": datetime.utcnow().isoformat()
        }
    )

@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request, exc: SQLAlchemyError):
    logger.exception(f"Database error: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error": "DatabaseError",
            "timestamp": datetime.utcnow().isoformat()
        }
    )

@app.exception_handler(Exception)
async def global_exception_handler(request, exc: Exception):
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error": "InternalServerError",
            "timestamp": datetime.utcnow().isoformat(),
            "debug_info": str(exc) if settings.debug else None
        }
    )

@app.exception_handler(404)
async def not_found_handler(request, exc):
    return JSONResponse(
        status_code=404,
        content={
            "detail": getattr(exc, "detail", None) or "Not Found",
            "error": "NotFoundError",
            "timestamp": datetime.utcnow().isoformat()
        }
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level="info" if settings.debug else "warning",
        access_log=False
    )
