"""
Shared pytest fixtures for the FileShare backend test suite.

This module provides:
- Environment for the settings object (set before any fileshare import)
- A throwaway SQLite database and blob directory per test
- A controllable clock for expiration tests
- An httpx client bound to the FastAPI app with those overrides
"""

import os
import tempfile

_BOOTSTRAP_DIR = tempfile.mkdtemp(prefix="fileshare-tests-")
os.environ.setdefault("SECURITY__JWT_SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DB__DB_URL", f"sqlite+aiosqlite:///{_BOOTSTRAP_DIR}/bootstrap.db")
os.environ.setdefault("STORAGE__UPLOAD_DIR", os.path.join(_BOOTSTRAP_DIR, "uploads"))
os.environ["RATE_LIMIT_ENABLED"] = "false"

from datetime import datetime, timedelta, timezone
from typing import Dict

import pytest
from httpx import ASGITransport, AsyncClient
from hypothesis import HealthCheck, settings as hypothesis_settings

from fileshare.core.database import DatabaseHelper, db_helper
from fileshare.core.schemas.auth import Identity
from fileshare.core.utils import get_blob_store, get_clock
from fileshare.models import Base
from fileshare.models.file_record import FileRecord
from fileshare.repositories.blob_store import BlobStore
from fileshare.repositories.file_repository import FileRepository
from fileshare.services.lifecycle import LifecycleManager
from main import app

hypothesis_settings.register_profile(
    "default",
    max_examples=100,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
hypothesis_settings.load_profile("default")


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = None):
        self.current = start or datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


# =============================================================================
# Store Fixtures
# =============================================================================

@pytest.fixture
async def database(tmp_path):
    """A fresh SQLite database with all tables created."""
    helper = DatabaseHelper(url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with helper.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield helper
    await helper.dispose()


@pytest.fixture
async def session(database):
    async with database.session_factory() as session:
        yield session


@pytest.fixture
def blob_store(tmp_path) -> BlobStore:
    return BlobStore(tmp_path / "blobs")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def file_repository(session) -> FileRepository:
    return FileRepository(session)


@pytest.fixture
def lifecycle(file_repository, blob_store, clock) -> LifecycleManager:
    return LifecycleManager(file_repository, blob_store, clock)


@pytest.fixture
def alice() -> Identity:
    return Identity(id=1, username="alice")


@pytest.fixture
def bob() -> Identity:
    return Identity(id=2, username="bob")


def make_record(
    owner_id: int = 1,
    original_name: str = "report.pdf",
    is_public: bool = False,
    expires_at: datetime = None,
    mime_type: str = "application/pdf",
    file_id: int = 1,
) -> FileRecord:
    """Transient FileRecord for pure policy tests."""
    return FileRecord(
        id=file_id,
        filename=f"stored_{file_id}.bin",
        original_name=original_name,
        file_path=f"/tmp/stored_{file_id}.bin",
        file_size=10,
        mime_type=mime_type,
        uploaded_by=owner_id,
        expires_at=expires_at,
        is_public=is_public,
        created_at=datetime.now(timezone.utc),
    )


# =============================================================================
# API Fixtures
# =============================================================================

@pytest.fixture
async def client(database, blob_store, clock):
    """httpx client for the app with the database, blob store and clock swapped out."""
    app.dependency_overrides[db_helper.session_getter] = database.session_getter
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_clock] = lambda: clock

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


async def register_and_login(client: AsyncClient, username: str, password: str = "secret1") -> Dict[str, str]:
    """Create an account and return Authorization headers for it."""
    response = await client.post(
        "/register",
        json={"username": username, "email": f"{username}@x.com", "password": password},
    )
    assert response.status_code == 201, response.text

    response = await client.post("/login", data={"username": username, "password": password})
    assert response.status_code == 200, response.text
    # keep later anonymous requests anonymous
    client.cookies.clear()
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


async def upload(
    client: AsyncClient,
    headers: Dict[str, str],
    name: str = "hello.txt",
    content: bytes = b"hello world",
    mime_type: str = "text/plain",
    **form,
):
    data = {key: str(value).lower() if isinstance(value, bool) else str(value) for key, value in form.items()}
    return await client.post(
        "/upload",
        files={"file": (name, content, mime_type)},
        data=data,
        headers=headers,
    )


@pytest.fixture
async def owner_headers(client) -> Dict[str, str]:
    return await register_and_login(client, "alice")


@pytest.fixture
async def other_headers(client) -> Dict[str, str]:
    return await register_and_login(client, "bob")
