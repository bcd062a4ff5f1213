"""
Unit tests for upload validation, naming and the blob-then-metadata protocol.
"""

import re
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from fileshare.core.exceptions import AuthenticationError, DatabaseError, ValidationError
from fileshare.services.lifecycle import LifecycleManager
from fileshare.services.upload_service import (
    DEFAULT_MIME_TYPE,
    UploadCoordinator,
    generate_storage_name,
    sanitize_filename,
)

from tests.conftest import FakeClock, make_record
from tests.property.strategies import NOW

MB = 1024 * 1024


class TestSanitizeFilename:

    @pytest.mark.parametrize("original, expected", [
        ("report.pdf", ("report", ".pdf")),
        ("my report (final).PDF", ("my_report_final", ".PDF")),
        ("../../etc/passwd", ("passwd", "")),
        ("C:\\temp\\evil.exe", ("evil", ".exe")),
        (".bashrc", ("bashrc", "")),
        ("...", ("file", "")),
        ("отчёт.txt", ("file", ".txt")),
    ])
    def test_sanitize(self, original, expected):
        assert sanitize_filename(original) == expected

    def test_long_base_truncated(self):
        base, ext = sanitize_filename("a" * 500 + ".txt")
        assert len(base) == 100
        assert ext == ".txt"

    def test_storage_name_format(self):
        name = generate_storage_name("holiday photo.jpg")
        assert re.fullmatch(r"holiday_photo_[0-9a-f]{32}\.jpg", name)

    def test_storage_names_unique(self):
        names = {generate_storage_name("a.txt") for _ in range(50)}
        assert len(names) == 50


@pytest.fixture
def files():
    repository = MagicMock()

    async def create(**kwargs):
        return make_record(
            owner_id=kwargs["uploaded_by"],
            original_name=kwargs["original_name"],
            is_public=kwargs["is_public"],
            expires_at=kwargs["expires_at"],
            mime_type=kwargs["mime_type"],
        )

    repository.create = AsyncMock(side_effect=create)
    return repository


@pytest.fixture
def coordinator(files, blob_store):
    lifecycle = LifecycleManager(files, blob_store, FakeClock(NOW))
    return UploadCoordinator(
        files,
        blob_store,
        lifecycle,
        max_file_size=10 * MB,
        default_expire_days=7,
        max_expire_days=365,
    )


class TestValidate:

    def test_missing_file(self, coordinator):
        with pytest.raises(ValidationError, match="No file provided"):
            coordinator.validate(None, None, 7)

    def test_missing_name(self, coordinator):
        with pytest.raises(ValidationError, match="No file provided"):
            coordinator.validate(b"data", "", 7)

    def test_size_limit_inclusive(self, coordinator):
        coordinator.validate(b"x" * (10 * MB), "big.bin", 7)

    def test_size_limit_exceeded(self, coordinator):
        with pytest.raises(ValidationError) as exc_info:
            coordinator.validate(b"x" * (10 * MB + 1), "big.bin", 7)
        assert exc_info.value.detail == "File size too large. Maximum size is 10MB"

    @pytest.mark.parametrize("days", [-1, 366])
    def test_expire_days_out_of_range(self, coordinator, days):
        with pytest.raises(ValidationError, match="expireDays must be between 0 and 365"):
            coordinator.validate(b"data", "a.txt", days)

    @pytest.mark.parametrize("days", [0, 1, 365])
    def test_expire_days_in_range(self, coordinator, days):
        coordinator.validate(b"data", "a.txt", days)

    def test_name_at_column_width(self, coordinator):
        coordinator.validate(b"data", "n" * 1020 + ".txt", 7)

    def test_name_too_long(self, coordinator):
        with pytest.raises(ValidationError, match="Filename too long. Maximum length is 1024 characters"):
            coordinator.validate(b"data", "n" * 1021 + ".txt", 7)

    def test_mime_type_too_long(self, coordinator):
        coordinator.validate(b"data", "a.txt", 7, "text/" + "x" * 250)
        with pytest.raises(ValidationError, match="MIME type too long. Maximum length is 255 characters"):
            coordinator.validate(b"data", "a.txt", 7, "text/" + "x" * 251)


class TestIngest:

    async def test_anonymous_rejected(self, coordinator, blob_store):
        with pytest.raises(AuthenticationError):
            await coordinator.ingest(None, b"data", "a.txt", "text/plain")
        assert list(blob_store.base_path.iterdir()) == []

    async def test_stores_blob_and_metadata(self, coordinator, files, blob_store, alice):
        record = await coordinator.ingest(alice, b"hello", "notes.txt", "text/plain", expire_days=1, is_public=True)

        kwargs = files.create.await_args.kwargs
        assert kwargs["uploaded_by"] == alice.id
        assert kwargs["file_size"] == 5
        assert kwargs["expires_at"] == NOW + timedelta(days=1)
        assert kwargs["is_public"] is True
        assert await blob_store.read(kwargs["filename"]) == b"hello"
        assert record.is_public is True

    async def test_default_lifetime_applied(self, coordinator, files, alice):
        await coordinator.ingest(alice, b"hello", "notes.txt", "text/plain")
        assert files.create.await_args.kwargs["expires_at"] == NOW + timedelta(days=7)

    async def test_zero_days_never_expires(self, coordinator, files, alice):
        await coordinator.ingest(alice, b"hello", "notes.txt", "text/plain", expire_days=0)
        assert files.create.await_args.kwargs["expires_at"] is None

    async def test_missing_mime_type_defaults(self, coordinator, files, alice):
        await coordinator.ingest(alice, b"\x00\x01", "blob", None)
        assert files.create.await_args.kwargs["mime_type"] == DEFAULT_MIME_TYPE

    async def test_invalid_upload_writes_nothing(self, coordinator, files, blob_store, alice):
        with pytest.raises(ValidationError):
            await coordinator.ingest(alice, b"x" * (10 * MB + 1), "big.bin", None)

        files.create.assert_not_awaited()
        assert list(blob_store.base_path.iterdir()) == []

    @pytest.mark.parametrize("name, mime_type", [
        ("n" * 1025, "text/plain"),
        ("a.txt", "application/" + "x" * 250),
    ])
    async def test_oversized_metadata_writes_nothing(self, coordinator, files, blob_store, alice, name, mime_type):
        with pytest.raises(ValidationError):
            await coordinator.ingest(alice, b"data", name, mime_type)

        files.create.assert_not_awaited()
        assert list(blob_store.base_path.iterdir()) == []

    async def test_failed_insert_removes_blob(self, coordinator, files, blob_store, alice):
        files.create.side_effect = IntegrityError("INSERT", {}, Exception("duplicate"))

        with pytest.raises(DatabaseError, match="Failed to save file"):
            await coordinator.ingest(alice, b"hello", "notes.txt", "text/plain")

        assert list(blob_store.base_path.iterdir()) == []

    async def test_name_clash_retried(self, coordinator, files, blob_store, alice, monkeypatch):
        names = iter(["clash_1.txt", "clash_1.txt", "fresh_2.txt"])
        monkeypatch.setattr("fileshare.services.upload_service.generate_storage_name", lambda _: next(names))

        await coordinator.ingest(alice, b"first", "a.txt", "text/plain")
        await coordinator.ingest(alice, b"second", "a.txt", "text/plain")

        assert files.create.await_args.kwargs["filename"] == "fresh_2.txt"
        assert await blob_store.read("clash_1.txt") == b"first"
        assert await blob_store.read("fresh_2.txt") == b"second"

    async def test_name_allocation_gives_up(self, coordinator, blob_store, alice, monkeypatch):
        await blob_store.write("taken.txt", b"existing")
        monkeypatch.setattr("fileshare.services.upload_service.generate_storage_name", lambda _: "taken.txt")

        with pytest.raises(DatabaseError):
            await coordinator.ingest(alice, b"new", "a.txt", "text/plain")

        assert await blob_store.read("taken.txt") == b"existing"
