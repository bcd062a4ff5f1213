"""
Property-based tests for the access policy and expiration rules.
"""

from datetime import timedelta

from hypothesis import given, strategies as st

from fileshare.core.schemas.auth import Identity
from fileshare.services.access_control import (
    DenyReason,
    FileAction,
    authorize,
    is_restricted,
    visible_public,
)
from fileshare.services.lifecycle import is_expired

from tests.property.strategies import (
    NOW,
    expirations,
    file_records,
    identities,
    restricted_names,
    unrestricted_names,
)

READ_ACTIONS = st.sampled_from([FileAction.VIEW, FileAction.DOWNLOAD])


class TestRestrictedTypeProperties:

    @given(record=file_records(names=restricted_names()), action=READ_ACTIONS)
    def test_anonymous_never_reads_restricted_files(self, record, action):
        decision = authorize(record, None, action)
        assert not decision
        assert decision.reason is DenyReason.RESTRICTED_TYPE

    @given(record=file_records(names=restricted_names()))
    def test_restricted_files_never_listed_publicly(self, record):
        assert visible_public([record], NOW) == []

    @given(name=restricted_names())
    def test_extension_check_ignores_case(self, name):
        assert is_restricted(name)
        assert is_restricted(name.upper())

    @given(name=unrestricted_names())
    def test_other_extensions_not_restricted(self, name):
        assert not is_restricted(name)


class TestOwnershipProperties:

    @given(record=file_records(), action=READ_ACTIONS)
    def test_owner_always_reads(self, record, action):
        owner = Identity(id=record.uploaded_by, username="owner")
        assert authorize(record, owner, action)

    @given(data=st.data(), action=READ_ACTIONS)
    def test_private_unreadable_by_others(self, data, action):
        record = data.draw(file_records(is_public=False))
        other = data.draw(identities(exclude_id=record.uploaded_by))
        decision = authorize(record, other, action)
        assert not decision
        assert decision.reason is DenyReason.PRIVATE

    @given(record=file_records(is_public=False), action=READ_ACTIONS)
    def test_private_anonymous_denied(self, record, action):
        decision = authorize(record, None, action)
        assert not decision
        assert decision.reason in (DenyReason.AUTHENTICATION_REQUIRED, DenyReason.RESTRICTED_TYPE)

    @given(data=st.data())
    def test_only_owner_deletes(self, data):
        record = data.draw(file_records())
        other = data.draw(identities(exclude_id=record.uploaded_by))
        assert not authorize(record, other, FileAction.DELETE)
        assert not authorize(record, None, FileAction.DELETE)


class TestExpirationProperties:

    @given(expires_at=expirations())
    def test_expired_iff_strictly_before_now(self, expires_at):
        if expires_at is None:
            assert not is_expired(expires_at, NOW)
        else:
            assert is_expired(expires_at, NOW) == (expires_at < NOW)

    @given(seconds=st.integers(min_value=0, max_value=10_000))
    def test_expiry_is_monotonic(self, seconds):
        expires_at = NOW - timedelta(seconds=1)
        assert is_expired(expires_at, NOW)
        assert is_expired(expires_at, NOW + timedelta(seconds=seconds))
