# fileshare/services/access_control.py
"""Access decisions for stored files.

Everything here is a pure function of already-resolved inputs: the file
record, the caller identity (``None`` for anonymous callers) and the
requested action. Nothing reads stores or mutates state; purging and
persistence belong to the lifecycle and upload services.
"""
import enum
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from fileshare.core.schemas.auth import Identity
from fileshare.models.file_record import FileRecord
from fileshare.services.lifecycle import is_expired

# Executables and archives need a logged-in caller whatever their visibility
RESTRICTED_EXTENSIONS = frozenset({".exe", ".zip", ".rar", ".7z", ".tar", ".gz", ".bz2"})


class FileAction(str, enum.Enum):
    VIEW = "view"
    DOWNLOAD = "download"
    DELETE = "delete"
    LIST_OWNED = "list_owned"
    LIST_PUBLIC = "list_public"


class DenyReason(str, enum.Enum):
    AUTHENTICATION_REQUIRED = "authentication_required"
    RESTRICTED_TYPE = "restricted_type"
    PRIVATE = "private"
    NOT_OWNER = "not_owner"
    NOT_LISTED = "not_listed"


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: Optional[DenyReason] = None
    message: str = ""

    @classmethod
    def allow(cls) -> "AccessDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: DenyReason, message: str) -> "AccessDecision":
        return cls(allowed=False, reason=reason, message=message)

    def __bool__(self) -> bool:
        return self.allowed


def is_restricted(original_name: str) -> bool:
    """Checks the extension of the user supplied name, never the MIME type"""
    base = original_name.replace("\\", "/").rsplit("/", 1)[-1]
    _, ext = os.path.splitext(base)
    return ext.lower() in RESTRICTED_EXTENSIONS


def is_owner(record: FileRecord, identity: Optional[Identity]) -> bool:
    return identity is not None and record.uploaded_by == identity.id


def authorize(
    record: FileRecord,
    identity: Optional[Identity],
    action: FileAction,
) -> AccessDecision:
    """Decide whether ``identity`` may perform ``action`` on ``record``.

    Rules are evaluated in precedence order and the first match decides:

    * list-owned: the caller must be authenticated and own the record.
    * list-public: the record must be public and not carry a restricted
      extension; any caller qualifies.
    * view/download: restricted extensions deny anonymous callers, owners
      are always allowed, public records are allowed for everyone, and
      private records deny everyone else.
    * delete: only the authenticated owner.
    """
    if action is FileAction.LIST_OWNED:
        if identity is None:
            return AccessDecision.deny(DenyReason.AUTHENTICATION_REQUIRED, "Authentication required")
        if not is_owner(record, identity):
            return AccessDecision.deny(DenyReason.NOT_OWNER, "Access denied")
        return AccessDecision.allow()

    if action is FileAction.LIST_PUBLIC:
        if not record.is_public or is_restricted(record.original_name):
            return AccessDecision.deny(DenyReason.NOT_LISTED, "File is not publicly listed")
        return AccessDecision.allow()

    if action in (FileAction.VIEW, FileAction.DOWNLOAD):
        if identity is None and is_restricted(record.original_name):
            return AccessDecision.deny(
                DenyReason.RESTRICTED_TYPE,
                "Access denied. This file type requires authentication.",
            )
        if is_owner(record, identity):
            return AccessDecision.allow()
        if record.is_public:
            return AccessDecision.allow()
        if identity is None:
            return AccessDecision.deny(DenyReason.AUTHENTICATION_REQUIRED, "Authentication required")
        return AccessDecision.deny(DenyReason.PRIVATE, "Access denied. This file is private.")

    if action is FileAction.DELETE:
        if identity is None:
            return AccessDecision.deny(DenyReason.AUTHENTICATION_REQUIRED, "Authentication required")
        if not is_owner(record, identity):
            return AccessDecision.deny(DenyReason.NOT_OWNER, "Access denied")
        return AccessDecision.allow()

    raise ValueError(f"Unknown file action: {action!r}")


def visible_owned(
    records: Iterable[FileRecord],
    identity: Optional[Identity],
    now: datetime,
) -> List[FileRecord]:
    """The caller's own live records, order preserved"""
    return [
        record for record in records
        if not is_expired(record.expires_at, now)
        and authorize(record, identity, FileAction.LIST_OWNED)
    ]


def visible_public(records: Iterable[FileRecord], now: datetime) -> List[FileRecord]:
    """Public, live, unrestricted records, order preserved"""
    return [
        record for record in records
        if not is_expired(record.expires_at, now)
        and authorize(record, None, FileAction.LIST_PUBLIC)
    ]
