"""Error taxonomy shared by the store, the storage engines and the HTTP layer.

Every error carries a machine-readable :class:`ErrorCode` and an HTTP status
so the transport adapter can translate it without inspecting messages.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class ErrorCode(Enum):
    """Error codes for machine-readable error identification."""

    # Validation (1xxx)
    VALIDATION_FAILED = 1001
    SELF_CONNECTION = 1002
    DUPLICATE_CONNECTION = 1003
    USERNAME_TAKEN = 1004

    # Lookup (2xxx)
    NOT_FOUND = 2000
    NOTE_NOT_FOUND = 2001
    TAG_NOT_FOUND = 2002
    CONNECTION_NOT_FOUND = 2003
    NOTE_TAG_NOT_FOUND = 2004
    USER_NOT_FOUND = 2005

    # Internal (5xxx)
    STORAGE_FAILED = 5001
    INTERNAL = 5002


class NoteMapError(Exception):
    """Base exception for all notemap errors.

    Attributes:
        message: Human-readable error message.
        code: Machine-readable error code.
        details: Additional context about the error.
    """

    status_code = 500

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"message": self.message, "code": self.code.name}
        if self.details:
            data["details"] = self.details
        return data


class ValidationError(NoteMapError, ValueError):
    """Malformed or incomplete entity payload."""

    status_code = 400

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.VALIDATION_FAILED,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code, details)


class NotFoundError(NoteMapError, LookupError):
    """An identifier has no corresponding entity."""

    status_code = 404

    def __init__(
        self,
        entity: str,
        entity_id: Any,
        code: Optional[ErrorCode] = None,
    ) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(
            f"{entity} not found: {entity_id!r}",
            code or _NOT_FOUND_CODES.get(entity, ErrorCode.NOT_FOUND),
            {"entity": entity, "id": entity_id},
        )


class InternalError(NoteMapError):
    """Unexpected failure; surfaced to HTTP clients without internals."""

    status_code = 500


_NOT_FOUND_CODES = {
    "Note": ErrorCode.NOTE_NOT_FOUND,
    "Tag": ErrorCode.TAG_NOT_FOUND,
    "Connection": ErrorCode.CONNECTION_NOT_FOUND,
    "NoteTag": ErrorCode.NOTE_TAG_NOT_FOUND,
    "User": ErrorCode.USER_NOT_FOUND,
}
