"""Error taxonomy raised by the confined storage layer."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Machine-readable cause attached to every storage error."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    STATE = "state"
    IO = "io"


class StorageError(Exception):
    """Base error for storage operations; inspect ``kind`` to branch on the cause."""

    kind: ErrorKind = ErrorKind.IO

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PathValidationError(StorageError):
    """Invalid argument, traversal attempt or path outside the storage root."""

    kind = ErrorKind.VALIDATION


class EntryNotFoundError(StorageError):
    kind = ErrorKind.NOT_FOUND


class EntryConflictError(StorageError):
    """An entry already occupies the target, or is of the wrong kind."""

    kind = ErrorKind.CONFLICT


class StorageStateError(StorageError):
    """Operation not allowed in the current state (non-empty dir, storage root)."""

    kind = ErrorKind.STATE


class StorageIOError(StorageError):
    kind = ErrorKind.IO
