"""Root-confined file storage: path resolution, errors and the storage service."""

from .errors import (
    EntryConflictError,
    EntryNotFoundError,
    ErrorKind,
    PathValidationError,
    StorageError,
    StorageIOError,
    StorageStateError,
)
from .files import FileStorage
from .models import EntryKind, StoredFile
from .paths import resolve_confined, resolve_root, to_relative

__all__ = [
    "EntryConflictError",
    "EntryKind",
    "EntryNotFoundError",
    "ErrorKind",
    "FileStorage",
    "PathValidationError",
    "StorageError",
    "StorageIOError",
    "StorageStateError",
    "StoredFile",
    "resolve_confined",
    "resolve_root",
    "to_relative",
]
