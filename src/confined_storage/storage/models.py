"""Value types returned by the storage service."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Iterator

from .errors import StorageIOError


class EntryKind(str, Enum):
    """Filter applied when listing a directory."""

    FILE = "file"
    DIRECTORY = "directory"
    ANY = "any"

    def matches(self, entry: os.DirEntry[str]) -> bool:
        if self is EntryKind.FILE:
            return entry.is_file()
        if self is EntryKind.DIRECTORY:
            return entry.is_dir()
        return True


@dataclass(frozen=True)
class StoredFile:
    """Read handle over a file inside the storage root.

    The handle only remembers where the file lives; bytes are read lazily
    through :meth:`open` or :meth:`iter_chunks`.
    """

    path: Path
    relative_path: str

    @property
    def filename(self) -> str:
        return self.path.name

    @property
    def size(self) -> int:
        try:
            return self.path.stat().st_size
        except OSError as exc:
            raise StorageIOError(f"Could not read size of '{self.relative_path}': {exc}") from exc

    def exists(self) -> bool:
        return self.path.is_file()

    def is_readable(self) -> bool:
        return self.exists() and os.access(self.path, os.R_OK)

    def open(self) -> BinaryIO:
        return self.path.open("rb")

    def iter_chunks(self, chunk_size: int = 1024 * 1024) -> Iterator[bytes]:
        with self.open() as fh:
            while True:
                chunk = fh.read(chunk_size)
                if not chunk:
                    break
                yield chunk

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()
