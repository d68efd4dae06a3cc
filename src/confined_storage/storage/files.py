"""Local file storage confined to a single root directory."""

from __future__ import annotations

import logging
import os
import posixpath
import shutil
from pathlib import Path, PureWindowsPath

from .errors import (
    EntryConflictError,
    EntryNotFoundError,
    PathValidationError,
    StorageIOError,
    StorageStateError,
)
from .models import EntryKind, StoredFile
from .paths import resolve_confined, resolve_root, to_relative

logger = logging.getLogger(__name__)


def _is_blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


def _raise_on_walk_error(exc: OSError) -> None:
    raise exc


class FileStorage:
    """Create, read, list, copy, move and delete entries under a fixed root.

    Every path argument is a string relative to the root (``""`` or ``"/"``
    being the root itself) and is resolved before the filesystem is touched.
    Returned paths use the same relative, forward-slash form.
    """

    def __init__(self, base_dir: str | Path) -> None:
        root = resolve_root(base_dir)
        if root.exists() and not root.is_dir():
            raise EntryConflictError(f"Configured base directory is not a directory: {root}")
        if not root.exists():
            try:
                root.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise StorageIOError(f"Could not initialize base directory: {base_dir}") from exc
            logger.info("Created base directory: %s", root)
        self._root = root
        logger.info("Using base directory: %s", root)

    @property
    def root(self) -> Path:
        return self._root

    # ------------------------------------------------------------------ utils
    def resolve_path(self, relative_path: str | None) -> Path:
        """Resolve a user-provided path under the storage root."""
        return resolve_confined(self._root, relative_path)

    def relative(self, path: Path) -> str:
        return to_relative(self._root, path)

    def _require_file(self, path: Path, relative_path: str | None) -> None:
        if not path.is_file():
            raise EntryNotFoundError(f"File not found: {relative_path}")

    def _require_parent_directory(self, path: Path, relative_path: str) -> None:
        parent = path.parent
        if not parent.exists():
            raise EntryNotFoundError(f"Target directory for '{relative_path}' does not exist.")
        if not parent.is_dir():
            raise EntryConflictError(f"Target directory for '{relative_path}' is not a directory.")

    def _make_directories(self, path: Path, relative_path: str | None) -> None:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except (FileExistsError, NotADirectoryError) as exc:
            raise EntryConflictError(
                f"Cannot create directory '{relative_path}'. A file already exists on this path."
            ) from exc
        except OSError as exc:
            raise StorageIOError(f"Could not create directory '{relative_path}': {exc}") from exc

    def _prepare_transfer(self, source_path: str, target_path: str) -> tuple[Path, Path]:
        if _is_blank(source_path) or _is_blank(target_path):
            raise PathValidationError("Source or target paths cannot be empty.")
        source = self.resolve_path(source_path)
        target = self.resolve_path(target_path)
        if source == target:
            raise PathValidationError("Source and target paths must differ.")
        if not source.is_file():
            raise EntryNotFoundError(f"Source file not found or is not a file: {source_path}")
        self._require_parent_directory(target, target_path)
        if target.is_dir():
            raise EntryConflictError(f"Target '{target_path}' is a directory.")
        return source, target

    def _resolve_deletable(self, relative_path: str | None) -> Path:
        item = self.resolve_path(relative_path)
        if item == self._root:
            raise StorageStateError("Cannot delete the base directory itself.")
        if not os.path.lexists(item):
            raise EntryNotFoundError(f"Path not found: {relative_path}")
        return item

    # ------------------------------------------------------------------- API
    def add_file(self, content: bytes, target_directory: str | None, filename: str) -> str:
        """Write ``content`` as ``target_directory/filename``, overwriting any file there."""
        logger.info("Adding file %r to directory %r", filename, target_directory)
        if not content:
            raise PathValidationError("Cannot store empty file.")
        if _is_blank(filename):
            raise PathValidationError("Filename cannot be empty.")
        name = filename
        if (
            name != name.strip()
            or "/" in name
            or "\\" in name
            or name in (".", "..")
            or PureWindowsPath(name).drive
        ):
            raise PathValidationError(f"Invalid filename: {filename!r}")

        directory = self.resolve_path(target_directory)
        target = self.resolve_path(posixpath.join(self.relative(directory), name))

        if directory.exists() and not directory.is_dir():
            raise EntryConflictError(f"Target path '{target_directory}' is not a directory.")
        self._make_directories(directory, target_directory)
        if target.is_dir():
            raise EntryConflictError(f"A directory already exists at '{self.relative(target)}'.")

        try:
            target.write_bytes(content)
        except OSError as exc:
            raise StorageIOError(f"Could not store file '{self.relative(target)}': {exc}") from exc
        return self.relative(target)

    def read_file(self, relative_path: str) -> StoredFile:
        target = self.resolve_path(relative_path)
        self._require_file(target, relative_path)
        return StoredFile(path=target, relative_path=self.relative(target))

    def list_entries(self, directory_path: str | None, kind: EntryKind = EntryKind.ANY) -> list[str]:
        """Names of the immediate children of a directory, filtered by ``kind``."""
        directory = self.resolve_path(directory_path)
        if not directory.exists():
            raise EntryNotFoundError(f"Directory not found: {directory_path}")
        if not directory.is_dir():
            raise EntryConflictError(f"Path '{directory_path}' is not a directory.")
        try:
            with os.scandir(directory) as entries:
                return sorted(entry.name for entry in entries if kind.matches(entry))
        except OSError as exc:
            raise StorageIOError(f"Failed to list items in directory: {directory_path}") from exc

    def list_files(self, directory_path: str | None) -> list[str]:
        return self.list_entries(directory_path, EntryKind.FILE)

    def list_directories(self, directory_path: str | None) -> list[str]:
        return self.list_entries(directory_path, EntryKind.DIRECTORY)

    def list_items(self, directory_path: str | None) -> list[str]:
        return self.list_entries(directory_path, EntryKind.ANY)

    def create_directory(self, directory_path: str) -> str:
        logger.info("Creating directory: %s", directory_path)
        if _is_blank(directory_path):
            raise PathValidationError("Directory path cannot be empty.")
        target = self.resolve_path(directory_path)
        if target.exists() and not target.is_dir():
            raise EntryConflictError(
                f"Cannot create directory '{directory_path}'. A file already exists at this path."
            )
        self._make_directories(target, directory_path)
        return self.relative(target)

    def copy_file(self, source_path: str, target_path: str) -> str:
        logger.info("Copying file %s to %s", source_path, target_path)
        source, target = self._prepare_transfer(source_path, target_path)
        try:
            shutil.copyfile(source, target)
        except OSError as exc:
            raise StorageIOError(f"Could not copy '{source_path}' to '{target_path}': {exc}") from exc
        return self.relative(target)

    def move_file(self, source_path: str, target_path: str) -> str:
        logger.info("Moving file %s to %s", source_path, target_path)
        source, target = self._prepare_transfer(source_path, target_path)
        try:
            os.replace(source, target)
        except OSError as exc:
            raise StorageIOError(f"Could not move '{source_path}' to '{target_path}': {exc}") from exc
        return self.relative(target)

    def rename_directory(self, old_directory: str, new_directory: str) -> None:
        """Move a directory and its subtree to a path that does not exist yet."""
        logger.info("Renaming directory %s to %s", old_directory, new_directory)
        if _is_blank(old_directory) or _is_blank(new_directory):
            raise PathValidationError("Old or new directories cannot be empty.")
        source = self.resolve_path(old_directory)
        target = self.resolve_path(new_directory)

        if source == self._root:
            raise StorageStateError("Cannot rename the base directory itself.")
        if not source.is_dir():
            raise EntryNotFoundError(f"The directory to rename doesn't exist: {old_directory}")
        if os.path.lexists(target):
            raise EntryConflictError(f"The new directory already exists: {new_directory}")
        if source in target.parents:
            raise PathValidationError(f"Cannot move '{old_directory}' inside itself.")
        self._require_parent_directory(target, new_directory)

        try:
            os.rename(source, target)
        except OSError as exc:
            raise StorageIOError(f"Could not rename '{old_directory}' to '{new_directory}': {exc}") from exc

    def delete(self, relative_path: str) -> None:
        """Delete a file or an empty directory."""
        logger.info("Deleting %s", relative_path)
        item = self._resolve_deletable(relative_path)
        is_directory = item.is_dir() and not item.is_symlink()
        try:
            if is_directory and any(item.iterdir()):
                raise StorageStateError(f"Directory is not empty: {relative_path}")
            if is_directory:
                item.rmdir()
            else:
                item.unlink()
        except OSError as exc:
            raise StorageIOError(f"Could not delete '{relative_path}': {exc}") from exc

    def delete_recursive(self, relative_path: str) -> None:
        """Delete an entry and, for a directory, everything below it.

        Descendants go before their ancestors. The first failure aborts the
        walk; entries removed before it stay removed, and calling this again
        finishes the job as long as the top-level entry still exists.
        """
        logger.info("Deleting recursively %s", relative_path)
        item = self._resolve_deletable(relative_path)

        if item.is_symlink() or not item.is_dir():
            doomed = [item]
        else:
            doomed = []
            try:
                for dirpath, dirnames, filenames in os.walk(item, topdown=False, onerror=_raise_on_walk_error):
                    current = Path(dirpath)
                    doomed.extend(current / name for name in filenames)
                    # os.walk does not descend into symlinked directories; unlink them instead.
                    doomed.extend(current / name for name in dirnames if (current / name).is_symlink())
                    doomed.append(current)
            except OSError as exc:
                raise StorageIOError(f"Could not walk '{relative_path}' for deletion: {exc}") from exc
            doomed.sort(key=lambda path: len(path.parts), reverse=True)

        for path in doomed:
            try:
                if path.is_dir() and not path.is_symlink():
                    os.rmdir(path)
                else:
                    os.unlink(path)
            except OSError as exc:
                logger.warning("Recursive deletion of %s stopped at %s: %s", relative_path, path, exc)
                raise StorageIOError(
                    f"Failed to delete path during recursive deletion: {self.relative(path)}"
                ) from exc

    def exists(self, relative_path: str | None) -> bool:
        return self.resolve_path(relative_path).exists()

    def is_directory(self, relative_path: str | None) -> bool:
        return self.resolve_path(relative_path).is_dir()

    def is_file(self, relative_path: str | None) -> bool:
        return self.resolve_path(relative_path).is_file()

    def file_size(self, relative_path: str) -> int:
        target = self.resolve_path(relative_path)
        self._require_file(target, relative_path)
        try:
            return target.stat().st_size
        except OSError as exc:
            raise StorageIOError(f"Could not read size of '{relative_path}': {exc}") from exc

    def current_tree(self) -> dict[str, list[str]]:
        """Map every directory (root as ``""``) to its sorted child names."""
        tree: dict[str, list[str]] = {}
        try:
            for dirpath, dirnames, filenames in os.walk(self._root, onerror=_raise_on_walk_error):
                tree[self.relative(Path(dirpath))] = sorted(dirnames + filenames)
        except OSError as exc:
            raise StorageIOError(f"Could not build directory tree: {exc}") from exc
        return tree
