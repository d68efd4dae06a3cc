"""Resolution of untrusted relative paths under a fixed storage root."""

from __future__ import annotations

import logging
import os
import posixpath
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Optional

from .errors import PathValidationError

logger = logging.getLogger(__name__)


def resolve_root(raw: Optional[str | Path]) -> Path:
    """Turn the configured root into an absolute, normalized path.

    Symlinks are left as they are; only the textual form is normalized.
    """
    value = "" if raw is None else str(raw).strip()
    if not value:
        raise PathValidationError("Storage root is not configured.")
    if "\x00" in value:
        raise PathValidationError(f"Invalid storage root format: {value!r}")
    return Path(os.path.abspath(os.path.expanduser(value)))


def _normalise_user_path(user_path: str) -> str:
    # Backslashes are separators too, so "a\..\.." cannot slip past the checks.
    candidate = user_path.replace("\\", "/")
    if not candidate.strip("/"):
        return "."
    if PurePosixPath(candidate).is_absolute():
        raise PathValidationError("Invalid path: Absolute paths are not allowed.")
    windows = PureWindowsPath(user_path)
    if windows.drive or windows.root:
        raise PathValidationError("Invalid path: Absolute paths are not allowed.")
    normalized = posixpath.normpath(candidate)
    if ".." in PurePosixPath(normalized).parts:
        raise PathValidationError("Invalid path: Directory traversal attempt detected.")
    return normalized


def is_within(root: Path, candidate: Path) -> bool:
    """Segment-wise containment: ``/data`` does not contain ``/data-other``."""
    return candidate == root or root in candidate.parents


def resolve_confined(root: Optional[Path], user_path: Optional[str]) -> Path:
    """Resolve ``user_path`` against ``root`` and verify it stays inside.

    Empty, blank and ``"/"`` inputs denote the root itself. Any other
    absolute input, any ``..`` segment after normalization, or a joined path
    that lands outside ``root`` raises :class:`PathValidationError`.
    """
    if root is None:
        raise PathValidationError("Base directory is not configured.")

    raw = "" if user_path is None else str(user_path)
    if not raw.strip():
        return root
    if "\x00" in raw:
        raise PathValidationError(f"Invalid path format: {raw!r}")

    try:
        normalized = _normalise_user_path(raw)
    except PathValidationError:
        logger.warning("Rejected path %r", raw)
        raise

    resolved = Path(os.path.normpath(os.path.join(root, normalized)))
    if not is_within(root, resolved):
        logger.warning("Rejected path %r resolving to %s", raw, resolved)
        raise PathValidationError("Invalid path: Resolved path is outside the base directory.")
    return resolved


def to_relative(root: Path, path: Path) -> str:
    """Forward-slash path of ``path`` relative to ``root``; the root itself is ``""``."""
    relative = path.relative_to(root).as_posix()
    return "" if relative == "." else relative
