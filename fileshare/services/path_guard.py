"""Confine client supplied paths to an authorized root directory.

Every path that comes from a URL or from the upload ``dir`` parameter goes
through :func:`resolve` before the filesystem is touched. The result is
either allowed, carrying the canonical absolute path, or denied with a
reason telling malformed input apart from an escape attempt.
"""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PureWindowsPath
from typing import Optional
from urllib.parse import unquote


class DenyReason(str, Enum):
    MALFORMED = "malformed"
    OUTSIDE_ROOT = "outside_root"


@dataclass(frozen=True)
class ResolvedPath:
    allowed: bool
    path: Optional[Path] = None
    reason: Optional[DenyReason] = None

    @classmethod
    def allow(cls, path: Path) -> "ResolvedPath":
        return cls(allowed=True, path=path)

    @classmethod
    def deny(cls, reason: DenyReason) -> "ResolvedPath":
        return cls(allowed=False, reason=reason)


def is_absolute(requested: str) -> bool:
    """Check for any platform's root marker: separator, drive letter or UNC prefix."""
    if requested.startswith(("/", "\\")):
        return True
    return bool(PureWindowsPath(requested).drive)


def has_traversal(requested: str) -> bool:
    """Check the raw string, and its percent-decoded forms, for ``..`` or NUL."""
    candidate = requested
    # Bounded so that deeply nested encodings cannot loop forever
    for _ in range(4):
        if ".." in candidate or "\x00" in candidate:
            return True
        decoded = unquote(candidate)
        if decoded == candidate:
            break
        candidate = decoded
    return False


def is_within(root: Path, candidate: Path) -> bool:
    """Segment-wise containment: True if candidate is root or lies below it."""
    root_parts = root.parts
    return candidate.parts[: len(root_parts)] == root_parts


def resolve(root: Path, requested: str) -> ResolvedPath:
    """Resolve ``requested`` against ``root`` and prove the result stays inside.

    An empty ``requested`` resolves to the root itself. The target does not
    need to exist, so upload destinations about to be created still resolve.
    """
    if is_absolute(requested) or has_traversal(requested):
        return ResolvedPath.deny(DenyReason.MALFORMED)

    canonical_root = Path(root).resolve()
    try:
        candidate = (canonical_root / requested).resolve()
    except (OSError, RuntimeError, ValueError):
        # Symlink loops and unrepresentable names
        return ResolvedPath.deny(DenyReason.MALFORMED)

    if not is_within(canonical_root, candidate):
        return ResolvedPath.deny(DenyReason.OUTSIDE_ROOT)
    return ResolvedPath.allow(candidate)
