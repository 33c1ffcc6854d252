"""Path string helpers shared by the selection tree, extractor and recorder.

All helpers operate on slash-separated strings rather than ``Path`` objects
because selections and package payloads describe an image filesystem, not
the host one. A trailing ``/`` marks a directory.
"""

import fnmatch

GLOB_CHARS = "*?"


class PathError(ValueError):
    """Base exception for invalid selection paths."""


class PathBackreferenceError(PathError):
    """Raised when a path contains a ``..`` segment."""


def is_glob(path: str) -> bool:
    """Check whether a path contains wildcard characters."""
    return any(c in path for c in GLOB_CHARS)


def clean_path(path: str) -> str:
    """Normalize a path into a relative key.

    Empty and ``.`` segments are dropped wherever they appear. The result
    has no leading separator and keeps a trailing one when the input
    names a directory (``a/b/`` or ``a/b/.``). The root becomes ``""``.

    Args:
        path: Absolute or relative path.

    Returns:
        The cleaned key.

    Raises:
        PathBackreferenceError: If any segment is ``..``.
    """
    segments = path.split("/")
    kept: list[str] = []
    for segment in segments:
        if segment in ("", "."):
            continue
        if segment == "..":
            msg = f"double dot paths (../) are not supported: {path}"
            raise PathBackreferenceError(msg)
        kept.append(segment)

    key = "/".join(kept)
    if kept and segments[-1] in ("", "."):
        key += "/"
    return key


def longest_common_prefix(a: str, b: str) -> tuple[str, str, str]:
    """Split two strings at their longest common prefix.

    Returns:
        Tuple of (prefix, rest of a, rest of b).
    """
    limit = min(len(a), len(b))
    i = 0
    while i < limit and a[i] == b[i]:
        i += 1
    return a[:i], a[i:], b[i:]


def glob_path(pattern: str, path: str) -> bool:
    """Match a path against a shell-style pattern.

    ``*`` matches any run of characters, separators included, and ``?``
    matches exactly one character. Brackets are literal. Directory forms
    (trailing ``/``) only match patterns ending in ``/`` or ``**``.

    Args:
        pattern: Glob pattern.
        path: Path to test.

    Returns:
        True if the whole path matches the pattern.
    """
    if path.endswith("/") and not pattern.endswith(("/", "**")):
        return False
    return fnmatch.fnmatchcase(path, pattern.replace("[", "[[]"))


def parent_dir(path: str) -> str:
    """Return the parent directory of a path, with a trailing separator.

    ``/a/b/`` and ``/a/b`` both yield ``/a/``; the root is its own parent.
    """
    trimmed = path.rstrip("/")
    if not trimmed:
        return "/"
    return trimmed[: trimmed.rfind("/") + 1]
