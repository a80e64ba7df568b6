"""Turns watched file paths into logical routes.

A logical route is the file's location below the functions directory with
the extension dropped and a leading slash, e.g. ``api/users/[id].ts`` becomes
``/api/users/[id]``. Segments are not interpreted here.
"""
import os
from fnmatch import fnmatchcase
from typing import Optional

SOURCE_EXTENSIONS = frozenset({".js", ".jsx", ".ts", ".tsx"})


def _to_posix(path: str) -> str:
    path = os.fspath(path)
    if os.sep != "/":
        path = path.replace(os.sep, "/")
    return path


def relative_path(file_path: str, watched_root: str) -> Optional[str]:
    """Strip everything up to and including the watched root directory."""
    path = _to_posix(file_path)
    root = _to_posix(watched_root).rstrip("/")

    if root and path.startswith(root + "/"):
        return path[len(root) + 1:] or None

    if path.startswith("/"):
        marker = "/" + root.rsplit("/", 1)[-1] + "/"
        _, found, rest = path.partition(marker)
        return (rest or None) if found else None

    return path or None


def classify(file_path: str, watched_root: str) -> Optional[str]:
    relative = relative_path(file_path, watched_root)
    if not relative:
        return None

    dot = relative.rfind(".")
    if dot == -1 or relative[dot:].lower() not in SOURCE_EXTENSIONS:
        return None

    return "/" + relative[:dot]


def logical_path(file_path: str, watched_root: str) -> Optional[str]:
    """Like :func:`classify` but for any file type; used for reload events."""
    relative = relative_path(file_path, watched_root)
    if not relative:
        return None
    dot = relative.rfind(".")
    return "/" + (relative[:dot] if dot > relative.rfind("/") else relative)


def matches_glob(relative: str, pattern: str) -> bool:
    """Match a root-relative path against a group glob.

    ``*`` matches within one segment, ``**`` matches any number of segments.
    """
    return _match_parts(relative.split("/"), pattern.split("/"))


def _match_parts(parts: list[str], globs: list[str]) -> bool:
    if not globs:
        return not parts
    head, rest = globs[0], globs[1:]
    if head == "**":
        return any(_match_parts(parts[i:], rest) for i in range(len(parts) + 1))
    if not parts:
        return False
    return fnmatchcase(parts[0], head) and _match_parts(parts[1:], rest)
