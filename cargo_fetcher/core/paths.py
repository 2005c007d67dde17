"""Slash-rooted path helpers shared by the resolvers and the engine."""

from __future__ import annotations

import posixpath


def join_directory(base: str, relative: str) -> str:
    """Resolve *relative* against the absolute directory *base*.

    Trailing slashes are stripped, ``.``/``..`` segments are collapsed, and
    a path climbing above ``/`` is clamped to ``/``. A blank path resolves to
    *base* itself.
    """
    relative = relative.strip().rstrip("/")
    joined = posixpath.normpath(posixpath.join(base or "/", relative))
    # normpath keeps a leading "//" per POSIX
    return "/" + joined.lstrip("/")


def repo_path(directory: str, name: str | None = None) -> str:
    """Repository-relative form of an absolute directory (no leading slash)."""
    path = directory.strip("/")
    if name:
        return f"{path}/{name}" if path else name
    return path


def relative_to(directory: str, root: str) -> str:
    """Path of *directory* relative to *root* (``""`` when equal)."""
    if root == "/":
        return directory.lstrip("/")
    if directory == root:
        return ""
    if directory.startswith(root + "/"):
        return directory[len(root) + 1 :]
    return posixpath.relpath(directory, root)
