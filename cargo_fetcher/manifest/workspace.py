"""Expand ``[workspace]`` members into concrete directories."""

from __future__ import annotations

import fnmatch
import posixpath
from collections.abc import Awaitable, Callable

import structlog

from cargo_fetcher.core.paths import join_directory, relative_to
from cargo_fetcher.manifest.models import ParsedManifest
from cargo_fetcher.remote.models import DirectoryEntry

log = structlog.get_logger("cargo_fetcher.manifest")

_GLOB_CHARS = ("*", "?", "[")

ListDirectory = Callable[[str], Awaitable["list[DirectoryEntry] | None"]]


def is_glob(pattern: str) -> bool:
    return any(ch in pattern for ch in _GLOB_CHARS)


async def expand_members(
    manifest: ParsedManifest,
    declaring_directory: str,
    list_directory: ListDirectory,
) -> list[str]:
    """Return the absolute member directories of *manifest*'s workspace.

    *list_directory* takes an absolute directory and returns its entries, or
    None when it does not exist. Implicit membership contributes nothing:
    the declaring package is its own member and is already visited.
    """
    workspace = manifest.workspace
    if workspace is None or workspace.is_implicit:
        return []

    excluded = {_normalise(path) for path in workspace.exclude}
    members: list[str] = []
    for pattern in workspace.members:
        pattern = _normalise(pattern)
        if is_glob(pattern):
            matches = await _expand_glob(pattern, declaring_directory, list_directory)
        else:
            matches = [pattern]
        for relative in matches:
            if relative in excluded:
                log.debug("workspace.member_excluded", member=relative)
                continue
            directory = join_directory(declaring_directory, relative)
            if directory not in members:
                members.append(directory)
    return members


async def _expand_glob(
    pattern: str,
    declaring_directory: str,
    list_directory: ListDirectory,
) -> list[str]:
    # "packages/*" -> "packages"; "crates/sub_*" -> "crates"; "*" -> ""
    unglobbed = pattern[: min(pattern.find(ch) for ch in _GLOB_CHARS if ch in pattern)]
    prefix = posixpath.dirname(unglobbed)
    listing_dir = join_directory(declaring_directory, prefix)

    entries = await list_directory(listing_dir)
    if entries is None:
        log.info("workspace.glob_prefix_missing", pattern=pattern, directory=listing_dir)
        return []

    matches = []
    for entry in sorted(entries, key=lambda e: e.name):
        if not entry.is_dir:
            continue
        relative = _normalise(
            relative_to(join_directory(listing_dir, entry.name), declaring_directory)
        )
        if fnmatch.fnmatchcase(relative, pattern):
            matches.append(relative)
    return matches


def is_excluded(manifest: ParsedManifest, declaring_directory: str, directory: str) -> bool:
    """True if *directory* is listed in the workspace's ``exclude``."""
    workspace = manifest.workspace
    if workspace is None or not workspace.exclude:
        return False
    relative = _normalise(relative_to(directory, declaring_directory))
    return relative in {_normalise(path) for path in workspace.exclude}


def _normalise(path: str) -> str:
    path = posixpath.normpath(path.strip().rstrip("/"))
    return "" if path == "." else path
