"""Enumerate the directories a manifest points at through ``path`` keys."""

from __future__ import annotations

from dataclasses import dataclass

from cargo_fetcher.core.paths import join_directory
from cargo_fetcher.manifest.models import ParsedManifest, PathDependency


@dataclass(frozen=True)
class PathCandidate:
    """A directory to fetch because a manifest declares a path dependency on it."""

    directory: str
    has_alternate_source: bool
    dependency: PathDependency


def extract_path_dependencies(
    manifest: ParsedManifest, declaring_directory: str
) -> list[PathCandidate]:
    """Resolve every path dependency of *manifest* against *declaring_directory*.

    Order follows the manifest: normal/dev/build tables, target tables,
    ``workspace.dependencies``, ``replace``, then ``patch``. A directory
    declared more than once appears once, at its first position; it keeps
    ``has_alternate_source`` only if every declaration has one.
    """
    by_directory: dict[str, PathCandidate] = {}
    for dep in manifest.path_dependencies:
        directory = join_directory(declaring_directory, dep.path)
        seen = by_directory.get(directory)
        if seen is None:
            by_directory[directory] = PathCandidate(directory, dep.has_alternate_source, dep)
        elif seen.has_alternate_source and not dep.has_alternate_source:
            by_directory[directory] = PathCandidate(directory, False, seen.dependency)
    return list(by_directory.values())
