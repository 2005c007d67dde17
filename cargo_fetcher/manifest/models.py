"""Data models for parsed Cargo manifests."""

from __future__ import annotations

from dataclasses import dataclass

IMPLICIT = "implicit"


@dataclass(frozen=True)
class PathDependency:
    """A dependency entry that carries a ``path`` key."""

    name: str
    path: str  # as declared, relative to the declaring manifest
    table: str  # e.g. "dependencies", "target.'cfg(unix)'.dependencies", "patch.crates-io"
    has_alternate_source: bool = False


@dataclass(frozen=True)
class WorkspaceConfig:
    """The ``[workspace]`` table.

    ``members`` is either a tuple of literal paths / glob patterns, or the
    :data:`IMPLICIT` sentinel when the table has no ``members`` key.
    """

    members: tuple[str, ...] | str = IMPLICIT
    exclude: tuple[str, ...] = ()

    @property
    def is_implicit(self) -> bool:
        return self.members == IMPLICIT


@dataclass(frozen=True)
class ParsedManifest:
    """Structured view of one Cargo.toml, limited to what file fetching needs."""

    package_name: str | None = None
    path_dependencies: tuple[PathDependency, ...] = ()
    workspace: WorkspaceConfig | None = None
