"""Cargo manifest parsing and the resolvers built on top of it."""

from cargo_fetcher.manifest.models import (
    IMPLICIT,
    ParsedManifest,
    PathDependency,
    WorkspaceConfig,
)
from cargo_fetcher.manifest.parser import parse_manifest
from cargo_fetcher.manifest.path_deps import PathCandidate, extract_path_dependencies
from cargo_fetcher.manifest.toolchain import (
    DEFAULT_CHANNEL,
    TOOLCHAIN_FILENAMES,
    extract_channel,
)
from cargo_fetcher.manifest.workspace import expand_members, is_excluded

__all__ = [
    "DEFAULT_CHANNEL",
    "IMPLICIT",
    "TOOLCHAIN_FILENAMES",
    "ParsedManifest",
    "PathCandidate",
    "PathDependency",
    "WorkspaceConfig",
    "expand_members",
    "is_excluded",
    "extract_channel",
    "extract_path_dependencies",
    "parse_manifest",
]
