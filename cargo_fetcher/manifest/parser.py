"""Parser for Rust Cargo.toml files."""

from __future__ import annotations

import sys
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from cargo_fetcher.exceptions import DependencyFileNotParseable
from cargo_fetcher.manifest.models import (
    IMPLICIT,
    ParsedManifest,
    PathDependency,
    WorkspaceConfig,
)

_DEP_SECTIONS = (
    "dependencies",
    "dev-dependencies",
    "dev_dependencies",
    "build-dependencies",
    "build_dependencies",
)

# A dependency with one of these next to ``path`` still builds without it.
_ALTERNATE_SOURCE_KEYS = ("git", "registry")


def parse_manifest(content: str, file_path: str = "Cargo.toml") -> ParsedManifest:
    """Parse manifest text into a :class:`ParsedManifest`.

    Raises :class:`DependencyFileNotParseable` on malformed TOML or on
    tables of the wrong shape.
    """
    try:
        data = tomllib.loads(content)
    except tomllib.TOMLDecodeError as exc:
        raise DependencyFileNotParseable(file_path, str(exc)) from exc

    package = data.get("package")
    package_name = package.get("name") if isinstance(package, dict) else None

    return ParsedManifest(
        package_name=package_name if isinstance(package_name, str) else None,
        path_dependencies=tuple(_path_dependencies(data, file_path)),
        workspace=_workspace(data, file_path),
    )


def _path_dependencies(data: dict[str, Any], file_path: str) -> list[PathDependency]:
    deps: list[PathDependency] = []

    for section in _DEP_SECTIONS:
        deps.extend(_from_table(data.get(section), section, file_path))

    targets = data.get("target", {})
    if isinstance(targets, dict):
        for cfg, target_tables in targets.items():
            if not isinstance(target_tables, dict):
                continue
            for section in _DEP_SECTIONS:
                deps.extend(
                    _from_table(target_tables.get(section), f"target.{cfg}.{section}", file_path)
                )

    workspace = data.get("workspace")
    if isinstance(workspace, dict):
        deps.extend(
            _from_table(workspace.get("dependencies"), "workspace.dependencies", file_path)
        )

    deps.extend(_from_table(data.get("replace"), "replace", file_path))

    patches = data.get("patch", {})
    if isinstance(patches, dict):
        for source, table in patches.items():
            deps.extend(_from_table(table, f"patch.{source}", file_path))

    return deps


def _from_table(table: Any, table_name: str, file_path: str) -> list[PathDependency]:
    if table is None:
        return []
    if not isinstance(table, dict):
        raise DependencyFileNotParseable(file_path, f"[{table_name}] must be a table")

    deps: list[PathDependency] = []
    for name, spec in table.items():
        if not isinstance(spec, dict) or "path" not in spec:
            continue
        path = spec["path"]
        if not isinstance(path, str):
            raise DependencyFileNotParseable(
                file_path, f"path of {name!r} in [{table_name}] must be a string"
            )
        deps.append(
            PathDependency(
                name=name,
                path=path,
                table=table_name,
                has_alternate_source=any(key in spec for key in _ALTERNATE_SOURCE_KEYS),
            )
        )
    return deps


def _workspace(data: dict[str, Any], file_path: str) -> WorkspaceConfig | None:
    workspace = data.get("workspace")
    if workspace is None:
        return None
    if not isinstance(workspace, dict):
        raise DependencyFileNotParseable(file_path, "[workspace] must be a table")

    exclude = _string_list(workspace.get("exclude", []), "workspace.exclude", file_path)
    if "members" not in workspace:
        return WorkspaceConfig(members=IMPLICIT, exclude=exclude)
    members = _string_list(workspace["members"], "workspace.members", file_path)
    return WorkspaceConfig(members=members, exclude=exclude)


def _string_list(value: Any, key: str, file_path: str) -> tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise DependencyFileNotParseable(file_path, f"{key} must be a list of strings")
    return tuple(value)
