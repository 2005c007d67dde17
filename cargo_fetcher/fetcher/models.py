"""Data models for the file fetcher."""

from __future__ import annotations

from dataclasses import dataclass, field

from cargo_fetcher.core.paths import relative_to


@dataclass
class DependencyFile:
    """A fetched manifest, lockfile, cargo config or toolchain file.

    ``directory`` is slash-rooted with no trailing slash (root is ``/``).
    ``(directory, name)`` identifies a file within one resolution.
    """

    name: str
    directory: str
    content: str
    support_file: bool = False
    type: str = "file"

    @property
    def key(self) -> tuple[str, str]:
        return (self.directory, self.name)

    @property
    def path(self) -> str:
        if self.directory == "/":
            return f"/{self.name}"
        return f"{self.directory}/{self.name}"

    def relative_name(self, root: str = "/") -> str:
        """Path relative to *root*, e.g. ``src/s3/Cargo.toml``."""
        directory = relative_to(self.directory, root)
        return f"{directory}/{self.name}" if directory else self.name

    def to_dict(self, root: str = "/") -> dict:
        return {
            "name": self.relative_name(root),
            "directory": self.directory,
            "path": self.path,
            "support_file": self.support_file,
            "type": self.type,
            "content": self.content,
        }


@dataclass
class FetchResult:
    """Outcome of a successful resolution."""

    files: list[DependencyFile]
    ecosystem_versions: dict[str, str] = field(default_factory=dict)
    directory: str = "/"

    @property
    def names(self) -> list[str]:
        """File names relative to the resolution's root directory."""
        return [f.relative_name(self.directory) for f in self.files]

    def to_dict(self) -> dict:
        return {
            "directory": self.directory,
            "files": [f.to_dict(self.directory) for f in self.files],
            "ecosystem_versions": dict(self.ecosystem_versions),
        }
