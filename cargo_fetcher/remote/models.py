"""Data models for remote tree access."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class EntryKind(enum.Enum):
    FILE = "file"
    DIRECTORY = "directory"
    SUBMODULE = "submodule"


@dataclass(frozen=True)
class TreeContext:
    """Which repository, at which commit, a remote call is addressed to."""

    repo: str  # owner/name
    ref: str = ""  # empty means the default branch


@dataclass(frozen=True)
class DirectoryEntry:
    """A single row of a remote directory listing.

    ``submodule_ref`` / ``submodule_url`` are only set for submodule entries.
    """

    name: str
    path: str
    kind: EntryKind
    submodule_ref: str | None = None
    submodule_url: str | None = None

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    @property
    def is_submodule(self) -> bool:
        return self.kind is EntryKind.SUBMODULE
